from django.conf import settings
from django.db.models import Q
from rest_framework import generics, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import MethodNotAllowed
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from rest_framework_simplejwt.serializers import TokenRefreshSerializer

from apps.accounts.models import DealerProfile, User, UserRole
from apps.accounts.serializers import (
    AccountManagerSerializer,
    ChangePasswordSerializer,
    DealerRegistrationSerializer,
    DealerSerializer,
    ForgotPasswordSerializer,
    LoginSerializer,
    PasswordSerializer,
    RefreshSerializer,
    ResetPasswordSerializer,
    UserSummarySerializer,
    VisitorSerializer,
)
from apps.accounts.services import ACCOUNT_MANAGEMENT_ROLES, PORTAL_ROLES, login, resolve_account, set_password
from apps.audit.models import AuditLog
from apps.audit.serializers import AuditLogSerializer
from apps.audit.services import record_audit
from apps.common.exceptions import InvalidCredentialsError
from apps.common.permissions import RolePermission


class LoginView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    allowed_roles = PORTAL_ROLES

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        account, tokens = login(
            serializer.validated_data["username"],
            serializer.validated_data["password"],
            allowed_roles=self.allowed_roles,
        )
        return Response({**tokens, "user": UserSummarySerializer(account.user).data}, status=200)


class AccountManagementLoginView(LoginView):
    allowed_roles = ACCOUNT_MANAGEMENT_ROLES


class RefreshView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def get_authenticate_header(self, request):
        return 'Bearer realm="api"'

    def post(self, request):
        serializer = RefreshSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        refresh = TokenRefreshSerializer(data={"refresh": serializer.validated_data["refreshToken"]})
        try:
            refresh.is_valid(raise_exception=True)
        except TokenError as exc:
            raise InvalidToken(exc.args[0]) from exc
        lifetime = settings.SIMPLE_JWT["ACCESS_TOKEN_LIFETIME"]
        return Response({"token": refresh.validated_data["access"], "expiresIn": int(lifetime.total_seconds())})


class LogoutView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        record_audit(
            actor=request.user,
            action="auth.logout",
            entity_type="user",
            entity_id=request.user.id,
        )
        return Response({"message": "Logged out"}, status=200)


class ChangePasswordView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = ChangePasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        if not request.user.check_password(serializer.validated_data["currentPassword"]):
            raise InvalidCredentialsError("Current password is incorrect")
        set_password(request.user, serializer.validated_data["newPassword"])
        return Response({"message": "Password changed"}, status=200)


class ResetPasswordView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        serializer = ResetPasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        account = resolve_account(serializer.validated_data["username"], serializer.validated_data["oldPassword"])
        set_password(account.user, serializer.validated_data["newPassword"], action="auth.password.reset")
        return Response({"message": "Password reset"}, status=200)


class ForgotPasswordView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        serializer = ForgotPasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        profile = (
            DealerProfile.objects.select_related("user")
            .filter(
                user__username=serializer.validated_data["username"].strip(),
                date_of_birth=serializer.validated_data["dateOfBirth"],
            )
            .first()
        )
        if profile is None:
            raise InvalidCredentialsError("Username and date of birth do not match")
        set_password(profile.user, serializer.validated_data["newPassword"], action="auth.password.forgot")
        return Response({"message": "Password updated"}, status=200)


class DealerRegisterView(generics.CreateAPIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    serializer_class = DealerRegistrationSerializer

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        dealer = serializer.save()
        return Response(DealerSerializer(dealer).data, status=status.HTTP_201_CREATED)


class DealerMeView(generics.RetrieveUpdateAPIView):
    serializer_class = DealerSerializer
    permission_classes = [RolePermission]
    http_method_names = ["get", "patch", "head", "options"]
    capability_map = {"get": ["profile.manage"], "patch": ["profile.manage"]}

    def get_object(self):
        return User.objects.select_related("dealer_profile").get(pk=self.request.user.pk)


class DealerVisitorListView(generics.ListAPIView):
    serializer_class = VisitorSerializer
    permission_classes = [RolePermission]
    capability_map = {"get": ["visitors.list"]}

    def get_queryset(self):
        queryset = User.objects.filter(role=UserRole.VISITOR, is_active=True).select_related("visitor_profile")
        query = self.request.query_params.get("search")
        if query:
            query = query.strip()
            queryset = queryset.filter(
                Q(username__icontains=query)
                | Q(first_name__icontains=query)
                | Q(last_name__icontains=query)
                | Q(visitor_profile__employee_id__icontains=query)
            )
        return queryset.order_by("first_name", "last_name")


class AccountAdminMixin:
    role = None

    def get_queryset(self):
        queryset = User.objects.filter(role=self.role).order_by("-date_joined")
        query = self.request.query_params.get("search")
        if query:
            query = query.strip()
            queryset = queryset.filter(
                Q(username__icontains=query)
                | Q(first_name__icontains=query)
                | Q(last_name__icontains=query)
                | Q(mobile__icontains=query)
            )
        is_active = self.request.query_params.get("isActive")
        if is_active is not None:
            queryset = queryset.filter(is_active=is_active.strip().lower() in {"1", "true", "yes"})
        return queryset

    def _set_active(self, user, is_active):
        user.is_active = is_active
        user.save(update_fields=["is_active"])
        record_audit(
            actor=self.request.user,
            action=f"accounts.{user.role_slug}.{'activate' if is_active else 'deactivate'}",
            entity_type="user",
            entity_id=user.id,
        )

    def perform_update(self, serializer):
        user = serializer.save()
        record_audit(
            actor=self.request.user,
            action=f"accounts.{user.role_slug}.update",
            entity_type="user",
            entity_id=user.id,
            payload={"fields": sorted(serializer.validated_data.keys())},
        )

    def perform_destroy(self, instance):
        record_audit(
            actor=self.request.user,
            action=f"accounts.{instance.role_slug}.delete",
            entity_type="user",
            entity_id=instance.id,
            payload={"username": instance.username},
        )
        instance.delete()

    @action(detail=True, methods=["put", "patch"])
    def password(self, request, pk=None):
        user = self.get_object()
        serializer = PasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        set_password(user, serializer.validated_data["newPassword"], actor=request.user, action="auth.password.admin_set")
        return Response({"message": "Password updated"}, status=200)


class AdminDealerViewSet(AccountAdminMixin, viewsets.ModelViewSet):
    role = UserRole.DEALER
    serializer_class = DealerSerializer
    permission_classes = [RolePermission]
    http_method_names = ["get", "put", "patch", "post", "head", "options"]
    capability_map = {
        "list": ["dealers.manage"],
        "retrieve": ["dealers.manage"],
        "update": ["dealers.manage"],
        "partial_update": ["dealers.manage"],
        "activate": ["dealers.manage"],
        "deactivate": ["dealers.manage"],
        "password": ["dealers.manage"],
    }

    def get_queryset(self):
        return super().get_queryset().select_related("dealer_profile")

    def create(self, request, *args, **kwargs):
        raise MethodNotAllowed(request.method, detail="Dealers register through dealers/register/")

    @action(detail=True, methods=["patch", "post"])
    def activate(self, request, pk=None):
        dealer = self.get_object()
        self._set_active(dealer, True)
        return Response(self.get_serializer(dealer).data, status=200)

    @action(detail=True, methods=["patch", "post"])
    def deactivate(self, request, pk=None):
        dealer = self.get_object()
        self._set_active(dealer, False)
        return Response(self.get_serializer(dealer).data, status=200)


class AdminVisitorViewSet(AccountAdminMixin, viewsets.ModelViewSet):
    role = UserRole.VISITOR
    serializer_class = VisitorSerializer
    permission_classes = [RolePermission]
    capability_map = {
        "list": ["visitors.manage"],
        "retrieve": ["visitors.manage"],
        "create": ["visitors.manage"],
        "update": ["visitors.manage"],
        "partial_update": ["visitors.manage"],
        "destroy": ["visitors.manage"],
        "password": ["visitors.manage"],
    }

    def get_queryset(self):
        return super().get_queryset().select_related("visitor_profile")


class AdminAccountManagerViewSet(AccountAdminMixin, viewsets.ModelViewSet):
    role = UserRole.ACCOUNT_MANAGER
    serializer_class = AccountManagerSerializer
    permission_classes = [RolePermission]
    capability_map = {
        "list": ["account_managers.manage"],
        "retrieve": ["account_managers.manage"],
        "create": ["account_managers.manage"],
        "update": ["account_managers.manage"],
        "partial_update": ["account_managers.manage"],
        "destroy": ["account_managers.manage"],
        "password": ["account_managers.manage"],
        "activate": ["account_managers.manage"],
        "deactivate": ["account_managers.manage"],
        "history": ["account_managers.manage"],
    }

    @action(detail=True, methods=["patch", "post"])
    def activate(self, request, pk=None):
        manager = self.get_object()
        self._set_active(manager, True)
        return Response(self.get_serializer(manager).data, status=200)

    @action(detail=True, methods=["patch", "post"])
    def deactivate(self, request, pk=None):
        manager = self.get_object()
        self._set_active(manager, False)
        return Response(self.get_serializer(manager).data, status=200)

    @action(detail=True, methods=["get"])
    def history(self, request, pk=None):
        manager = self.get_object()
        entries = AuditLog.objects.by_actor(manager)
        action_filter = request.query_params.get("action")
        if action_filter:
            entries = entries.filter(action__startswith=action_filter)
        page = self.paginate_queryset(entries)
        if page is not None:
            return self.get_paginated_response(AuditLogSerializer(page, many=True).data)
        return Response(AuditLogSerializer(entries, many=True).data)
