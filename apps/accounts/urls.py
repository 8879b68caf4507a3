from django.urls import path
from rest_framework.routers import DefaultRouter

from apps.accounts.views import (
    AccountManagementLoginView,
    AdminAccountManagerViewSet,
    AdminDealerViewSet,
    AdminVisitorViewSet,
    ChangePasswordView,
    DealerMeView,
    DealerRegisterView,
    DealerVisitorListView,
    ForgotPasswordView,
    LoginView,
    LogoutView,
    RefreshView,
    ResetPasswordView,
)

router = DefaultRouter()
router.register("admin/dealers", AdminDealerViewSet, basename="admin-dealer")
router.register("admin/visitors", AdminVisitorViewSet, basename="admin-visitor")
router.register("admin/account-managers", AdminAccountManagerViewSet, basename="admin-account-manager")

urlpatterns = [
    path("auth/login/", LoginView.as_view(), name="auth-login"),
    path("auth/account-management/login/", AccountManagementLoginView.as_view(), name="auth-account-management-login"),
    path("auth/refresh/", RefreshView.as_view(), name="auth-refresh"),
    path("auth/logout/", LogoutView.as_view(), name="auth-logout"),
    path("auth/change-password/", ChangePasswordView.as_view(), name="auth-change-password"),
    path("auth/reset-password/", ResetPasswordView.as_view(), name="auth-reset-password"),
    path("auth/forgot-password/", ForgotPasswordView.as_view(), name="auth-forgot-password"),
    path("dealers/register/", DealerRegisterView.as_view(), name="dealer-register"),
    path("dealers/me/", DealerMeView.as_view(), name="dealer-me"),
    path("dealers/visitors/", DealerVisitorListView.as_view(), name="dealer-visitors"),
]
urlpatterns += router.urls
