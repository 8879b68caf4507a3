import logging
from dataclasses import dataclass

from django.contrib.auth.models import update_last_login
from django.db import transaction
from rest_framework_simplejwt.tokens import RefreshToken

from apps.accounts.models import DealerProfile, User, UserRole, VisitorProfile
from apps.audit.services import record_audit
from apps.common.exceptions import InactiveAccountError, InvalidCredentialsError

logger = logging.getLogger(__name__)

PORTAL_ROLES = (UserRole.ADMIN, UserRole.DEALER, UserRole.VISITOR)
ACCOUNT_MANAGEMENT_ROLES = (UserRole.ACCOUNT_MANAGER,)


@dataclass(frozen=True)
class Account:
    kind: str
    user: User


def resolve_account(username, password):
    user = User.objects.filter(username=(username or "").strip()).first()
    if user is None or not user.check_password(password or ""):
        logger.info("Rejected login for username=%s", username)
        raise InvalidCredentialsError()
    if not user.is_active:
        logger.info("Rejected login for inactive username=%s", username)
        raise InactiveAccountError()
    return Account(kind=user.role_slug, user=user)


def issue_tokens(user):
    refresh = RefreshToken.for_user(user)
    refresh["role"] = user.role_slug
    return {"token": str(refresh.access_token), "refreshToken": str(refresh)}


def login(username, password, allowed_roles=PORTAL_ROLES):
    account = resolve_account(username, password)
    if account.user.role not in allowed_roles:
        logger.info("Rejected login for username=%s on wrong portal (role=%s)", username, account.user.role)
        raise InvalidCredentialsError()

    tokens = issue_tokens(account.user)
    update_last_login(None, account.user)
    record_audit(
        actor=account.user,
        action="auth.login",
        entity_type="user",
        entity_id=account.user.id,
        payload={"role": account.kind},
    )
    logger.info("Login succeeded for username=%s role=%s", account.user.username, account.kind)
    return account, tokens


def set_password(user, new_password, actor=None, action="auth.password.change"):
    user.set_password(new_password)
    user.save(update_fields=["password"])
    record_audit(
        actor=actor or user,
        action=action,
        entity_type="user",
        entity_id=user.id,
        payload={"username": user.username},
    )


@transaction.atomic
def create_user_with_role(*, role, password, profile_data=None, created_by=None, **user_fields):
    user = User(role=role, **user_fields)
    user.set_password(password)
    user.save()
    if role in (UserRole.DEALER, UserRole.ADMIN):
        DealerProfile.objects.create(user=user, **(profile_data or {}))
    elif role == UserRole.VISITOR:
        VisitorProfile.objects.create(user=user, created_by=created_by, **(profile_data or {}))

    record_audit(
        actor=created_by or user,
        action=f"accounts.{user.role_slug}.create",
        entity_type="user",
        entity_id=user.id,
        payload={"username": user.username, "role": user.role},
    )
    return user
