from rest_framework.permissions import BasePermission

from apps.accounts.models import UserRole


ROLE_CAPABILITIES = {
    UserRole.ADMIN: {
        "catalog.view",
        "catalog.manage",
        "customers.view",
        "customers.manage",
        "customers.view.all",
        "quotations.view",
        "quotations.view.all",
        "quotations.create",
        "quotations.edit",
        "quotations.status",
        "visits.view",
        "visits.manage",
        "visitors.list",
        "dealers.manage",
        "visitors.manage",
        "account_managers.manage",
        "metrics.view",
        "metrics.view.own",
        "profile.manage",
    },
    UserRole.DEALER: {
        "catalog.view",
        "customers.view",
        "customers.manage",
        "quotations.view",
        "quotations.create",
        "visits.view",
        "visits.manage",
        "visitors.list",
        "metrics.view.own",
        "profile.manage",
    },
    UserRole.VISITOR: {
        "visits.assigned",
        "visits.transition",
    },
    UserRole.ACCOUNT_MANAGER: {
        "quotations.view.approved",
    },
}


def resolve_role(user):
    return getattr(user, "role", None)


def has_capability(user, capability):
    return capability in ROLE_CAPABILITIES.get(resolve_role(user), set())


class RolePermission(BasePermission):
    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False

        capability_map = getattr(view, "capability_map", {})
        action = getattr(view, "action", None) or request.method.lower()
        required = capability_map.get(action) or capability_map.get(request.method.lower()) or set()
        if not required:
            return True

        user_caps = ROLE_CAPABILITIES.get(resolve_role(request.user), set())
        return all(cap in user_caps for cap in required)

