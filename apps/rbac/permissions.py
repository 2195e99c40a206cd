# apps/rbac/permissions.py
from typing import Set

from rest_framework.permissions import BasePermission

from .roles import _norm


class HasRole(BasePermission):
    """
    I gate an endpoint by role names. Subclasses (or the roles_required()
    factory below) set `required_roles`.

    Behavior:
    - Inactive or anonymous users never pass.
    - Superusers always pass (configurable via allow_superuser).
    - Role matching is case-insensitive.
    """

    message = "You do not have permission to perform this action."
    required_roles: Set[str] = set()
    allow_superuser: bool = True

    def has_permission(self, request, view) -> bool:
        user = getattr(request, "user", None)
        if not user or not user.is_authenticated or not user.is_active:
            return False

        # No roles configured → any authenticated user.
        if not self.required_roles:
            return True

        if self.allow_superuser and getattr(user, "is_superuser", False):
            return True

        return _norm(getattr(user, "role", "")) in self.required_roles

    def has_object_permission(self, request, view, obj) -> bool:
        # Ownership rules live in the services; here I only mirror the role gate.
        return self.has_permission(request, view)


def roles_required(*roles: str):
    """
    I return a concrete DRF permission class that requires ANY of the given roles.

    Usage:
        permission_classes = [IsAuthenticated, roles_required("manager", "admin")]
    """
    required = {_norm(r) for r in roles if isinstance(r, str) and r.strip()}

    class RolesRequired(HasRole):
        required_roles = required

    RolesRequired.__name__ = "RolesRequired_" + "_".join(sorted(required))
    return RolesRequired
