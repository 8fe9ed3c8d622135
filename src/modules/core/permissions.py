"""Role-aware DRF permissions.

The bearer token identifies the user; role and approval are read from the
authenticated ``accounts.User`` row so a revoked approval takes effect on
the next request.
"""

from __future__ import annotations

from typing import Type

from rest_framework.permissions import BasePermission


class IsApproved(BasePermission):
    """Authenticated, active and approved by the platform operator."""

    message = "Cuenta no aprobada."

    def has_permission(self, request, view) -> bool:
        user = request.user
        return bool(
            user
            and user.is_authenticated
            and user.is_active
            and getattr(user, "approved", False)
        )


class _RolePermission(IsApproved):
    roles: tuple[str, ...] = ()
    message = "Rol no autorizado para esta operación."

    def has_permission(self, request, view) -> bool:
        return super().has_permission(request, view) and request.user.role in self.roles


def HasRole(*roles: str) -> Type[BasePermission]:
    """Build a permission class admitting only approved users with ``roles``.

    Usage: ``permission_classes = [HasRole(UserRole.STORE, UserRole.MASTER)]``.
    """
    return type(
        f"HasRole_{'_'.join(str(r) for r in roles)}",
        (_RolePermission,),
        {"roles": tuple(roles)},
    )
