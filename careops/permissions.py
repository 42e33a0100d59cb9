"""
Custom permission classes for role based access control.
"""
from rest_framework.permissions import BasePermission, SAFE_METHODS

from careops.models import STAFF_ROLES

ADMIN_ROLES = STAFF_ROLES


def is_staff_user(user) -> bool:
    return bool(user and user.is_authenticated and getattr(user, "role", None) in ADMIN_ROLES)


class IsAdminRole(BasePermission):
    """Allow access only to users with a staff role."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return is_staff_user(getattr(request, "user", None))


class IsPatientRole(BasePermission):
    """Allow access only to users with the patient role."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, "user", None)
        return bool(user and user.is_authenticated and getattr(user, "role", None) == "patient")


class IsSuperAdmin(BasePermission):
    """Only super admin."""
    def has_permission(self, request, view) -> bool:
        user = getattr(request, "user", None)
        return bool(user and user.is_authenticated and getattr(user, "role", None) == "super_admin")


class StaffOrReadOnly(BasePermission):
    """Any authenticated user may read; only staff may write."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, "user", None)
        if not (user and user.is_authenticated):
            return False
        return request.method in SAFE_METHODS or is_staff_user(user)


class SuperAdminOrReadOnly(BasePermission):
    """Staff may read; only super admin may write."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, "user", None)
        if not is_staff_user(user):
            return False
        return request.method in SAFE_METHODS or user.role == "super_admin"
