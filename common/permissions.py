"""
Permission classes shared across apps.
"""
from rest_framework import permissions


def is_platform_admin(user) -> bool:
    """Superusers and users holding the `admin` role manage the platform."""
    if not user or not user.is_authenticated:
        return False
    if user.is_superuser:
        return True
    return user.roles.filter(role="admin").exists()


class IsPlatformAdmin(permissions.BasePermission):
    """Restrict access to back-office operations."""

    def has_permission(self, request, view):
        return is_platform_admin(getattr(request, "user", None))
