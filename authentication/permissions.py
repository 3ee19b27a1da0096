"""
Role-based permissions.

- super_admin: full access, including user management and survey moments
- admin: read and write access to surveys
- viewer: read-only access
"""

from rest_framework import permissions


class IsSuperAdmin(permissions.BasePermission):
    """
    Super admin only: portal users, form moments.
    """
    message = "Only super admins can perform this action"

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        return getattr(request.user, 'role', None) == 'super_admin'


class IsAdminOrReadOnly(permissions.BasePermission):
    """
    Permission that allows:
    - Read access (GET, HEAD, OPTIONS) for all authenticated users
    - Write access (POST, PUT, PATCH, DELETE) for admins and super_admins only
    """
    message = "Viewers have read-only access"

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False

        if request.method in permissions.SAFE_METHODS:
            return True

        user_role = getattr(request.user, 'role', None)
        return user_role in ['admin', 'super_admin']

    def has_object_permission(self, request, view, obj):
        return self.has_permission(request, view)


class IsSuperAdminOrReadOnly(permissions.BasePermission):
    """
    Read access for all authenticated users; writes for super admins only.
    """
    message = "Only super admins can manage survey moments"

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False

        if request.method in permissions.SAFE_METHODS:
            return True

        return getattr(request.user, 'role', None) == 'super_admin'
