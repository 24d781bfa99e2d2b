"""
Role-based permission classes shared by the budget, procurement and
sequences apps.
"""
from rest_framework.permissions import BasePermission, SAFE_METHODS


class IsAdminRole(BasePermission):
    """
    Allow access only to users with the ``admin`` role.

    Usage:
        def get_permissions(self):
            if self.action in ['approve', 'reject']:
                return [IsAuthenticated(), IsAdminRole()]
            return super().get_permissions()
    """

    message = 'Only administrators can perform this action.'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_admin)


class IsAdminRoleOrReadOnly(BasePermission):
    """Read access for any authenticated user, writes for admins only."""

    message = 'Only administrators can modify this resource.'

    def has_permission(self, request, view):
        if request.method in SAFE_METHODS:
            return True
        user = request.user
        return bool(user and user.is_authenticated and user.is_admin)
