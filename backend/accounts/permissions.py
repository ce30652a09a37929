from rest_framework import permissions


def user_is_admin(user) -> bool:
    if user is None or not getattr(user, 'is_authenticated', False):
        return False
    return bool(getattr(user, 'is_admin_role', False))


class IsAdminRole(permissions.BasePermission):
    """Allow access only to administrators (role ADMIN or superuser)."""

    def has_permission(self, request, view):
        return user_is_admin(request.user)


class IsAdminOrReadOnly(permissions.BasePermission):
    """Any authenticated user may read; only administrators may write."""

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        if request.method in permissions.SAFE_METHODS:
            return True
        return user_is_admin(user)


class IsStaffRole(permissions.BasePermission):
    """GFM teachers, attendance takers and administrators; students are refused."""

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        return user_is_admin(user) or getattr(user, 'role', None) in ('GFM', 'ATTENDANCE_TAKER')
