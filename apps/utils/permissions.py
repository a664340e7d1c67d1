from rest_framework import permissions

from apps.utils.exceptions import UnauthorizedError


class IsAdminRole(permissions.BasePermission):
    """Allow staff accounts only; others get a 403 ``unauthorized`` error."""
    message = UnauthorizedError.default_detail
    code = UnauthorizedError.default_code

    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated and request.user.is_staff)


class IsDriver(permissions.BasePermission):
    """Allow users with a driver profile."""
    message = 'Driver account required.'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and hasattr(user, 'driver_profile'))
