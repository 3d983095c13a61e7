from rest_framework import permissions
from rest_framework.exceptions import ValidationError


class IsClient(permissions.BasePermission):
    def has_permission(self, request, view):
        if not request.user.is_authenticated:
            return False
        return hasattr(request.user, 'client')


class IsWorker(permissions.BasePermission):
    def has_permission(self, request, view):
        if not request.user.is_authenticated:
            return False
        return hasattr(request.user, 'worker')


class IsClientOrAdmin(permissions.BasePermission):
    def has_permission(self, request, view):
        if not request.user.is_authenticated:
            return False
        return hasattr(request.user, 'client') or request.user.is_staff or request.user.is_superuser


def expected_version(request, data):
    """Version the caller last saw, from the parsed body or an If-Match header."""
    version = data.get('version')
    if version is None:
        header = request.headers.get('If-Match')
        if header:
            try:
                version = int(header.strip().strip('"'))
            except ValueError:
                raise ValidationError({"version": ["If-Match must carry an integer version."]})
    return version
