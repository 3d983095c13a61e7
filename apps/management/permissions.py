from rest_framework.permissions import BasePermission

class IsSuperuser(BasePermission):
    """Permission class to check if the user is a superuser."""
    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated and request.user.is_superuser)

class IsAdminUser(BasePermission):
    """Staff admins run the payments console; superusers are always staff here."""
    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and (user.is_staff or user.is_superuser))
