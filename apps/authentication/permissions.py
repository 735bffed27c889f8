from rest_framework import permissions

from .models import ADMIN_ROLES


class IsAdmin(permissions.BasePermission):
    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and getattr(user, "role", None) in ADMIN_ROLES)


class IsAdminOrClient(permissions.BasePermission):
    def has_permission(self, request, view):
        user = request.user
        return bool(
            user
            and user.is_authenticated
            and getattr(user, "role", None) in (*ADMIN_ROLES, "client")
        )
