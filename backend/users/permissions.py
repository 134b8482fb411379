from rest_framework.permissions import BasePermission

from .utils import get_profile


class IsBranchManager(BasePermission):
    """Менеджер филиала или администратор."""

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        if user.is_staff:
            return True
        profile = get_profile(user)
        return profile is not None and profile.role in ("admin", "manager")
