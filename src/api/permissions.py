"""Custom DRF permissions for the bonus back office."""
from rest_framework.permissions import BasePermission


class IsBonusAdmin(BasePermission):
    """Allow access only to authenticated staff users."""

    message = "Kun administratorer har tilgang til bonusmodulen."

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_staff)
