# scheduling/api/permissions.py
from rest_framework.permissions import BasePermission


class IsTutor(BasePermission):
    """Allows access only to users with role TUTOR."""

    message = "You must be a tutor to access this resource."

    def has_permission(self, request, view):
        user = request.user
        return bool(getattr(user, "is_authenticated", False) and user.is_tutor())

