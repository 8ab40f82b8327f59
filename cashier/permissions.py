# cashier/permissions.py
from rest_framework.permissions import BasePermission


def is_admin_or_manager(user) -> bool:
    if not user or not user.is_authenticated:
        return False
    if user.is_superuser:
        return True
    role = (getattr(user, "role", "") or "").lower().strip()
    return role in ("admin", "manager")


class IsShiftOwnerOrManager(BasePermission):
    """
    Cashiers only see their own shifts.
    Admin / manager see every shift.
    """
    message = "Shift milik kasir lain."

    def has_object_permission(self, request, view, obj):
        user = getattr(request, "user", None)
        if is_admin_or_manager(user):
            return True
        return bool(user and user.is_authenticated and obj.operator_id == user.id)
