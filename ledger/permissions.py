from rest_framework.permissions import BasePermission

from ledger.models import OwnershipType


class IsRecordOwner(BasePermission):
    """Only the user an entitlement record belongs to may see it."""

    message = "This action is unauthorized."

    def has_object_permission(self, request, view, obj) -> bool:
        return bool(request.user and request.user.is_authenticated and obj.user_id == request.user.id)


class CanRenewRecord(IsRecordOwner):
    """Renewal additionally requires the record to be a rental."""

    def has_object_permission(self, request, view, obj) -> bool:
        return super().has_object_permission(request, view, obj) and obj.ownership_type == OwnershipType.RENT
