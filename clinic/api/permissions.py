# clinic/api/permissions.py
from rest_framework.permissions import BasePermission


class IsFacilityUser(BasePermission):
    """
    Allows access only to signed-in facility staff attached to a facility.
    Patients and staff without a facility are rejected the same way as guests.
    """

    message = "Unauthorized. Facility user not found."

    def has_permission(self, request, view):
        u = request.user
        if not getattr(u, "is_authenticated", False):
            return False
        if not callable(getattr(u, "is_facility_user", None)) or not u.is_facility_user():
            return False
        return u.facility_id is not None
