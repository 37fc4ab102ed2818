# clinic/context_processors.py
from django.conf import settings

from clinic.models import User

SIDEBAR_COOKIE = "sidebar_state"


def user_type_for(user):
    """Patients are `patient`; every other signed-in account is `facility`."""
    if not getattr(user, "is_authenticated", False):
        return None
    if callable(getattr(user, "is_patient", None)) and user.is_patient():
        return User.UserType.PATIENT.value
    return User.UserType.FACILITY.value


def share(request):
    """
    State every page receives:
      {"name", "auth": {"user", "userType"}, "sidebarOpen", "appearance"}
    """
    user = getattr(request, "user", None)
    signed_in = getattr(user, "is_authenticated", False)
    return {
        "name": settings.APP_NAME,
        "auth": {
            "user": user if signed_in else None,
            "userType": user_type_for(user),
        },
        "sidebarOpen": request.COOKIES.get(SIDEBAR_COOKIE, "true") == "true",
        "appearance": getattr(request, "appearance", "system"),
    }


def shared_page_state(request):
    return {"page_state": share(request)}
