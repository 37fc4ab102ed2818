# clinic/decorators.py
from functools import wraps

from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.shortcuts import redirect


def _role_required(check, denied_message):
    def decorator(view_func):
        @wraps(view_func)
        @login_required
        def _wrapped(request, *args, **kwargs):
            if not check(request.user):
                messages.error(request, denied_message)
                return redirect("settings_router")
            return view_func(request, *args, **kwargs)
        return _wrapped
    return decorator


def patient_required(view_func):
    return _role_required(lambda u: u.is_patient(), "That page is for patients only.")(view_func)


def facility_required(view_func):
    return _role_required(lambda u: u.is_facility_user(), "That page is for facility staff only.")(view_func)
