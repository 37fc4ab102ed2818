# clinic/middleware.py
from django.conf import settings

from clinic.navigation import APPEARANCE_CHOICES

APPEARANCES = {value for value, _ in APPEARANCE_CHOICES}


class AppearanceMiddleware:
    """Exposes the appearance cookie as request.appearance (light/dark/system)."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        value = request.COOKIES.get(settings.CLINIC_APPEARANCE_COOKIE)
        request.appearance = value if value in APPEARANCES else "system"
        return self.get_response(request)
