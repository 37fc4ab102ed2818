# clinic/api/auth_views.py
import logging

from django.contrib.auth import authenticate, login, logout
from django.http import JsonResponse
from django.views.decorators.csrf import ensure_csrf_cookie
from django.middleware.csrf import get_token

from rest_framework.views import APIView
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework import status

from clinic.api.serializers import UserBasicSerializer
from clinic.context_processors import user_type_for

logger = logging.getLogger(__name__)


@ensure_csrf_cookie
def csrf(request):
    """
    Sets/refreshes the 'csrftoken' cookie and also returns the token in JSON,
    so the frontend can set the X-CSRFToken header right away.
    """
    token = get_token(request)
    return JsonResponse({"csrfToken": token})


class LoginView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        username = request.data.get("username")
        password = request.data.get("password")

        user = authenticate(request, username=username, password=password)
        if not user:
            logger.info("Failed API login for %r", username)
            return Response(
                {"success": False, "message": "Invalid credentials"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        login(request, user)

        # fresh token after login rotates it
        token = get_token(request)
        data = {
            "user": UserBasicSerializer(user).data,
            "userType": user_type_for(user),
            "csrfToken": token,
        }
        return Response(data)


class LogoutView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        logout(request)
        token = get_token(request)
        return Response({"success": True, "message": "Logged out.", "csrfToken": token})


class MeView(APIView):
    """Same auth block the server-rendered pages receive."""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response({
            "auth": {
                "user": UserBasicSerializer(request.user).data,
                "userType": user_type_for(request.user),
            }
        })
