# clinicflow/urls.py
from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path("admin/", admin.site.urls),

    # OAuth2 tokens for API clients
    path("o/", include("oauth2_provider.urls", namespace="oauth2_provider")),

    # Facility API (route table) + settings pages live in clinic.urls
    path("", include("clinic.urls")),
]
