# clinic/urls.py
from django.contrib.auth.decorators import login_required
from django.urls import include, path

from clinic import views
from clinic.api import auth_views
from clinic.decorators import facility_required, patient_required

appearance = views.AppearanceSettingsView.as_view()

urlpatterns = [
    # Auth
    path("login/", views.SimpleLoginView.as_view(), name="login"),
    path("logout/", views.instant_logout, name="logout"),

    # Settings
    path("settings/", views.settings_router, name="settings_router"),
    path("patient/settings/appearance", patient_required(appearance), name="patient-appearance.edit"),
    path("settings/appearance", facility_required(appearance), name="facility-appearance.edit"),
    path("user/settings/appearance", login_required(appearance), name="appearance.edit"),

    # Session auth for the SPA
    path("api/auth/csrf/", auth_views.csrf, name="api_csrf"),
    path("api/auth/login/", auth_views.LoginView.as_view(), name="api_login"),
    path("api/auth/logout/", auth_views.LogoutView.as_view(), name="api_logout"),
    path("api/auth/me/", auth_views.MeView.as_view(), name="api_me"),

    # Facility API
    path("api/facility/", include("clinic.api.routes")),
]
