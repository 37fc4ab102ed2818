# clinic/views.py
import logging

from django.conf import settings
from django.contrib import messages
from django.contrib.auth import login, logout
from django.contrib.auth.decorators import login_required
from django.shortcuts import redirect
from django.views.generic import FormView, TemplateView

from clinic.context_processors import share
from clinic.forms import AppearanceForm, BootstrapLoginForm
from clinic.navigation import Actor, PageStateError, appearance_page

logger = logging.getLogger(__name__)

APPEARANCE_COOKIE_MAX_AGE = 365 * 24 * 60 * 60


# =========================
# AUTH
# =========================
class SimpleLoginView(FormView):
    template_name = "auth/login.html"
    form_class = BootstrapLoginForm

    def get_form_kwargs(self):
        kwargs = super().get_form_kwargs()
        kwargs["request"] = self.request
        return kwargs

    def form_valid(self, form):
        login(self.request, form.get_user())
        return redirect("settings_router")

    def form_invalid(self, form):
        messages.error(self.request, "Invalid username or password.")
        return super().form_invalid(form)


def instant_logout(request):
    logout(request)
    messages.success(request, "Logged out.")
    return redirect("login")


# =========================
# ROLE ROUTER
# =========================
@login_required
def settings_router(request):
    if request.user.is_patient():
        return redirect("patient-appearance.edit")
    return redirect("facility-appearance.edit")


# =========================
# SETTINGS PAGES
# =========================
class AppearanceSettingsView(TemplateView):
    """
    Appearance settings, shared by patients and facility staff. Access
    control comes from the decorator on each mounted route; the breadcrumb
    is resolved from the shared page state.
    """
    template_name = "appearance/update.html"

    def get_context_data(self, **kwargs):
        ctx = super().get_context_data(**kwargs)
        try:
            actor = Actor.from_shared_state(share(self.request))
            ctx.update(appearance_page(actor))
        except PageStateError:
            logger.exception("Cannot render appearance settings for %s", self.request.path)
            raise
        ctx.setdefault("form", AppearanceForm(initial={"appearance": self.request.appearance}))
        return ctx

    def post(self, request, *args, **kwargs):
        form = AppearanceForm(request.POST)
        if not form.is_valid():
            return self.render_to_response(self.get_context_data(form=form), status=400)

        value = form.cleaned_data["appearance"]
        response = redirect(request.path)
        response.set_cookie(
            settings.CLINIC_APPEARANCE_COOKIE, value,
            max_age=APPEARANCE_COOKIE_MAX_AGE, samesite="Lax",
        )
        logger.debug("Appearance for %s set to %s", request.user.pk, value)
        return response
