# clinic/forms.py
from django import forms
from django.contrib.auth.forms import AuthenticationForm

from clinic.navigation import APPEARANCE_CHOICES


# ----------------------------
# Bootstrap helper
# ----------------------------
class BootstrapFormMixin:
    """Apply Bootstrap .form-control to inputs (except checkbox/radio)."""
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        for _, field in self.fields.items():
            w = field.widget
            if getattr(w, "input_type", "") in {"checkbox", "radio"}:
                continue
            existing = w.attrs.get("class", "")
            w.attrs["class"] = (existing + " form-control").strip()


class BootstrapLoginForm(BootstrapFormMixin, AuthenticationForm):
    pass


class AppearanceForm(forms.Form):
    appearance = forms.ChoiceField(choices=APPEARANCE_CHOICES, widget=forms.RadioSelect)
