# clinic/navigation.py
"""
Role-aware navigation for the settings pages.

The appearance page is shared by patients and facility staff; only the
breadcrumb destination differs. Everything here is a pure function of the
actor's user type.
"""
from collections.abc import Mapping
from dataclasses import dataclass

from django.urls import reverse

from clinic.models import User

UserType = User.UserType

APPEARANCE_TITLE = "Appearance settings"
APPEARANCE_DESCRIPTION = "Update your account's appearance settings"
PATIENT_APPEARANCE_PATH = "/patient/settings/appearance"
APPEARANCE_CHOICES = (
    ("light", "Light"),
    ("dark", "Dark"),
    ("system", "System"),
)


class PageStateError(ValueError):
    """Shared page state is missing the auth block or carries an unknown user type."""


@dataclass(frozen=True)
class Breadcrumb:
    title: str
    href: str


@dataclass(frozen=True)
class Actor:
    user_type: UserType

    @classmethod
    def from_shared_state(cls, props):
        auth = props.get("auth") if isinstance(props, Mapping) else None
        if not isinstance(auth, Mapping):
            raise PageStateError("Shared page state has no auth block.")
        raw = auth.get("userType")
        try:
            return cls(UserType(raw))
        except ValueError:
            raise PageStateError(f"Unknown user type {raw!r}.") from None


def appearance_breadcrumb(actor: Actor) -> Breadcrumb:
    if actor.user_type == UserType.PATIENT:
        href = PATIENT_APPEARANCE_PATH
    elif actor.user_type == UserType.FACILITY:
        href = reverse("appearance.edit")
    else:
        raise PageStateError(f"No appearance page for user type {actor.user_type!r}.")
    return Breadcrumb(APPEARANCE_TITLE, href)


def appearance_page(actor: Actor) -> dict:
    """Template context for appearance/update.html."""
    return {
        "breadcrumbs": [appearance_breadcrumb(actor)],
        "page_title": APPEARANCE_TITLE,
        "heading": {"title": APPEARANCE_TITLE, "description": APPEARANCE_DESCRIPTION},
        "appearance_tabs": [{"value": v, "label": label} for v, label in APPEARANCE_CHOICES],
    }
