# clinic/api/routes.py
"""
Facility API route table.

Every binding maps (method, path) to a viewset action and a route name, and
carries the permission classes that guard it. `build_urlpatterns` turns the
table into Django URL patterns, refusing tables with duplicate names,
duplicate (method, path) pairs or ungated bindings.
"""
from collections import OrderedDict
from dataclasses import dataclass

from django.core.exceptions import ImproperlyConfigured
from django.urls import path

from clinic.api.permissions import IsFacilityUser
from clinic.api.views import (
    AvailabilityExceptionViewSet,
    AvailabilityRuleViewSet,
    AvailabilitySlotViewSet,
    DoctorViewSet,
)

FACILITY_GATE = (IsFacilityUser,)


@dataclass(frozen=True)
class RouteBinding:
    method: str
    path: str
    viewset: type
    action: str
    name: str
    permission_classes: tuple = FACILITY_GATE


FACILITY_ROUTES = (
    RouteBinding("get", "availability/slots", AvailabilitySlotViewSet, "index",
                 "api.facility.availability.slots"),
    RouteBinding("get", "availability/rules", AvailabilityRuleViewSet, "index",
                 "api.facility.availability.rules"),
    RouteBinding("get", "availability/exceptions", AvailabilityExceptionViewSet, "index",
                 "api.facility.availability.exceptions.index"),
    RouteBinding("post", "availability/exceptions", AvailabilityExceptionViewSet, "store",
                 "api.facility.availability.exceptions.store"),
    RouteBinding("put", "availability/exceptions/<int:pk>", AvailabilityExceptionViewSet, "update",
                 "api.facility.availability.exceptions.update"),
    RouteBinding("delete", "availability/exceptions/<int:pk>", AvailabilityExceptionViewSet, "destroy",
                 "api.facility.availability.exceptions.destroy"),
    RouteBinding("get", "doctors", DoctorViewSet, "index",
                 "api.facility.doctors"),
    RouteBinding("get", "doctors/<int:pk>", DoctorViewSet, "show",
                 "api.facility.doctors.show"),
)


def _check_table(bindings):
    names, routes = set(), set()
    for b in bindings:
        if b.name in names:
            raise ImproperlyConfigured(f"Duplicate route name {b.name!r}.")
        names.add(b.name)

        key = (b.method.lower(), b.path)
        if key in routes:
            raise ImproperlyConfigured(f"Duplicate route {b.method.upper()} {b.path!r}.")
        routes.add(key)

        if IsFacilityUser not in b.permission_classes:
            raise ImproperlyConfigured(f"Route {b.name!r} is not behind the facility gate.")

        if not callable(getattr(b.viewset, b.action, None)):
            raise ImproperlyConfigured(f"{b.viewset.__name__} has no action {b.action!r}.")


def build_urlpatterns(bindings=FACILITY_ROUTES):
    _check_table(bindings)

    by_path = OrderedDict()
    for b in bindings:
        by_path.setdefault(b.path, []).append(b)

    patterns = []
    for route, group in by_path.items():
        first = group[0]
        for b in group[1:]:
            if b.viewset is not first.viewset or tuple(b.permission_classes) != tuple(first.permission_classes):
                raise ImproperlyConfigured(
                    f"Bindings on {route!r} disagree on viewset or permissions."
                )
        view = first.viewset.as_view(
            {b.method.lower(): b.action for b in group},
            permission_classes=list(first.permission_classes),
        )
        # one pattern per name, same view, so every name reverses to this path
        patterns.extend(path(route, view, name=b.name) for b in group)
    return patterns


urlpatterns = build_urlpatterns()
