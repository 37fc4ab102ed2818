# clinic/api/views.py
import logging
import math

from django.db.models import Prefetch, Q
from rest_framework import exceptions, viewsets, status as http_status
from rest_framework.response import Response

from clinic.models import (
    Appointment,
    AvailabilityException,
    AvailabilityRule,
    AvailabilitySlot,
    Doctor,
)
from clinic.api.permissions import IsFacilityUser
from clinic.api.serializers import (
    AvailabilityExceptionCreateSerializer,
    AvailabilityExceptionSerializer,
    AvailabilityExceptionUpdateSerializer,
    AvailabilityRuleSerializer,
    AvailabilitySlotSerializer,
    DoctorDetailSerializer,
    DoctorFilterSerializer,
    DoctorSummarySerializer,
    ExceptionQuerySerializer,
    SlotQuerySerializer,
    VirtualSlotSerializer,
    display_window,
)

logger = logging.getLogger(__name__)


# ---------- Facility gate ----------

class FacilityViewSet(viewsets.ViewSet):
    """
    Base for every facility API handler. The permission check runs before
    the action; any failure is reported as 401, whether the caller is a
    guest, a patient or staff without a facility.
    """

    permission_classes = [IsFacilityUser]

    def permission_denied(self, request, message=None, code=None):
        logger.info(
            "Facility gate rejected %s %s (user=%s)",
            request.method, request.path, getattr(request.user, "pk", None),
        )
        raise exceptions.NotAuthenticated(message or IsFacilityUser.message)

    @property
    def facility(self):
        return self.request.user.facility

    def scoped_doctor_id(self, requested=None):
        """Doctor accounts only ever see their own doctor."""
        u = self.request.user
        if u.is_doctor_staff():
            return u.doctor_id
        return requested

    def _validated_query(self, serializer_class):
        s = serializer_class(data=self.request.query_params)
        s.is_valid(raise_exception=True)
        return s.validated_data


def _as_int(value):
    """Form and JSON bodies may carry ids as strings like "05"."""
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _date_range_q(field, start_date=None, end_date=None):
    q = Q()
    if start_date:
        q &= Q(**{f"{field}__date__gte": start_date})
    if end_date:
        q &= Q(**{f"{field}__date__lte": end_date})
    return q


# ---------- Availability slots ----------

class AvailabilitySlotViewSet(FacilityViewSet):

    def index(self, request):
        params = self._validated_query(SlotQuerySerializer)
        doctor_id = self.scoped_doctor_id(params.get("doctor_id"))
        start_date = params.get("start_date")
        end_date = params.get("end_date")
        page = params["page"]
        per_page = params["per_page"]

        qs = (
            AvailabilitySlot.objects.filter(facility=self.facility)
            .select_related("doctor")
            .prefetch_related(
                Prefetch("appointments", queryset=Appointment.objects.select_related("patient"))
            )
            .order_by("start_at", "id")
        )
        if doctor_id:
            qs = qs.filter(doctor_id=doctor_id)
        qs = qs.filter(_date_range_q("start_at", start_date, end_date))

        total = qs.count()
        last_page = max(1, math.ceil(total / per_page))
        offset = (page - 1) * per_page
        slots = list(qs[offset:offset + per_page])

        virtual = self._virtual_appointments(
            doctor_id, start_date, end_date, page_slot_ids=[s.id for s in slots]
        )

        rows = [(s.start_at, AvailabilitySlotSerializer(s).data) for s in slots]
        rows += [(display_window(a)[0], VirtualSlotSerializer(a).data) for a in virtual]
        rows.sort(key=lambda r: r[0])

        logger.debug(
            "Slots for facility %s: %s real, %s virtual (page %s/%s)",
            self.facility.pk, len(slots), len(virtual), page, last_page,
        )

        return Response({
            "success": True,
            "data": [data for _, data in rows],
            "meta": {
                "current_page": page,
                "last_page": last_page,
                "per_page": per_page,
                "total": total + len(virtual),
            },
        })

    def _virtual_appointments(self, doctor_id, start_date, end_date, page_slot_ids):
        """Appointments with no slot, or whose slot is not on this page."""
        qs = (
            Appointment.objects.filter(facility=self.facility)
            .select_related("doctor", "patient", "availability_slot")
            .filter(Q(availability_slot__isnull=True) | ~Q(availability_slot_id__in=page_slot_ids))
            .order_by("start_at", "id")
        )
        if doctor_id:
            qs = qs.filter(doctor_id=doctor_id)
        if start_date or end_date:
            qs = qs.filter(
                _date_range_q("start_at", start_date, end_date)
                | _date_range_q("availability_slot__start_at", start_date, end_date)
            )
        return list(qs)


# ---------- Availability rules ----------

class AvailabilityRuleViewSet(FacilityViewSet):

    def index(self, request):
        params = self._validated_query(DoctorFilterSerializer)
        qs = (
            AvailabilityRule.objects.filter(facility=self.facility, active=True)
            .select_related("doctor")
            .order_by("day_of_week", "start_time")
        )
        if params.get("doctor_id"):
            qs = qs.filter(doctor_id=params["doctor_id"])
        return Response({"success": True, "data": AvailabilityRuleSerializer(qs, many=True).data})


# ---------- Availability exceptions ----------

class AvailabilityExceptionViewSet(FacilityViewSet):

    def index(self, request):
        params = self._validated_query(ExceptionQuerySerializer)
        doctor_id = self.scoped_doctor_id(params.get("doctor_id"))
        qs = (
            AvailabilityException.objects.filter(facility=self.facility)
            .select_related("doctor")
            .order_by("start_at", "id")
        )
        if doctor_id:
            qs = qs.filter(doctor_id=doctor_id)
        if params.get("start_date"):
            qs = qs.filter(end_at__date__gte=params["start_date"])
        if params.get("end_date"):
            qs = qs.filter(start_at__date__lte=params["end_date"])
        return Response({"success": True, "data": AvailabilityExceptionSerializer(qs, many=True).data})

    def store(self, request):
        u = request.user
        if u.is_doctor_staff() and _as_int(request.data.get("doctor_id")) != u.doctor_id:
            raise exceptions.PermissionDenied("Unauthorized. Doctors can only create exceptions for themselves.")

        s = AvailabilityExceptionCreateSerializer(data=request.data, context={"facility": self.facility})
        s.is_valid(raise_exception=True)
        exc = s.save()
        logger.info("Availability exception %s created for doctor %s by %s", exc.pk, exc.doctor_id, u.pk)
        return Response(
            {
                "success": True,
                "data": AvailabilityExceptionSerializer(exc).data,
                "message": "Availability exception created successfully.",
            },
            status=http_status.HTTP_201_CREATED,
        )

    def update(self, request, pk=None):
        exc = self._get_exception(pk)
        s = AvailabilityExceptionUpdateSerializer(exc, data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        exc = s.save()
        logger.info("Availability exception %s updated by %s", exc.pk, request.user.pk)
        return Response({
            "success": True,
            "data": AvailabilityExceptionSerializer(exc).data,
            "message": "Availability exception updated successfully.",
        })

    def destroy(self, request, pk=None):
        exc = self._get_exception(pk)
        exc.delete()
        logger.info("Availability exception %s deleted by %s", pk, request.user.pk)
        return Response({"success": True, "message": "Availability exception deleted successfully."})

    def _get_exception(self, pk):
        exc = (
            AvailabilityException.objects.filter(facility=self.facility, pk=pk)
            .select_related("doctor")
            .first()
        )
        if exc is None:
            raise exceptions.NotFound("Availability exception not found.")
        u = self.request.user
        if u.is_doctor_staff() and exc.doctor_id != u.doctor_id:
            raise exceptions.PermissionDenied("Unauthorized. Doctors can only manage their own exceptions.")
        return exc


# ---------- Doctors ----------

class DoctorViewSet(FacilityViewSet):

    def index(self, request):
        qs = (
            Doctor.objects.filter(memberships__facility=self.facility, memberships__active=True)
            .distinct()
            .order_by("display_name")
        )
        return Response({"success": True, "data": DoctorSummarySerializer(qs, many=True).data})

    def show(self, request, pk=None):
        doctor = (
            Doctor.objects.filter(pk=pk, memberships__facility=self.facility)
            .prefetch_related(
                Prefetch(
                    "availability_rules",
                    queryset=AvailabilityRule.objects.filter(facility=self.facility).select_related("doctor"),
                    to_attr="facility_rules",
                )
            )
            .distinct()
            .first()
        )
        if doctor is None:
            raise exceptions.NotFound("Doctor not found or does not belong to this facility.")
        data = DoctorDetailSerializer(doctor).data
        return Response({"success": True, "data": data})
