from django.conf import settings
from django.contrib.auth import get_user_model
from rest_framework import serializers

from clinic.models import (
    Appointment,
    AvailabilityException,
    AvailabilityRule,
    AvailabilitySlot,
    Doctor,
    FacilityDoctor,
    PatientProfile,
)

User = get_user_model()

# largest id / page number the database integer columns can hold
MAX_INT = 2**31 - 1


# ----------------------------
# Small user serializer (auth)
# ----------------------------
class UserBasicSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ["id", "username", "email", "user_type", "staff_role", "facility", "doctor"]


# ----------------------------
# Doctors & patients
# ----------------------------
class DoctorSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Doctor
        fields = ["id", "display_name", "first_name", "last_name", "specialty"]
        read_only_fields = fields


class PatientSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = PatientProfile
        fields = ["id", "first_name", "last_name", "phone", "preferred_language"]
        read_only_fields = fields


class AvailabilityRuleSerializer(serializers.ModelSerializer):
    doctor = DoctorSummarySerializer(read_only=True)

    class Meta:
        model = AvailabilityRule
        fields = [
            "id",
            "doctor_id",
            "facility_id",
            "doctor",
            "day_of_week",
            "start_time",
            "end_time",
            "slot_duration_minutes",
            "slot_interval_minutes",
            "active",
            "meta",
        ]
        read_only_fields = fields


class DoctorDetailSerializer(serializers.ModelSerializer):
    """
    Single doctor with the availability rules of the requesting facility.
    Expects `facility_rules` prefetched onto the instance.
    """
    availability_rules = AvailabilityRuleSerializer(source="facility_rules", many=True, read_only=True)

    class Meta:
        model = Doctor
        fields = [
            "id",
            "display_name",
            "first_name",
            "last_name",
            "specialty",
            "npi",
            "profile",
            "contact",
            "availability_rules",
        ]
        read_only_fields = fields


# ----------------------------
# Slots & appointments
# ----------------------------
class AppointmentSerializer(serializers.ModelSerializer):
    patient = PatientSummarySerializer(read_only=True)

    class Meta:
        model = Appointment
        fields = [
            "id",
            "patient",
            "facility_id",
            "doctor_id",
            "availability_slot_id",
            "start_at",
            "end_at",
            "status",
            "notes",
        ]
        read_only_fields = fields


class AvailabilitySlotSerializer(serializers.ModelSerializer):
    doctor = DoctorSummarySerializer(read_only=True)
    appointments = AppointmentSerializer(many=True, read_only=True)

    class Meta:
        model = AvailabilitySlot
        fields = [
            "id",
            "facility_id",
            "doctor_id",
            "doctor",
            "start_at",
            "end_at",
            "status",
            "capacity",
            "reserved_until",
            "created_from_rule_id",
            "appointments",
        ]
        read_only_fields = fields


_DATETIME = serializers.DateTimeField()


class VirtualSlotSerializer(serializers.Serializer):
    """
    Renders an Appointment as a slot-shaped row so calendars can show
    appointments whose slot is missing or outside the requested page.
    The id is the negated appointment id.
    """
    id = serializers.SerializerMethodField()
    facility_id = serializers.IntegerField(read_only=True)
    doctor_id = serializers.IntegerField(read_only=True)
    doctor = DoctorSummarySerializer(read_only=True)
    start_at = serializers.SerializerMethodField()
    end_at = serializers.SerializerMethodField()
    status = serializers.SerializerMethodField()
    capacity = serializers.SerializerMethodField()
    reserved_until = serializers.SerializerMethodField()
    created_from_rule_id = serializers.SerializerMethodField()
    appointments = serializers.SerializerMethodField()

    def get_id(self, obj):
        return -obj.id

    def get_start_at(self, obj):
        return _DATETIME.to_representation(display_window(obj)[0])

    def get_end_at(self, obj):
        return _DATETIME.to_representation(display_window(obj)[1])

    def get_status(self, obj):
        if obj.status == Appointment.Status.CANCELLED:
            return AvailabilitySlot.Status.CANCELLED
        return AvailabilitySlot.Status.BOOKED

    def get_capacity(self, obj):
        return 1

    def get_reserved_until(self, obj):
        return None

    def get_created_from_rule_id(self, obj):
        return None

    def get_appointments(self, obj):
        return [AppointmentSerializer(obj).data]


def display_window(appointment):
    """The linked slot's times win over the appointment's own."""
    slot = appointment.availability_slot
    if slot is not None:
        return slot.start_at, slot.end_at
    return appointment.start_at, appointment.end_at


class SlotQuerySerializer(serializers.Serializer):
    """
    Query params for GET /api/facility/availability/slots.
    per_page above the configured maximum is capped, not rejected.
    """
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)
    doctor_id = serializers.IntegerField(required=False, min_value=1, max_value=MAX_INT)
    page = serializers.IntegerField(required=False, min_value=1, max_value=MAX_INT, default=1)
    per_page = serializers.IntegerField(required=False, min_value=1, default=settings.CLINIC_SLOTS_PER_PAGE)

    def validate_per_page(self, v):
        return min(v, settings.CLINIC_SLOTS_MAX_PER_PAGE)


class DoctorFilterSerializer(serializers.Serializer):
    doctor_id = serializers.IntegerField(required=False, min_value=1, max_value=MAX_INT)


class ExceptionQuerySerializer(DoctorFilterSerializer):
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)


# ----------------------------
# Availability exceptions
# ----------------------------
class AvailabilityExceptionSerializer(serializers.ModelSerializer):
    doctor = DoctorSummarySerializer(read_only=True)
    reason = serializers.CharField(read_only=True, allow_null=True)

    class Meta:
        model = AvailabilityException
        fields = [
            "id",
            "availability_rule_id",
            "facility_id",
            "doctor_id",
            "doctor",
            "start_at",
            "end_at",
            "type",
            "reason",
            "meta",
        ]
        read_only_fields = fields


class _ExceptionWindowSerializer(serializers.Serializer):
    type = serializers.ChoiceField(
        choices=AvailabilityException.Type.choices, required=False, allow_null=True,
        error_messages={"invalid_choice": "Type must be one of: blocked, override, or emergency."},
    )
    reason = serializers.CharField(
        required=False, allow_null=True, allow_blank=True, max_length=500,
        error_messages={"max_length": "Reason cannot exceed 500 characters."},
    )

    def _check_window(self, start, end):
        if start and end and start > end:
            raise serializers.ValidationError({"start_at": "Start date must be before or equal to end date."})


class AvailabilityExceptionCreateSerializer(_ExceptionWindowSerializer):
    """Expects `facility` in the serializer context."""
    doctor_id = serializers.IntegerField(max_value=MAX_INT, error_messages={"required": "Doctor ID is required."})
    start_at = serializers.DateTimeField(error_messages={"required": "Start date is required."})
    end_at = serializers.DateTimeField(error_messages={"required": "End date is required."})
    availability_rule_id = serializers.IntegerField(required=False, allow_null=True, max_value=MAX_INT)

    def validate_doctor_id(self, v):
        facility = self.context["facility"]
        if not FacilityDoctor.objects.filter(facility=facility, doctor_id=v, active=True).exists():
            raise serializers.ValidationError(
                "The selected doctor does not exist or does not belong to this facility."
            )
        return v

    def validate_availability_rule_id(self, v):
        if v is None:
            return v
        facility = self.context["facility"]
        if not AvailabilityRule.objects.filter(pk=v, facility=facility).exists():
            raise serializers.ValidationError("The selected availability rule does not exist.")
        return v

    def validate(self, attrs):
        self._check_window(attrs.get("start_at"), attrs.get("end_at"))
        return attrs

    def create(self, validated_data):
        reason = validated_data.get("reason")
        return AvailabilityException.objects.create(
            facility=self.context["facility"],
            doctor_id=validated_data["doctor_id"],
            availability_rule_id=validated_data.get("availability_rule_id"),
            start_at=validated_data["start_at"],
            end_at=validated_data["end_at"],
            type=validated_data.get("type") or AvailabilityException.Type.BLOCKED,
            meta={"reason": reason} if reason else None,
        )


class AvailabilityExceptionUpdateSerializer(_ExceptionWindowSerializer):
    """Partial update of window, type and reason; doctor and facility are fixed."""
    start_at = serializers.DateTimeField(required=False)
    end_at = serializers.DateTimeField(required=False)

    def validate(self, attrs):
        start = attrs.get("start_at", self.instance.start_at if self.instance else None)
        end = attrs.get("end_at", self.instance.end_at if self.instance else None)
        self._check_window(start, end)
        return attrs

    def update(self, instance, validated_data):
        if "start_at" in validated_data:
            instance.start_at = validated_data["start_at"]
        if "end_at" in validated_data:
            instance.end_at = validated_data["end_at"]
        if "type" in validated_data:
            instance.type = validated_data["type"] or AvailabilityException.Type.BLOCKED
        if "reason" in validated_data:
            reason = validated_data["reason"]
            instance.meta = {"reason": reason} if reason else None
        instance.save()
        return instance
