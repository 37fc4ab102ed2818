from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.core.exceptions import ValidationError
from django.db import models
import uuid


# ----------------------------
# FACILITIES & DOCTORS
# ----------------------------
class Facility(models.Model):
    name = models.CharField(max_length=150)
    slug = models.SlugField(max_length=150, unique=True)
    address = models.TextField(blank=True)
    phone = models.CharField(max_length=30, blank=True)
    locale = models.CharField(max_length=10, blank=True)
    meta = models.JSONField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        verbose_name_plural = "facilities"

    def __str__(self) -> str:
        return self.name


class Doctor(models.Model):
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    display_name = models.CharField(max_length=200)
    npi = models.CharField(max_length=20, blank=True)
    specialty = models.CharField(max_length=150, blank=True)
    profile = models.TextField(blank=True)
    contact = models.JSONField(null=True, blank=True)

    facilities = models.ManyToManyField(Facility, through="FacilityDoctor", related_name="doctors")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["display_name"]

    def save(self, *args, **kwargs):
        if not self.display_name:
            self.display_name = f"{self.first_name} {self.last_name}".strip()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return self.display_name


class FacilityDoctor(models.Model):
    """Membership of a doctor in a facility. Inactive members stay resolvable by id."""
    facility = models.ForeignKey(Facility, on_delete=models.PROTECT, related_name="memberships")
    doctor = models.ForeignKey(Doctor, on_delete=models.PROTECT, related_name="memberships")
    role = models.CharField(max_length=100, blank=True)
    active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = ("facility", "doctor")

    def __str__(self):
        return f"{self.doctor} @ {self.facility} ({'active' if self.active else 'inactive'})"


# ----------------------------
# AUTH USER
# ----------------------------
class User(AbstractUser):
    class UserType(models.TextChoices):
        PATIENT = "patient", "Patient"
        FACILITY = "facility", "Facility"

    class StaffRole(models.TextChoices):
        ADMIN = "admin", "Admin"
        RECEPTIONIST = "receptionist", "Receptionist"
        DOCTOR = "doctor", "Doctor"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    user_type = models.CharField(max_length=20, choices=UserType.choices, default=UserType.PATIENT)

    # facility staff only
    facility = models.ForeignKey(
        Facility, on_delete=models.SET_NULL, null=True, blank=True, related_name="staff"
    )
    staff_role = models.CharField(max_length=20, choices=StaffRole.choices, default=StaffRole.RECEPTIONIST)
    doctor = models.ForeignKey(
        Doctor, on_delete=models.SET_NULL, null=True, blank=True, related_name="staff_accounts"
    )

    def is_patient(self) -> bool:
        return self.user_type == self.UserType.PATIENT

    def is_facility_user(self) -> bool:
        return self.user_type == self.UserType.FACILITY

    def is_doctor_staff(self) -> bool:
        """Doctor accounts are limited to their own calendar."""
        return self.is_facility_user() and self.staff_role == self.StaffRole.DOCTOR and self.doctor_id is not None


class PatientProfile(models.Model):
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="patient")
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    phone = models.CharField(max_length=30, blank=True)
    dob = models.DateField(null=True, blank=True)
    preferred_language = models.CharField(max_length=10, blank=True)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __str__(self) -> str:
        return self.full_name or self.user.username


# -------------------------------------------------------
# AVAILABILITY
# -------------------------------------------------------
class AvailabilityRule(models.Model):
    """
    Repeating weekly window for a doctor at a facility.
    Slots are cut from it every `slot_interval_minutes` (or the duration).
    day_of_week follows 0=Sun .. 6=Sat.
    """
    DAYS_OF_WEEK = [
        (0, "Sun"),
        (1, "Mon"),
        (2, "Tue"),
        (3, "Wed"),
        (4, "Thu"),
        (5, "Fri"),
        (6, "Sat"),
    ]

    doctor = models.ForeignKey(Doctor, on_delete=models.CASCADE, related_name="availability_rules")
    facility = models.ForeignKey(Facility, on_delete=models.CASCADE, related_name="availability_rules")
    day_of_week = models.PositiveSmallIntegerField(choices=DAYS_OF_WEEK)
    start_time = models.TimeField()
    end_time = models.TimeField()
    slot_duration_minutes = models.PositiveIntegerField()
    slot_interval_minutes = models.PositiveIntegerField(null=True, blank=True)
    active = models.BooleanField(default=True)
    meta = models.JSONField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["day_of_week", "start_time"]
        indexes = [
            models.Index(fields=["doctor", "facility"]),
        ]

    @property
    def step_minutes(self) -> int:
        return self.slot_interval_minutes or self.slot_duration_minutes

    def clean(self):
        if self.start_time >= self.end_time:
            raise ValidationError("Rule start_time must be before end_time.")
        if not self.slot_duration_minutes:
            raise ValidationError("slot_duration_minutes must be positive.")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)

    def __str__(self):
        return (
            f"{self.doctor} @ {self.facility} | {self.get_day_of_week_display()} "
            f"{self.start_time}–{self.end_time} ({'on' if self.active else 'off'})"
        )


class AvailabilitySlot(models.Model):
    class Status(models.TextChoices):
        OPEN = "open", "Open"
        RESERVED = "reserved", "Reserved"
        BOOKED = "booked", "Booked"
        CANCELLED = "cancelled", "Cancelled"

    facility = models.ForeignKey(Facility, on_delete=models.CASCADE, related_name="availability_slots")
    doctor = models.ForeignKey(Doctor, on_delete=models.CASCADE, related_name="availability_slots")
    start_at = models.DateTimeField()
    end_at = models.DateTimeField()
    status = models.CharField(max_length=12, choices=Status.choices, default=Status.OPEN)
    capacity = models.PositiveIntegerField(default=1)
    reserved_until = models.DateTimeField(null=True, blank=True)
    created_from_rule = models.ForeignKey(
        AvailabilityRule, null=True, blank=True, on_delete=models.SET_NULL, related_name="availability_slots"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["start_at"]
        indexes = [
            models.Index(fields=["start_at"]),
            models.Index(fields=["doctor", "start_at"]),
            models.Index(fields=["facility", "start_at"]),
        ]

    def clean(self):
        if self.start_at >= self.end_at:
            raise ValidationError("Slot start must be before end.")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.doctor} | {self.start_at:%Y-%m-%d %H:%M} → {self.end_at:%H:%M} [{self.status}]"


class AvailabilityException(models.Model):
    """
    Blocked (or overridden) period for a doctor at a facility.
    Slot generation skips any day an exception overlaps.
    """
    class Type(models.TextChoices):
        BLOCKED = "blocked", "Blocked"
        OVERRIDE = "override", "Override"
        EMERGENCY = "emergency", "Emergency"

    availability_rule = models.ForeignKey(
        AvailabilityRule, null=True, blank=True, on_delete=models.CASCADE, related_name="exceptions"
    )
    facility = models.ForeignKey(Facility, on_delete=models.CASCADE, related_name="availability_exceptions")
    doctor = models.ForeignKey(Doctor, on_delete=models.CASCADE, related_name="availability_exceptions")
    start_at = models.DateTimeField()
    end_at = models.DateTimeField()
    type = models.CharField(max_length=12, choices=Type.choices, default=Type.BLOCKED)
    meta = models.JSONField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["start_at"]
        indexes = [
            models.Index(fields=["facility", "doctor", "start_at"]),
        ]

    @property
    def reason(self):
        return (self.meta or {}).get("reason")

    def clean(self):
        if self.start_at > self.end_at:
            raise ValidationError("Exception start must be before or equal to end.")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.doctor} | {self.start_at:%Y-%m-%d %H:%M}–{self.end_at:%Y-%m-%d %H:%M} ({self.type})"


# ----------------------------
# APPOINTMENTS
# ----------------------------
class Appointment(models.Model):
    class Status(models.TextChoices):
        SCHEDULED = "scheduled", "Scheduled"
        CHECKED_IN = "checked_in", "Checked in"
        IN_PROGRESS = "in_progress", "In progress"
        COMPLETED = "completed", "Completed"
        NO_SHOW = "no_show", "No show"
        CANCELLED = "cancelled", "Cancelled"

    patient = models.ForeignKey(PatientProfile, on_delete=models.CASCADE, related_name="appointments")
    facility = models.ForeignKey(Facility, on_delete=models.CASCADE, related_name="appointments")
    doctor = models.ForeignKey(Doctor, on_delete=models.CASCADE, related_name="appointments")
    availability_slot = models.ForeignKey(
        AvailabilitySlot, null=True, blank=True, on_delete=models.SET_NULL, related_name="appointments"
    )
    start_at = models.DateTimeField()
    end_at = models.DateTimeField()
    status = models.CharField(max_length=12, choices=Status.choices, default=Status.SCHEDULED)
    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["start_at"]
        indexes = [
            models.Index(fields=["doctor", "start_at"]),
            models.Index(fields=["facility", "start_at"]),
        ]

    def clean(self):
        if self.end_at <= self.start_at:
            raise ValidationError("End must be after start.")
        if self.availability_slot_id and self.availability_slot.doctor_id != self.doctor_id:
            raise ValidationError("Slot doctor mismatch.")

    def __str__(self):
        return f"Appt {self.patient} → {self.doctor} @ {self.start_at:%Y-%m-%d %H:%M} [{self.status}]"
