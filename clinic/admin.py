from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin

from .models import (
    User,
    Facility,
    Doctor,
    FacilityDoctor,
    PatientProfile,
    AvailabilityRule,
    AvailabilitySlot,
    AvailabilityException,
    Appointment,
)


# ----------------------------
# Users (show type / facility)
# ----------------------------
@admin.register(User)
class UserAdmin(DjangoUserAdmin):
    list_display = (
        "username",
        "email",
        "user_type",
        "facility",
        "staff_role",
        "is_staff",
        "last_login",
    )
    list_filter = ("user_type", "staff_role", "facility", "is_staff", "is_active")
    search_fields = ("username", "email", "first_name", "last_name")
    ordering = ("username",)
    autocomplete_fields = ("facility", "doctor")
    fieldsets = DjangoUserAdmin.fieldsets + (
        ("Clinic", {"fields": ("user_type", "facility", "staff_role", "doctor")}),
    )


# ----------------------------
# Facilities & doctors
# ----------------------------
class FacilityDoctorInline(admin.TabularInline):
    model = FacilityDoctor
    extra = 0
    autocomplete_fields = ("doctor",)


@admin.register(Facility)
class FacilityAdmin(admin.ModelAdmin):
    list_display = ("name", "slug", "phone", "locale")
    search_fields = ("name", "slug")
    prepopulated_fields = {"slug": ("name",)}
    inlines = [FacilityDoctorInline]


@admin.register(Doctor)
class DoctorAdmin(admin.ModelAdmin):
    list_display = ("display_name", "specialty", "npi")
    search_fields = ("display_name", "first_name", "last_name", "npi", "specialty")


@admin.register(PatientProfile)
class PatientProfileAdmin(admin.ModelAdmin):
    list_display = ("full_name", "user", "phone", "dob")
    search_fields = ("first_name", "last_name", "user__username", "user__email", "phone")
    autocomplete_fields = ("user",)


# ----------------------------
# Availability
# ----------------------------
@admin.register(AvailabilityRule)
class AvailabilityRuleAdmin(admin.ModelAdmin):
    list_display = ("doctor", "facility", "day_of_week", "start_time", "end_time", "slot_duration_minutes", "active")
    list_filter = ("facility", "day_of_week", "active")
    search_fields = ("doctor__display_name", "facility__name")
    autocomplete_fields = ("doctor", "facility")
    ordering = ("facility", "doctor", "day_of_week", "start_time")


@admin.register(AvailabilitySlot)
class AvailabilitySlotAdmin(admin.ModelAdmin):
    list_display = ("doctor", "facility", "start_at", "end_at", "status", "reserved_until")
    list_filter = ("status", "facility")
    search_fields = ("doctor__display_name", "facility__name")
    ordering = ("start_at",)
    date_hierarchy = "start_at"
    autocomplete_fields = ("doctor", "facility", "created_from_rule")


@admin.register(AvailabilityException)
class AvailabilityExceptionAdmin(admin.ModelAdmin):
    list_display = ("doctor", "facility", "type", "start_at", "end_at", "short_reason")
    list_filter = ("type", "facility")
    search_fields = ("doctor__display_name", "facility__name")
    autocomplete_fields = ("doctor", "facility", "availability_rule")
    date_hierarchy = "start_at"

    def short_reason(self, obj):
        return (obj.reason or "")[:50]
    short_reason.short_description = "Reason"


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ("patient", "doctor", "facility", "status", "start_at", "end_at")
    list_filter = ("status", "facility")
    search_fields = ("patient__first_name", "patient__last_name", "doctor__display_name", "notes")
    ordering = ("-start_at",)
    date_hierarchy = "start_at"
    autocomplete_fields = ("patient", "doctor", "facility", "availability_slot")
