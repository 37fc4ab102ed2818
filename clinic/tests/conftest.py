from datetime import datetime

import pytest
from django.utils import timezone
from rest_framework.test import APIClient

from clinic.models import Doctor, Facility, FacilityDoctor, PatientProfile, User


def aware(*args):
    return timezone.make_aware(datetime(*args))


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def facility(db):
    return Facility.objects.create(name="Riverside Clinic", slug="riverside")


@pytest.fixture
def other_facility(db):
    return Facility.objects.create(name="Hilltop Clinic", slug="hilltop")


@pytest.fixture
def doctor(facility):
    d = Doctor.objects.create(first_name="Ada", last_name="Lovelace", specialty="Cardiology")
    FacilityDoctor.objects.create(facility=facility, doctor=d)
    return d


@pytest.fixture
def second_doctor(facility):
    d = Doctor.objects.create(first_name="Grace", last_name="Hopper", specialty="Dermatology")
    FacilityDoctor.objects.create(facility=facility, doctor=d)
    return d


@pytest.fixture
def facility_user(facility):
    return User.objects.create_user(
        username="frontdesk",
        password="pass123",
        user_type=User.UserType.FACILITY,
        facility=facility,
        staff_role=User.StaffRole.RECEPTIONIST,
    )


@pytest.fixture
def doctor_user(facility, doctor):
    return User.objects.create_user(
        username="dr.ada",
        password="pass123",
        user_type=User.UserType.FACILITY,
        facility=facility,
        staff_role=User.StaffRole.DOCTOR,
        doctor=doctor,
    )


@pytest.fixture
def patient_user(db):
    u = User.objects.create_user(username="pat", password="pass123", user_type=User.UserType.PATIENT)
    PatientProfile.objects.create(user=u, first_name="Pat", last_name="Smith")
    return u
