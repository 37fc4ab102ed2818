from datetime import time

import pytest
from django.urls import reverse

from clinic.models import AvailabilityException, AvailabilityRule, Doctor, FacilityDoctor
from clinic.tests.conftest import aware

INDEX_URL = reverse("api.facility.availability.exceptions.index")
STORE_URL = reverse("api.facility.availability.exceptions.store")


def update_url(pk):
    return reverse("api.facility.availability.exceptions.update", kwargs={"pk": pk})


def destroy_url(pk):
    return reverse("api.facility.availability.exceptions.destroy", kwargs={"pk": pk})


@pytest.mark.django_db
class TestExceptionStore:

    @pytest.fixture(autouse=True)
    def _setup(self, api_client, facility, doctor, second_doctor, facility_user):
        self.client = api_client
        self.facility = facility
        self.doctor = doctor
        self.second_doctor = second_doctor
        self.client.force_authenticate(facility_user)

    def test_create_defaults_to_blocked_and_keeps_reason(self):
        res = self.client.post(STORE_URL, {
            "doctor_id": self.doctor.id,
            "start_at": "2030-01-07T00:00:00",
            "end_at": "2030-01-07T23:59:00",
            "reason": "Conference",
        }, format="json")

        assert res.status_code == 201
        body = res.json()
        assert body["success"] is True
        assert body["message"] == "Availability exception created successfully."
        assert body["data"]["type"] == "blocked"
        assert body["data"]["reason"] == "Conference"

        exc = AvailabilityException.objects.get()
        assert exc.facility == self.facility
        assert exc.meta == {"reason": "Conference"}

    def test_doctor_must_be_active_member(self):
        stranger = Doctor.objects.create(first_name="No", last_name="Body")
        inactive = Doctor.objects.create(first_name="Was", last_name="Here")
        FacilityDoctor.objects.create(facility=self.facility, doctor=inactive, active=False)

        for doctor_id in (stranger.id, inactive.id):
            res = self.client.post(STORE_URL, {
                "doctor_id": doctor_id,
                "start_at": "2030-01-07",
                "end_at": "2030-01-08",
            }, format="json")
            assert res.status_code == 400
            body = res.json()
            assert body["message"] == "The given data was invalid."
            assert "doctor_id" in body["errors"]
        assert not AvailabilityException.objects.exists()

    def test_start_after_end_is_rejected(self):
        res = self.client.post(STORE_URL, {
            "doctor_id": self.doctor.id,
            "start_at": "2030-01-08T10:00:00",
            "end_at": "2030-01-08T09:00:00",
        }, format="json")
        assert res.status_code == 400
        assert "start_at" in res.json()["errors"]

    def test_reason_length_is_limited(self):
        res = self.client.post(STORE_URL, {
            "doctor_id": self.doctor.id,
            "start_at": "2030-01-08",
            "end_at": "2030-01-08",
            "reason": "x" * 501,
        }, format="json")
        assert res.status_code == 400
        assert res.json()["errors"]["reason"] == ["Reason cannot exceed 500 characters."]

    def test_doctor_staff_cannot_create_for_others(self, doctor_user):
        self.client.force_authenticate(doctor_user)
        res = self.client.post(STORE_URL, {
            "doctor_id": self.second_doctor.id,
            "start_at": "2030-01-08",
            "end_at": "2030-01-08",
        }, format="json")
        assert res.status_code == 403
        assert res.json()["success"] is False

        res = self.client.post(STORE_URL, {
            "doctor_id": self.doctor.id,
            "start_at": "2030-01-08",
            "end_at": "2030-01-08",
        }, format="json")
        assert res.status_code == 201

    def test_doctor_staff_id_is_compared_as_a_number(self, doctor_user):
        self.client.force_authenticate(doctor_user)
        res = self.client.post(STORE_URL, {
            "doctor_id": f"0{self.doctor.id}",
            "start_at": "2030-01-08",
            "end_at": "2030-01-08",
        })
        assert res.status_code == 201
        assert res.json()["data"]["doctor_id"] == self.doctor.id

    def test_availability_rule_must_belong_to_facility(self, other_facility):
        here = AvailabilityRule.objects.create(
            doctor=self.doctor, facility=self.facility, day_of_week=1,
            start_time=time(9), end_time=time(12), slot_duration_minutes=30,
        )
        elsewhere = AvailabilityRule.objects.create(
            doctor=self.doctor, facility=other_facility, day_of_week=1,
            start_time=time(9), end_time=time(12), slot_duration_minutes=30,
        )
        payload = {"doctor_id": self.doctor.id, "start_at": "2030-01-08", "end_at": "2030-01-08"}

        res = self.client.post(STORE_URL, {**payload, "availability_rule_id": elsewhere.id}, format="json")
        assert res.status_code == 400
        assert res.json()["errors"]["availability_rule_id"] == ["The selected availability rule does not exist."]

        res = self.client.post(STORE_URL, {**payload, "availability_rule_id": here.id}, format="json")
        assert res.status_code == 201
        assert res.json()["data"]["availability_rule_id"] == here.id


@pytest.mark.django_db
class TestExceptionChanges:

    @pytest.fixture(autouse=True)
    def _setup(self, api_client, facility, other_facility, doctor, second_doctor, facility_user):
        self.client = api_client
        self.client.force_authenticate(facility_user)
        self.mine = AvailabilityException.objects.create(
            facility=facility, doctor=doctor,
            start_at=aware(2030, 1, 7, 0, 0), end_at=aware(2030, 1, 7, 23, 0),
        )
        self.theirs = AvailabilityException.objects.create(
            facility=facility, doctor=second_doctor,
            start_at=aware(2030, 2, 1, 0, 0), end_at=aware(2030, 2, 2, 0, 0),
        )
        self.elsewhere = AvailabilityException.objects.create(
            facility=other_facility, doctor=doctor,
            start_at=aware(2030, 1, 7, 0, 0), end_at=aware(2030, 1, 7, 23, 0),
        )

    def test_index_is_facility_scoped_and_date_filtered(self):
        body = self.client.get(INDEX_URL).json()
        assert [e["id"] for e in body["data"]] == [self.mine.id, self.theirs.id]

        body = self.client.get(INDEX_URL, {"start_date": "2030-01-15"}).json()
        assert [e["id"] for e in body["data"]] == [self.theirs.id]

        body = self.client.get(INDEX_URL, {"end_date": "2030-01-15"}).json()
        assert [e["id"] for e in body["data"]] == [self.mine.id]

    def test_doctor_staff_index_is_scoped(self, doctor_user):
        self.client.force_authenticate(doctor_user)
        body = self.client.get(INDEX_URL).json()
        assert [e["id"] for e in body["data"]] == [self.mine.id]

    def test_partial_update(self):
        res = self.client.put(update_url(self.mine.id), {"type": "emergency", "reason": "Flu"}, format="json")
        assert res.status_code == 200
        assert res.json()["message"] == "Availability exception updated successfully."

        self.mine.refresh_from_db()
        assert self.mine.type == "emergency"
        assert self.mine.reason == "Flu"
        assert self.mine.start_at == aware(2030, 1, 7, 0, 0)

    def test_update_rejects_inverted_window(self):
        res = self.client.put(update_url(self.mine.id), {"end_at": "2030-01-06T00:00:00"}, format="json")
        assert res.status_code == 400

    def test_other_facility_exception_is_404(self):
        res = self.client.put(update_url(self.elsewhere.id), {"type": "override"}, format="json")
        assert res.status_code == 404
        assert res.json()["message"] == "Availability exception not found."

        res = self.client.delete(destroy_url(self.elsewhere.id))
        assert res.status_code == 404
        assert AvailabilityException.objects.filter(pk=self.elsewhere.id).exists()

    def test_doctor_staff_cannot_touch_other_doctors(self, doctor_user):
        self.client.force_authenticate(doctor_user)
        assert self.client.put(update_url(self.theirs.id), {"type": "override"}, format="json").status_code == 403
        assert self.client.delete(destroy_url(self.theirs.id)).status_code == 403
        assert self.client.delete(destroy_url(self.mine.id)).status_code == 200

    def test_destroy(self):
        res = self.client.delete(destroy_url(self.mine.id))
        assert res.status_code == 200
        assert res.json() == {"success": True, "message": "Availability exception deleted successfully."}
        assert not AvailabilityException.objects.filter(pk=self.mine.id).exists()
