from datetime import date, time, timedelta
from io import StringIO

import pytest
from django.core.management import call_command
from django.utils import timezone

from clinic.models import AvailabilityException, AvailabilityRule, AvailabilitySlot
from clinic.tests.conftest import aware
from clinic.utils.slots import (
    generate_slots,
    generate_slots_for_rule,
    release_expired_reservations,
    rule_weekday,
)

# 2030-01-06 is a Sunday, 2030-01-07 a Monday
WEEK_START = date(2030, 1, 6)
WEEK_END = date(2030, 1, 12)
MONDAY = 1


def test_rule_weekday_starts_on_sunday():
    assert rule_weekday(date(2030, 1, 6)) == 0
    assert rule_weekday(date(2030, 1, 7)) == 1
    assert rule_weekday(date(2030, 1, 12)) == 6


@pytest.mark.django_db
class TestGenerateSlots:

    @pytest.fixture(autouse=True)
    def _setup(self, facility, doctor):
        self.facility = facility
        self.doctor = doctor
        self.rule = AvailabilityRule.objects.create(
            doctor=doctor, facility=facility, day_of_week=MONDAY,
            start_time=time(9), end_time=time(10), slot_duration_minutes=30,
        )

    def test_cuts_slots_on_matching_weekday(self):
        created = generate_slots_for_rule(self.rule, WEEK_START, WEEK_END)
        assert created == 2
        slots = list(AvailabilitySlot.objects.order_by("start_at"))
        assert [(s.start_at, s.end_at) for s in slots] == [
            (aware(2030, 1, 7, 9, 0), aware(2030, 1, 7, 9, 30)),
            (aware(2030, 1, 7, 9, 30), aware(2030, 1, 7, 10, 0)),
        ]
        assert all(s.status == AvailabilitySlot.Status.OPEN for s in slots)
        assert all(s.created_from_rule_id == self.rule.id for s in slots)

    def test_interval_steps_and_end_bound(self):
        self.rule.slot_interval_minutes = 20
        self.rule.save()
        generate_slots_for_rule(self.rule, WEEK_START, WEEK_END)
        starts = list(AvailabilitySlot.objects.order_by("start_at").values_list("start_at", flat=True))
        # 9:40 + 30 would run past 10:00
        assert starts == [aware(2030, 1, 7, 9, 0), aware(2030, 1, 7, 9, 20)]

    def test_running_twice_creates_nothing_new(self):
        assert generate_slots_for_rule(self.rule, WEEK_START, WEEK_END) == 2
        assert generate_slots_for_rule(self.rule, WEEK_START, WEEK_END) == 0
        assert AvailabilitySlot.objects.count() == 2

    def test_exception_blocks_the_day(self):
        AvailabilityException.objects.create(
            facility=self.facility, doctor=self.doctor,
            start_at=aware(2030, 1, 7, 12, 0), end_at=aware(2030, 1, 7, 13, 0),
        )
        assert generate_slots_for_rule(self.rule, WEEK_START, WEEK_END) == 0

    def test_exception_on_other_day_does_not_block(self):
        AvailabilityException.objects.create(
            facility=self.facility, doctor=self.doctor,
            start_at=aware(2030, 1, 8, 0, 0), end_at=aware(2030, 1, 8, 23, 0),
        )
        assert generate_slots_for_rule(self.rule, WEEK_START, WEEK_END) == 2

    def test_multi_week_range(self):
        assert generate_slots_for_rule(self.rule, WEEK_START, WEEK_START + timedelta(days=14)) == 4

    def test_inactive_rules_and_filters(self, other_facility):
        AvailabilityRule.objects.create(
            doctor=self.doctor, facility=self.facility, day_of_week=2, active=False,
            start_time=time(9), end_time=time(10), slot_duration_minutes=30,
        )
        assert generate_slots(WEEK_START, WEEK_END, facility_id=other_facility.id) == 0
        assert generate_slots(WEEK_START, WEEK_END, doctor_id=self.doctor.id) == 2

    def test_command(self):
        out = StringIO()
        call_command("generate_slots", "--start-date", "2030-01-06", "--end-date", "2030-01-12", stdout=out)
        assert "Total slots created: 2" in out.getvalue()
        assert AvailabilitySlot.objects.count() == 2


@pytest.mark.django_db
class TestReleaseReservations:

    def test_expired_reservations_reopen(self, facility, doctor):
        now = timezone.now()
        expired = AvailabilitySlot.objects.create(
            facility=facility, doctor=doctor, start_at=now + timedelta(days=1),
            end_at=now + timedelta(days=1, minutes=30),
            status=AvailabilitySlot.Status.RESERVED, reserved_until=now - timedelta(minutes=5),
        )
        held = AvailabilitySlot.objects.create(
            facility=facility, doctor=doctor, start_at=now + timedelta(days=2),
            end_at=now + timedelta(days=2, minutes=30),
            status=AvailabilitySlot.Status.RESERVED, reserved_until=now + timedelta(minutes=5),
        )

        assert release_expired_reservations(now) == 1

        expired.refresh_from_db()
        held.refresh_from_db()
        assert expired.status == AvailabilitySlot.Status.OPEN
        assert expired.reserved_until is None
        assert held.status == AvailabilitySlot.Status.RESERVED

    def test_command(self):
        out = StringIO()
        call_command("release_reservations", stdout=out)
        assert "No expired reservations." in out.getvalue()
