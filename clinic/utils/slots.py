# clinic/utils/slots.py
import logging
from datetime import datetime, time, timedelta

from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from clinic.models import AvailabilityException, AvailabilityRule, AvailabilitySlot

logger = logging.getLogger(__name__)

BULK_CHUNK = 500


def _dt_on(d, t: time):
    """
    Combine date and time, return a TZ-aware datetime using Django's timezone.
    Works with zoneinfo (no .localize).
    """
    dt = datetime.combine(d, t)
    if timezone.is_naive(dt):
        dt = timezone.make_aware(dt, timezone.get_current_timezone())
    return dt


def rule_weekday(d) -> int:
    """date -> 0=Sun .. 6=Sat, the numbering AvailabilityRule.day_of_week uses."""
    return (d.weekday() + 1) % 7


def dates_for_rule(rule, start_date, end_date):
    day = start_date
    while day <= end_date:
        if rule_weekday(day) == rule.day_of_week:
            yield day
        day += timedelta(days=1)


def day_is_blocked(rule, day) -> bool:
    """Any exception for this rule, or for the same doctor at the same facility, overlapping the day."""
    day_start = _dt_on(day, time.min)
    day_end = _dt_on(day, time.max)
    return AvailabilityException.objects.filter(
        Q(availability_rule=rule) | Q(facility_id=rule.facility_id, doctor_id=rule.doctor_id),
        start_at__lte=day_end,
        end_at__gte=day_start,
    ).exists()


def slot_windows(rule, day):
    """(start, end) pairs cut from the rule's window on `day`."""
    duration = timedelta(minutes=rule.slot_duration_minutes)
    step = timedelta(minutes=rule.step_minutes)
    start = _dt_on(day, rule.start_time)
    limit = _dt_on(day, rule.end_time)
    while start + duration <= limit:
        yield start, start + duration
        start += step


@transaction.atomic
def generate_slots_for_rule(rule: AvailabilityRule, start_date, end_date) -> int:
    """
    Create open slots for one rule between start_date..end_date (inclusive).
    Blocked days are skipped and slots that already exist for the same
    doctor at the same facility with identical times are not duplicated.
    Returns the number of slots created.
    """
    windows = []
    for day in dates_for_rule(rule, start_date, end_date):
        if day_is_blocked(rule, day):
            logger.debug("Rule %s: %s blocked by an exception", rule.pk, day)
            continue
        windows.extend(slot_windows(rule, day))

    if not windows:
        return 0

    existing = set(
        AvailabilitySlot.objects.filter(
            facility_id=rule.facility_id,
            doctor_id=rule.doctor_id,
            start_at__gte=min(s for s, _ in windows),
            start_at__lte=max(e for _, e in windows),
        ).values_list("start_at", "end_at")
    )

    new_slots = [
        AvailabilitySlot(
            facility_id=rule.facility_id,
            doctor_id=rule.doctor_id,
            start_at=s,
            end_at=e,
            status=AvailabilitySlot.Status.OPEN,
            capacity=1,
            reserved_until=None,
            created_from_rule=rule,
        )
        for s, e in windows
        if (s, e) not in existing
    ]
    AvailabilitySlot.objects.bulk_create(new_slots, batch_size=BULK_CHUNK)
    return len(new_slots)


def generate_slots(start_date, end_date, facility_id=None, doctor_id=None) -> int:
    """Run every active rule (optionally one facility / doctor). Returns total slots created."""
    rules = AvailabilityRule.objects.filter(active=True)
    if facility_id:
        rules = rules.filter(facility_id=facility_id)
    if doctor_id:
        rules = rules.filter(doctor_id=doctor_id)

    logger.info(
        "Generating slots for %s, %s (%s -> %s)",
        f"facility {facility_id}" if facility_id else "all facilities",
        f"doctor {doctor_id}" if doctor_id else "all doctors",
        start_date, end_date,
    )

    total = 0
    processed = 0
    for rule in rules.order_by("id"):
        created = generate_slots_for_rule(rule, start_date, end_date)
        total += created
        processed += 1
        logger.info(
            "Created %s slots for rule %s (facility=%s doctor=%s)",
            created, rule.pk, rule.facility_id, rule.doctor_id,
        )

    logger.info("Slot generation completed: %s slots from %s rules", total, processed)
    return total


def release_expired_reservations(now=None) -> int:
    """Reserved slots past their reserved_until go back to open."""
    now = now or timezone.now()
    released = AvailabilitySlot.objects.filter(
        status=AvailabilitySlot.Status.RESERVED,
        reserved_until__lt=now,
    ).update(status=AvailabilitySlot.Status.OPEN, reserved_until=None, updated_at=now)
    logger.info("Released %s expired slot reservations", released)
    return released
