"""
Booking engine — pure business logic, no HTTP/request awareness.

Public API:
  get_available_slots(barber, day, now=None)
  ensure_slot_available(barber, day, start_time, now=None)
  reserve_sessions(barber, service, sessions, customer, deposit_only)
  expire_stale_holds(now=None)
  stranded_by_weekly_change(barber, weekday, ranges)
  stranded_by_day_change(barber, day, ranges)
"""
import logging
import uuid
from datetime import datetime, timedelta, date as date_type, time as time_type

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from apps.barbers.models import Barber
from apps.bookings.models import Appointment, AppointmentStatus
from apps.bookings.schedule import any_range_contains, format_hhmm, open_ranges
from apps.bookings.exceptions import (
    InvalidSessionError,
    SlotConflictError,
    SlotUnavailableError,
)

logger = logging.getLogger(__name__)


# ── Time helpers ──────────────────────────────────────────────────────────────

def _time_to_minutes(t: time_type) -> int:
    return t.hour * 60 + t.minute


def _minutes_to_time(minutes: int) -> time_type:
    return time_type(minutes // 60, minutes % 60)


def _local_now(now=None) -> datetime:
    return timezone.localtime(now or timezone.now())


def _iter_range_slots(rng, step: int):
    """Start times every `step` minutes from rng.start up to and including rng.end."""
    current = _time_to_minutes(rng.start)
    end = _time_to_minutes(rng.end)
    while current <= end:
        if current >= 24 * 60:
            break  # Never wrap past midnight
        yield _minutes_to_time(current)
        current += step


def _occupied_times(barber: Barber, day: date_type, now=None) -> set:
    """Start times taken by confirmed, blocked, or still-held appointments."""
    return set(
        Appointment.objects
        .occupying(now)
        .filter(barber=barber, date=day)
        .values_list('time', flat=True)
    )


# ── Core: Slot Generation ─────────────────────────────────────────────────────

def get_available_slots(barber: Barber, day: date_type, now=None) -> list:
    """
    Free start times for a barber on a date, as sorted 'HH:MM' strings.

    Empty list means no availability (past date, closed, inactive barber,
    or fully booked).
    """
    if not barber.is_active:
        return []

    local_now = _local_now(now)
    today = local_now.date()
    if day < today:
        return []

    ranges = open_ranges(barber, day)
    if not ranges:
        logger.debug('Barber %s closed on %s', barber.pk, day)
        return []

    step = getattr(settings, 'SLOT_MINUTES', 30)
    occupied = _occupied_times(barber, day, now)

    free = set()
    for rng in ranges:
        for slot in _iter_range_slots(rng, step):
            if slot not in occupied:
                free.add(slot)

    # Same day: the slot of the current minute is still bookable
    if day == today:
        current = local_now.time().replace(second=0, microsecond=0)
        free = {slot for slot in free if slot >= current}

    return [format_hhmm(slot) for slot in sorted(free)]


def ensure_slot_available(barber: Barber, day: date_type, start_time: time_type, now=None) -> None:
    """
    Raise unless `start_time` is a bookable slot right now.

    Raises:
      SlotUnavailableError — outside the barber's hours (or in the past)
      SlotConflictError    — inside hours but already taken
    """
    hhmm = format_hhmm(start_time)
    if hhmm in get_available_slots(barber, day, now):
        return

    ranges = open_ranges(barber, day)
    if barber.is_active and any_range_contains(ranges, start_time) and day >= _local_now(now).date():
        if start_time in _occupied_times(barber, day, now):
            raise SlotConflictError(
                f"The {hhmm} slot on {day.isoformat()} was just taken. Please choose a different time."
            )
    raise SlotUnavailableError(
        f"{barber.name} is not available on {day.isoformat()} at {hhmm}."
    )


# ── Core: Pending reservation ─────────────────────────────────────────────────

@transaction.atomic
def reserve_sessions(barber: Barber, service, sessions, customer: dict,
                     deposit_only: bool, hold_minutes=None) -> list:
    """
    Atomically create one PENDING_PAYMENT Appointment per session.

    `sessions` is a list of (date, time, [add-on Service, ...]) tuples in
    session order. The barber row is locked with SELECT FOR UPDATE so two
    checkouts for the same barber are serialised while slots are re-checked.

    Raises:
      InvalidSessionError  — duplicate slot inside the same checkout
      SlotConflictError    — a slot was taken since it was displayed
      SlotUnavailableError — a slot is outside the barber's hours
    """
    Barber.objects.select_for_update().filter(pk=barber.pk).first()

    seen = set()
    for day, start_time, _ in sessions:
        key = (day, start_time)
        if key in seen:
            raise InvalidSessionError(
                f"Two sessions share {day.isoformat()} {format_hhmm(start_time)}."
            )
        seen.add(key)
        ensure_slot_available(barber, day, start_time)

    ttl = hold_minutes if hold_minutes is not None else getattr(settings, 'BOOKING_HOLD_MINUTES', 15)
    hold_expires_at = timezone.now() + timedelta(minutes=ttl)
    group_id = uuid.uuid4()

    appointments = []
    for index, (day, start_time, add_ons) in enumerate(sessions):
        appointment = Appointment.objects.create(
            branch_id=barber.branch_id,
            barber=barber,
            service=service,
            group_id=group_id,
            session_index=index,
            date=day,
            time=start_time,
            status=AppointmentStatus.PENDING_PAYMENT,
            hold_expires_at=hold_expires_at,
            customer_name=customer['name'],
            customer_phone=customer['phone'],
            customer_age=customer.get('age'),
            deposit_only=deposit_only,
        )
        if add_ons:
            appointment.add_ons.set(add_ons)
        appointments.append(appointment)

    logger.info(
        'Reserved %d session(s) for barber %s, group %s (hold until %s)',
        len(appointments), barber.pk, group_id, hold_expires_at,
    )
    return appointments


def expire_stale_holds(now=None) -> int:
    """Expire PENDING_PAYMENT appointments whose hold has elapsed. Returns the count."""
    now = now or timezone.now()
    stale = Appointment.objects.filter(
        status=AppointmentStatus.PENDING_PAYMENT,
        hold_expires_at__lte=now,
    )
    count = 0
    for appointment in stale:
        appointment.expire(changed_by='system_cron')
        count += 1
    return count


# ── Schedule edit conflicts ───────────────────────────────────────────────────

def _future_taken(barber: Barber):
    today = _local_now().date()
    return Appointment.objects.filter(
        barber=barber,
        date__gte=today,
        status__in=[AppointmentStatus.CONFIRMED, AppointmentStatus.BLOCKED],
    )


def stranded_by_weekly_change(barber: Barber, weekday: int, ranges) -> list:
    """
    Future confirmed/blocked appointments on `weekday` that would fall
    outside `ranges`. Dates covered by an ExceptionalDay are unaffected.
    """
    overridden = barber.exceptional_days.values_list('date', flat=True)
    candidates = (
        _future_taken(barber)
        .filter(date__iso_week_day=weekday)
        .exclude(date__in=overridden)
    )
    return [a for a in candidates if not any_range_contains(ranges, a.time)]


def stranded_by_day_change(barber: Barber, day: date_type, ranges) -> list:
    """Future confirmed/blocked appointments on `day` that would fall outside `ranges`."""
    return [
        a for a in _future_taken(barber).filter(date=day)
        if not any_range_contains(ranges, a.time)
    ]
