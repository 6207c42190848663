"""
Schedule editing — business rules behind the staff schedule API.

Public API:
  replace_weekly_day(barber, weekday, ranges)
  add_exceptional_day(barber, day, start, end)
  delete_exceptional_day(barber, exceptional_day)

Every write is refused with ScheduleConflictError when it would leave a
future confirmed or blocked appointment outside the barber's hours; the
database is left untouched in that case.
"""
import logging

from django.db import transaction
from django.utils import timezone

from apps.barbers.models import ExceptionalDay, WeeklySlot
from apps.bookings.engine import stranded_by_day_change, stranded_by_weekly_change
from apps.bookings.exceptions import ScheduleConflictError
from apps.bookings.schedule import (
    InvalidRangeError,
    TimeRange,
    format_hhmm,
    normalize_ranges,
    normalize_weekday,
    weekly_ranges,
)

logger = logging.getLogger(__name__)


def _conflict(barber, stranded):
    names = ', '.join(
        f"{a.date.isoformat()} {format_hhmm(a.time)}" for a in stranded[:5]
    )
    logger.info('Schedule change for barber %s refused: %d appointment(s) affected', barber.pk, len(stranded))
    return ScheduleConflictError(
        f"{len(stranded)} confirmed appointment(s) would fall outside the new hours ({names}).",
        appointments=stranded,
    )


@transaction.atomic
def replace_weekly_day(barber, weekday, ranges) -> list:
    """Replace all ranges of a weekday; an empty list closes the day."""
    weekday = normalize_weekday(weekday)
    new_ranges = normalize_ranges(ranges)

    stranded = stranded_by_weekly_change(barber, weekday, new_ranges)
    if stranded:
        raise _conflict(barber, stranded)

    WeeklySlot.objects.filter(barber=barber, weekday=weekday).delete()
    WeeklySlot.objects.bulk_create([
        WeeklySlot(barber=barber, weekday=weekday, start_time=r.start, end_time=r.end)
        for r in new_ranges
    ])
    logger.info('Barber %s weekday %d now %s', barber.pk, weekday,
                [r.to_dict() for r in new_ranges] or 'closed')
    return new_ranges


def _exceptional_ranges(rows):
    return [TimeRange(r.start_time, r.end_time) for r in rows if not r.is_closed]


@transaction.atomic
def add_exceptional_day(barber, day, start=None, end=None) -> ExceptionalDay:
    """
    Add hours for one date (or close it when start and end are both empty).
    The date's weekly hours stop applying as soon as the first row exists.
    """
    if day < timezone.localdate():
        raise InvalidRangeError('Exceptional days cannot be in the past.')
    if (start in (None, '')) != (end in (None, '')):
        raise InvalidRangeError('Provide both start and end, or neither to close the day.')

    existing = list(ExceptionalDay.objects.filter(barber=barber, date=day))
    closing = start in (None, '')
    if closing and existing:
        raise InvalidRangeError('Remove the existing hours for this date before closing it.')
    if not closing and any(r.is_closed for r in existing):
        raise InvalidRangeError('This date is closed; remove the closure before adding hours.')

    if closing:
        new_ranges = []
    else:
        new_ranges = normalize_ranges(_exceptional_ranges(existing) + [TimeRange.parse(start, end)])

    stranded = stranded_by_day_change(barber, day, new_ranges)
    if stranded:
        raise _conflict(barber, stranded)

    if closing:
        row = ExceptionalDay.objects.create(barber=barber, date=day)
    else:
        rng = TimeRange.parse(start, end)
        row = ExceptionalDay.objects.create(barber=barber, date=day, start_time=rng.start, end_time=rng.end)
    logger.info('Barber %s exceptional day added: %s', barber.pk, row)
    return row


@transaction.atomic
def delete_exceptional_day(barber, exceptional_day) -> None:
    """Remove one row; with no rows left the weekly hours apply again."""
    remaining = list(
        ExceptionalDay.objects
        .filter(barber=barber, date=exceptional_day.date)
        .exclude(pk=exceptional_day.pk)
    )
    if remaining:
        new_ranges = _exceptional_ranges(remaining)
    else:
        new_ranges = weekly_ranges(barber, exceptional_day.date.isoweekday())

    stranded = stranded_by_day_change(barber, exceptional_day.date, new_ranges)
    if stranded:
        raise _conflict(barber, stranded)

    exceptional_day.delete()
