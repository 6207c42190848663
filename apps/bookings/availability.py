"""
Availability integration: turns the slot oracle into a calendar.

Public API:
  fetch_slots(gateway, barber_id, iso_date)
  fetch_open_weekdays(gateway, barber_id)
  precheck_month(gateway, barber_id, year, month_index, today, open_weekdays)
  browse_month(gateway, barber_id, today, open_weekdays, offset, allow_advance)

Every lookup is best-effort: a failed query counts as "no slots" and is
logged, it never aborts the month or reaches the customer as an error.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Tuple

from django.conf import settings

from .calendar import candidate_days, month_for_offset
from .schedule import normalize_weekday

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MonthView:
    requested_offset: int
    offset: int
    year: int
    month_index: int
    days: Tuple[str, ...]
    auto_advanced: bool = False


async def fetch_slots(gateway, barber_id, iso_date) -> list:
    try:
        return list(await gateway.get_available_slots(barber_id, iso_date))
    except Exception:
        logger.warning('Slot lookup failed for barber %s on %s', barber_id, iso_date, exc_info=True)
        return []


async def fetch_open_weekdays(gateway, barber_id) -> frozenset:
    """Weekdays with weekly hours; an unreachable schedule reads as closed."""
    try:
        entries = await gateway.get_weekly_schedule(barber_id)
    except Exception:
        logger.warning('Weekly schedule lookup failed for barber %s', barber_id, exc_info=True)
        return frozenset()
    return frozenset(normalize_weekday(e['weekday']) for e in entries)


async def precheck_month(gateway, barber_id, year, month_index, today, open_weekdays,
                         concurrency=None) -> Tuple[str, ...]:
    """
    ISO dates of the month that have at least one free slot.

    One query per candidate day, run concurrently (at most `concurrency`
    in flight); the result is only built once every query has settled.
    """
    days = candidate_days(year, month_index, today, open_weekdays)
    if not days:
        return ()
    limit = asyncio.Semaphore(concurrency or getattr(settings, 'AVAILABILITY_CONCURRENCY', 8))

    async def has_slots(day):
        async with limit:
            return bool(await fetch_slots(gateway, barber_id, day.iso))

    results = await asyncio.gather(*(has_slots(day) for day in days))
    return tuple(day.iso for day, ok in zip(days, results) if ok)


async def browse_month(gateway, barber_id, today, open_weekdays, offset=0,
                       allow_advance=True, lookahead=None, concurrency=None) -> MonthView:
    """
    Pre-check the month at `offset`. When it is empty and auto-advance is
    allowed, move forward one month at a time until a month has openings
    or the look-ahead bound is reached.
    """
    lookahead = lookahead if lookahead is not None else getattr(settings, 'AVAILABILITY_LOOKAHEAD_MONTHS', 12)
    requested = offset
    year, month_index = month_for_offset(today, offset)
    days = await precheck_month(gateway, barber_id, year, month_index, today, open_weekdays, concurrency)

    advanced = False
    if not days and allow_advance:
        advanced = True
        while not days and offset < lookahead:
            offset += 1
            year, month_index = month_for_offset(today, offset)
            days = await precheck_month(gateway, barber_id, year, month_index, today, open_weekdays, concurrency)
        if not days:
            logger.info('Barber %s has no openings in the next %d months', barber_id, lookahead)

    return MonthView(
        requested_offset=requested,
        offset=offset,
        year=year,
        month_index=month_index,
        days=days,
        auto_advanced=advanced,
    )
