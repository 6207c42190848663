"""
Optimistic schedule editor for a remote Cromados deployment.

The editor keeps a local copy of one barber's weekly hours and exceptional
days, applies each edit to the local copy immediately and then sends it.
When the server refuses the write (409: existing bookings depend on the
old hours) the local copy is replaced by a fresh fetch of the server's
state; the write is never retried. Any other failure rolls back the same
way, falling back to the pre-edit copy if the server cannot be reached.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Any

from apps.bookings.client import ApiConflictError, BookingApiClient, BookingApiError
from apps.bookings.schedule import TimeRange, normalize_ranges, normalize_weekday

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EditResult:
    ok: bool
    conflict: bool = False
    error: str = ''
    data: Any = None


def _to_ranges(raw: list) -> list[TimeRange]:
    return [TimeRange.parse(item['start'], item['end']) for item in raw]


class ScheduleEditor:

    def __init__(self, client: BookingApiClient, barber_id: str) -> None:
        self.client = client
        self.barber_id = str(barber_id)
        self.weekly: dict[int, list[TimeRange]] = {day: [] for day in range(1, 8)}
        self.exceptional: list[dict] = []

    async def load(self) -> None:
        """Replace the local view with the server's current state."""
        weekly = await self.client.get_weekly_hours(self.barber_id)
        exceptional = await self.client.list_exceptional_days(self.barber_id)
        self.weekly = {day: _to_ranges(weekly.get(day, [])) for day in range(1, 8)}
        self.exceptional = list(exceptional)

    # ── Edits ────────────────────────────────────────────────────────────────

    async def set_day(self, weekday: int, ranges) -> EditResult:
        """Replace a weekday's ranges. Invalid ranges raise InvalidRangeError before anything changes."""
        weekday = normalize_weekday(weekday)
        new_ranges = normalize_ranges(ranges)
        snapshot = self._snapshot()
        self.weekly[weekday] = new_ranges
        return await self._commit(
            self.client.upsert_weekly_slot(self.barber_id, weekday, [r.to_dict() for r in new_ranges]),
            snapshot,
        )

    async def close_day(self, weekday: int) -> EditResult:
        weekday = normalize_weekday(weekday)
        snapshot = self._snapshot()
        self.weekly[weekday] = []
        return await self._commit(self.client.delete_weekly_slot(self.barber_id, weekday), snapshot)

    async def add_exceptional(self, date: str, start: str | None = None, end: str | None = None) -> EditResult:
        if start or end:
            TimeRange.parse(start, end)
        snapshot = self._snapshot()
        placeholder = {'id': None, 'barberId': self.barber_id, 'date': date, 'start': start, 'end': end}
        self.exceptional.append(placeholder)
        result = await self._commit(
            self.client.add_exceptional_day(self.barber_id, date, start, end), snapshot,
        )
        if result.ok and result.data:
            # Swap the placeholder for the stored row so it can be deleted later
            self.exceptional = [result.data if row is placeholder else row for row in self.exceptional]
        return result

    async def remove_exceptional(self, day_id: str) -> EditResult:
        snapshot = self._snapshot()
        self.exceptional = [row for row in self.exceptional if str(row.get('id')) != str(day_id)]
        return await self._commit(self.client.delete_exceptional_day(self.barber_id, day_id), snapshot)

    # ── Internals ────────────────────────────────────────────────────────────

    def _snapshot(self):
        return copy.deepcopy(self.weekly), copy.deepcopy(self.exceptional)

    async def _commit(self, request, snapshot) -> EditResult:
        try:
            data = await request
        except ApiConflictError as exc:
            logger.info('Schedule edit for barber %s rejected (409): %s', self.barber_id, exc.detail)
            await self._rollback(snapshot)
            return EditResult(ok=False, conflict=True, error=exc.detail or str(exc))
        except BookingApiError as exc:
            logger.warning('Schedule edit for barber %s failed: %s', self.barber_id, exc)
            await self._rollback(snapshot)
            return EditResult(ok=False, error=str(exc))
        return EditResult(ok=True, data=data)

    async def _rollback(self, snapshot) -> None:
        try:
            await self.load()
        except BookingApiError as exc:
            logger.warning('Could not refetch schedule for barber %s: %s', self.barber_id, exc)
            self.weekly, self.exceptional = snapshot
