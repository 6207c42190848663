import asyncio
from datetime import timedelta

from django.utils import timezone


def next_weekday(iso_weekday, after=None):
    """First date strictly after `after` (default today) falling on `iso_weekday`."""
    after = after or timezone.localdate()
    days = (iso_weekday - after.isoweekday()) % 7 or 7
    return after + timedelta(days=days)


class FakeGateway:
    """
    In-memory stand-in for the booking gateway.

    `slots` maps ISO dates to slot lists; dates listed in `failing` raise.
    Every slot query is recorded in `calls`.
    """

    def __init__(self, slots=None, weekdays=(1, 2, 3, 4, 5, 6, 7), failing=(), checkout=None):
        self.slots = dict(slots or {})
        self.weekdays = weekdays
        self.failing = set(failing)
        self.checkout = checkout
        self.calls = []
        self.payloads = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return None

    async def get_weekly_schedule(self, barber_id):
        return [{'barberId': barber_id, 'weekday': d, 'start': '09:00', 'end': '12:00'} for d in self.weekdays]

    async def get_available_slots(self, barber_id, iso_date):
        self.calls.append(iso_date)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            if iso_date in self.failing:
                raise ConnectionError('boom')
            return self.slots.get(iso_date, [])
        finally:
            self.in_flight -= 1

    async def submit_checkout(self, payload):
        self.payloads.append(payload)
        if isinstance(self.checkout, Exception):
            raise self.checkout
        return self.checkout
