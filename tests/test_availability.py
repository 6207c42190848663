from datetime import date

import pytest

from apps.bookings.availability import browse_month, fetch_open_weekdays, fetch_slots, precheck_month

from .helpers import FakeGateway

TODAY = date(2025, 1, 15)
ALL_WEEKDAYS = frozenset(range(1, 8))


@pytest.mark.asyncio
async def test_empty_calendar_advances_at_most_twelve_months():
    gateway = FakeGateway()
    view = await browse_month(gateway, 'x1', TODAY, ALL_WEEKDAYS, lookahead=12)

    assert view.days == ()
    assert view.auto_advanced
    assert view.requested_offset == 0
    assert view.offset == 12
    assert (view.year, view.month_index) == (2026, 0)
    months_queried = {iso[:7] for iso in gateway.calls}
    assert len(months_queried) == 13


@pytest.mark.asyncio
async def test_advances_to_first_month_with_openings():
    gateway = FakeGateway(slots={'2025-04-07': ['09:00']})
    view = await browse_month(gateway, 'x1', TODAY, ALL_WEEKDAYS)

    assert view.offset == 3
    assert view.days == ('2025-04-07',)
    assert view.auto_advanced


@pytest.mark.asyncio
async def test_no_advance_when_disabled():
    gateway = FakeGateway()
    view = await browse_month(gateway, 'x1', TODAY, ALL_WEEKDAYS, allow_advance=False)

    assert view.offset == 0
    assert not view.auto_advanced
    assert {iso[:7] for iso in gateway.calls} == {'2025-01'}


@pytest.mark.asyncio
async def test_month_with_openings_stays_put():
    gateway = FakeGateway(slots={'2025-01-20': ['10:00']})
    view = await browse_month(gateway, 'x1', TODAY, ALL_WEEKDAYS)
    assert view.offset == 0
    assert not view.auto_advanced


@pytest.mark.asyncio
async def test_precheck_only_queries_open_weekdays_from_today():
    gateway = FakeGateway(slots={'2025-01-20': ['09:00'], '2025-01-27': []})
    days = await precheck_month(gateway, 'x1', 2025, 0, TODAY, frozenset({1}))

    assert days == ('2025-01-20',)
    assert sorted(gateway.calls) == ['2025-01-20', '2025-01-27']


@pytest.mark.asyncio
async def test_failed_days_count_as_empty():
    gateway = FakeGateway(
        slots={'2025-01-20': ['09:00'], '2025-01-27': ['09:00']},
        failing={'2025-01-27'},
    )
    days = await precheck_month(gateway, 'x1', 2025, 0, TODAY, frozenset({1}))
    assert days == ('2025-01-20',)


@pytest.mark.asyncio
async def test_precheck_limits_requests_in_flight():
    gateway = FakeGateway(slots={f'2025-01-{d}': ['09:00'] for d in range(15, 32)})
    days = await precheck_month(gateway, 'x1', 2025, 0, TODAY, ALL_WEEKDAYS, concurrency=2)

    assert len(days) == 17
    assert list(days) == sorted(days)
    assert len(gateway.calls) == 17
    assert gateway.max_in_flight <= 2


@pytest.mark.asyncio
async def test_fetch_slots_degrades_to_empty():
    gateway = FakeGateway(failing={'2025-01-20'})
    assert await fetch_slots(gateway, 'x1', '2025-01-20') == []


@pytest.mark.asyncio
async def test_open_weekdays_normalises_sunday_zero():
    gateway = FakeGateway(weekdays=(0, 1, 6))
    assert await fetch_open_weekdays(gateway, 'x1') == frozenset({7, 1, 6})


@pytest.mark.asyncio
async def test_unreachable_schedule_reads_as_closed():
    class Broken(FakeGateway):
        async def get_weekly_schedule(self, barber_id):
            raise ConnectionError('down')

    assert await fetch_open_weekdays(Broken(), 'x1') == frozenset()
