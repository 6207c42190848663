from datetime import time

import httpx
import pytest
import respx

from apps.bookings.client import BookingApiClient
from apps.bookings.schedule import InvalidRangeError, TimeRange
from apps.dashboard.schedule_editor import ScheduleEditor

BASE = 'https://barberia.test'
WEEKLY_URL = f'{BASE}/dashboard/api/barbers/b1/weekly/'
EXCEPTIONAL_URL = f'{BASE}/dashboard/api/barbers/b1/exceptional/'
MORNING = TimeRange(time(9, 0), time(12, 0))


def mock_server(weekly=None, exceptional=None):
    respx.get(f'{BASE}/bookings/api/csrf/').respond(200, json={'csrfToken': 'tok'})
    weekly_route = respx.get(WEEKLY_URL).respond(200, json={
        'weekly': weekly or {'1': [{'start': '09:00', 'end': '12:00'}], '2': []},
    })
    respx.get(EXCEPTIONAL_URL).respond(200, json={'exceptionalDays': exceptional or []})
    return weekly_route


async def loaded_editor(client):
    editor = ScheduleEditor(client, 'b1')
    await editor.load()
    return editor


@pytest.mark.asyncio
@respx.mock
async def test_load_builds_local_view():
    mock_server(exceptional=[{'id': 'e1', 'date': '2030-01-07', 'start': None, 'end': None}])
    async with BookingApiClient(BASE) as client:
        editor = await loaded_editor(client)
    assert editor.weekly[1] == [MORNING]
    assert editor.weekly[7] == []
    assert editor.exceptional[0]['id'] == 'e1'


@pytest.mark.asyncio
@respx.mock
async def test_successful_edit_keeps_optimistic_value():
    mock_server()
    put = respx.put(f'{WEEKLY_URL}1/').respond(200, json={'weekday': 1, 'ranges': []})
    async with BookingApiClient(BASE) as client:
        editor = await loaded_editor(client)
        result = await editor.set_day(1, [{'start': '10:00', 'end': '12:00'}])

    assert result.ok
    assert editor.weekly[1] == [TimeRange(time(10, 0), time(12, 0))]
    assert put.calls[0].request.headers['X-CSRFToken'] == 'tok'


@pytest.mark.asyncio
@respx.mock
async def test_conflict_rolls_back_to_server_state_without_retry():
    weekly_route = mock_server()
    put = respx.put(f'{WEEKLY_URL}1/').respond(409, json={'error': 'appointments depend on these hours'})
    async with BookingApiClient(BASE) as client:
        editor = await loaded_editor(client)
        result = await editor.set_day(1, [{'start': '10:00', 'end': '12:00'}])

    assert not result.ok
    assert result.conflict
    assert result.error == 'appointments depend on these hours'
    assert editor.weekly[1] == [MORNING]
    assert put.call_count == 1
    # Initial load plus the refetch after the conflict
    assert weekly_route.call_count == 2


@pytest.mark.asyncio
@respx.mock
async def test_close_day_conflict_restores_hours():
    mock_server()
    respx.delete(f'{WEEKLY_URL}1/').respond(409, json={'error': 'booked'})
    async with BookingApiClient(BASE) as client:
        editor = await loaded_editor(client)
        result = await editor.close_day(1)
    assert result.conflict
    assert editor.weekly[1] == [MORNING]


@pytest.mark.asyncio
@respx.mock
async def test_failed_refetch_restores_pre_edit_copy():
    weekly_route = mock_server()
    respx.put(f'{WEEKLY_URL}2/').respond(500, json={'error': 'boom'})
    async with BookingApiClient(BASE) as client:
        editor = await loaded_editor(client)
        weekly_route.mock(side_effect=httpx.ConnectError('down'))
        result = await editor.set_day(2, [{'start': '15:00', 'end': '18:00'}])

    assert not result.ok
    assert not result.conflict
    assert editor.weekly[2] == []
    assert editor.weekly[1] == [MORNING]


@pytest.mark.asyncio
@respx.mock
async def test_add_exceptional_swaps_placeholder_for_stored_row():
    mock_server()
    stored = {'id': 'e9', 'barberId': 'b1', 'date': '2030-01-07', 'start': '15:00', 'end': '16:00'}
    respx.post(EXCEPTIONAL_URL).respond(201, json=stored)
    async with BookingApiClient(BASE) as client:
        editor = await loaded_editor(client)
        result = await editor.add_exceptional('2030-01-07', '15:00', '16:00')

    assert result.ok
    assert editor.exceptional == [stored]


@pytest.mark.asyncio
@respx.mock
async def test_remove_exceptional_conflict_brings_row_back():
    row = {'id': 'e1', 'barberId': 'b1', 'date': '2030-01-07', 'start': None, 'end': None}
    mock_server(exceptional=[row])
    respx.delete(f'{EXCEPTIONAL_URL}e1/').respond(409, json={'error': 'booked'})
    async with BookingApiClient(BASE) as client:
        editor = await loaded_editor(client)
        result = await editor.remove_exceptional('e1')

    assert result.conflict
    assert editor.exceptional == [row]


@pytest.mark.asyncio
@respx.mock
async def test_invalid_ranges_rejected_before_any_request():
    mock_server()
    put = respx.put(f'{WEEKLY_URL}1/').respond(200, json={})
    async with BookingApiClient(BASE) as client:
        editor = await loaded_editor(client)
        with pytest.raises(InvalidRangeError):
            await editor.set_day(1, [{'start': '12:00', 'end': '09:00'}])
    assert put.call_count == 0
    assert editor.weekly[1] == [MORNING]
