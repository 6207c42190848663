import httpx
import pytest
import respx

from apps.bookings.client import (
    ApiConflictError,
    ApiConnectionError,
    ApiRequestError,
    BookingApiClient,
)

BASE = 'https://barberia.test'


def csrf_route():
    return respx.get(f'{BASE}/bookings/api/csrf/').respond(200, json={'csrfToken': 'tok'})


@pytest.mark.asyncio
@respx.mock
async def test_get_available_slots():
    route = respx.get(f'{BASE}/bookings/api/barbers/b1/slots/').respond(
        200, json={'date': '2030-01-07', 'slots': ['09:00', '09:30']}
    )
    async with BookingApiClient(BASE) as client:
        assert await client.get_available_slots('b1', '2030-01-07') == ['09:00', '09:30']
    assert route.calls[0].request.url.params['date'] == '2030-01-07'


@pytest.mark.asyncio
@respx.mock
async def test_list_services_is_barber_scoped_when_given():
    route = respx.get(f'{BASE}/bookings/api/services/').respond(200, json={'services': []})
    async with BookingApiClient(BASE) as client:
        await client.list_services('b1')
        await client.list_services()
    assert route.calls[0].request.url.params['barber'] == 'b1'
    assert 'barber' not in route.calls[1].request.url.params


@pytest.mark.asyncio
@respx.mock
async def test_mutating_requests_carry_csrf_token_fetched_once():
    csrf = csrf_route()
    route = respx.post(f'{BASE}/payments/checkout/').respond(200, json={'redirectUrl': 'https://rzp.io/i/x'})

    async with BookingApiClient(BASE) as client:
        assert await client.submit_checkout({'sessions': []}) == {'redirectUrl': 'https://rzp.io/i/x'}
        await client.submit_checkout({'sessions': []})

    assert csrf.call_count == 1
    assert route.calls[0].request.headers['X-CSRFToken'] == 'tok'


@pytest.mark.asyncio
@respx.mock
async def test_reads_do_not_fetch_csrf():
    csrf = csrf_route()
    respx.get(f'{BASE}/bookings/api/branches/').respond(200, json={'branches': [{'id': 'b1'}]})
    async with BookingApiClient(BASE) as client:
        assert await client.list_branches() == [{'id': 'b1'}]
    assert csrf.call_count == 0


@pytest.mark.asyncio
@respx.mock
async def test_conflict_maps_to_conflict_error():
    csrf_route()
    respx.put(f'{BASE}/dashboard/api/barbers/b1/weekly/1/').respond(
        409, json={'error': '1 confirmed appointment(s) would fall outside the new hours'}
    )
    async with BookingApiClient(BASE) as client:
        with pytest.raises(ApiConflictError) as excinfo:
            await client.upsert_weekly_slot('b1', 1, [])
    assert excinfo.value.status_code == 409
    assert 'confirmed appointment' in excinfo.value.detail


@pytest.mark.asyncio
@respx.mock
async def test_error_status_maps_to_request_error():
    respx.get(f'{BASE}/bookings/api/branches/').respond(500, text='boom')
    async with BookingApiClient(BASE) as client:
        with pytest.raises(ApiRequestError) as excinfo:
            await client.list_branches()
    assert excinfo.value.status_code == 500
    assert not isinstance(excinfo.value, ApiConflictError)


@pytest.mark.asyncio
@respx.mock
async def test_timeout_maps_to_connection_error():
    respx.get(f'{BASE}/bookings/api/branches/').mock(side_effect=httpx.ReadTimeout('slow'))
    async with BookingApiClient(BASE) as client:
        with pytest.raises(ApiConnectionError):
            await client.list_branches()


@pytest.mark.asyncio
@respx.mock
async def test_connect_error_maps_to_connection_error():
    respx.get(f'{BASE}/bookings/api/branches/').mock(side_effect=httpx.ConnectError('refused'))
    async with BookingApiClient(BASE) as client:
        with pytest.raises(ApiConnectionError):
            await client.list_branches()


@pytest.mark.asyncio
@respx.mock
async def test_weekly_hours_keys_become_ints():
    respx.get(f'{BASE}/dashboard/api/barbers/b1/weekly/').respond(
        200, json={'weekly': {'1': [{'start': '09:00', 'end': '12:00'}], '2': []}}
    )
    async with BookingApiClient(BASE) as client:
        weekly = await client.get_weekly_hours('b1')
    assert weekly == {1: [{'start': '09:00', 'end': '12:00'}], 2: []}


@pytest.mark.asyncio
@respx.mock
async def test_delete_returns_none_on_204():
    csrf_route()
    respx.delete(f'{BASE}/dashboard/api/barbers/b1/exceptional/e1/').respond(204)
    async with BookingApiClient(BASE) as client:
        assert await client.delete_exceptional_day('b1', 'e1') is None
