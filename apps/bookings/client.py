"""HTTP client for a remote Cromados booking API (public and staff endpoints)."""

from __future__ import annotations

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)

CSRF_HEADER = 'X-CSRFToken'
_MUTATING = {'POST', 'PUT', 'PATCH', 'DELETE'}


class BookingApiError(Exception):
    """Base error for booking API failures."""


class ApiConnectionError(BookingApiError):
    """Raised when the API cannot be reached or times out."""


class ApiRequestError(BookingApiError):
    """Raised for non-2xx responses."""

    def __init__(self, status_code: int, detail: str = '') -> None:
        super().__init__(f'booking_api_error_{status_code}: {detail}'.rstrip(': '))
        self.status_code = status_code
        self.detail = detail


class ApiConflictError(ApiRequestError):
    """Raised on 409: the server rejected a change that would break existing bookings."""


def _detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, dict):
        return str(body.get('error') or body.get('detail') or '')
    return ''


class BookingApiClient:
    """
    Async client over the JSON endpoints this project exposes.

    Mutating requests carry the CSRF token; the token is fetched once and
    reused, and the cookie jar of the underlying httpx client keeps the
    matching csrftoken/session cookies.
    """

    def __init__(
        self,
        base_url: str,
        *,
        http: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
        cookies: dict[str, str] | None = None,
    ) -> None:
        self.base_url = base_url.rstrip('/')
        self.http = http or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout, connect=5.0),
            cookies=cookies,
        )
        self._csrf_token: str | None = None

    async def __aenter__(self) -> 'BookingApiClient':
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.http.aclose()

    async def call(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        headers = {'Accept': 'application/json'}
        if method.upper() in _MUTATING:
            headers[CSRF_HEADER] = await self.get_csrf_token()
        try:
            response = await self.http.request(method, path, params=params, json=json, headers=headers)
        except httpx.TimeoutException as exc:
            raise ApiConnectionError(f'booking_api_timeout: {method} {path}') from exc
        except httpx.HTTPError as exc:
            raise ApiConnectionError(f'booking_api_connection_failed: {exc}') from exc

        if response.status_code == 409:
            raise ApiConflictError(409, _detail(response))
        if response.status_code >= 400:
            raise ApiRequestError(response.status_code, _detail(response))
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ApiRequestError(response.status_code, 'invalid JSON body') from exc

    # ── Public endpoints ──────────────────────────────────────────────────────

    async def get_csrf_token(self) -> str:
        if self._csrf_token is None:
            try:
                response = await self.http.get('/bookings/api/csrf/')
            except httpx.HTTPError as exc:
                raise ApiConnectionError(f'booking_api_connection_failed: {exc}') from exc
            if response.status_code >= 400:
                raise ApiRequestError(response.status_code, _detail(response))
            self._csrf_token = response.json()['csrfToken']
        return self._csrf_token

    async def list_branches(self) -> list:
        data = await self.call('GET', '/bookings/api/branches/')
        return data['branches']

    async def list_barbers(self, branch_id: str) -> list:
        data = await self.call('GET', '/bookings/api/barbers/', params={'branch': branch_id})
        return data['barbers']

    async def list_services(self, barber_id: str | None = None) -> list:
        params = {'barber': barber_id} if barber_id else None
        data = await self.call('GET', '/bookings/api/services/', params=params)
        return data['services']

    async def get_weekly_schedule(self, barber_id: str) -> list:
        data = await self.call('GET', f'/bookings/api/barbers/{barber_id}/schedule/')
        return data['schedule']

    async def get_available_slots(self, barber_id: str, iso_date: str) -> list:
        data = await self.call('GET', f'/bookings/api/barbers/{barber_id}/slots/', params={'date': iso_date})
        return data['slots']

    async def submit_checkout(self, payload: dict) -> dict:
        return await self.call('POST', '/payments/checkout/', json=payload)

    # ── Staff schedule endpoints ──────────────────────────────────────────────

    async def get_weekly_hours(self, barber_id: str) -> dict:
        data = await self.call('GET', f'/dashboard/api/barbers/{barber_id}/weekly/')
        return {int(day): ranges for day, ranges in data['weekly'].items()}

    async def upsert_weekly_slot(self, barber_id: str, weekday: int, ranges: list) -> dict:
        data = await self.call(
            'PUT', f'/dashboard/api/barbers/{barber_id}/weekly/{weekday}/',
            json={'ranges': ranges},
        )
        return data

    async def delete_weekly_slot(self, barber_id: str, weekday: int) -> None:
        await self.call('DELETE', f'/dashboard/api/barbers/{barber_id}/weekly/{weekday}/')

    async def list_exceptional_days(self, barber_id: str) -> list:
        data = await self.call('GET', f'/dashboard/api/barbers/{barber_id}/exceptional/')
        return data['exceptionalDays']

    async def add_exceptional_day(self, barber_id: str, date: str,
                                  start: str | None, end: str | None) -> dict:
        return await self.call(
            'POST', f'/dashboard/api/barbers/{barber_id}/exceptional/',
            json={'date': date, 'start': start, 'end': end},
        )

    async def delete_exceptional_day(self, barber_id: str, day_id: str) -> None:
        await self.call('DELETE', f'/dashboard/api/barbers/{barber_id}/exceptional/{day_id}/')
