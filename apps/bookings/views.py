"""
Booking wizard views — JSON endpoints backed by the Django session.

The browser sends one action at a time; the view validates it against the
catalogue, runs it through the draft reducer, performs whatever loads the
new state asks for (month pre-check, slots for the picked date) and
answers with the full wizard state.

  GET  /bookings/wizard/          current state
  POST /bookings/wizard/action/   {"type": "...", ...}
  POST /bookings/wizard/confirm/  customer details → payment redirect URL
  POST /bookings/wizard/reset/    drop the draft
"""
import asyncio
import json
import logging
from dataclasses import replace

from asgiref.sync import async_to_sync
from django.http import JsonResponse
from django.utils import timezone
from django.utils.dateparse import parse_date
from django.views.decorators.http import require_GET, require_POST

from .availability import browse_month, fetch_open_weekdays, fetch_slots
from .calendar import day_label, month_for_offset
from .checkout import CustomerForm, build_checkout_payload, submit_checkout
from .draft import (
    ChangeMonth,
    InvalidActionError,
    MonthLoaded,
    Next,
    Previous,
    SelectBarber,
    SelectBranch,
    SelectDate,
    SelectService,
    SelectTime,
    SetDepositOnly,
    SlotsLoaded,
    ToggleAddOn,
    pending_fetches,
    reduce,
)
from .exceptions import CheckoutError
from .gateway import get_gateway
from .pricing import quote
from .schedule import InvalidRangeError, format_hhmm, parse_hhmm
from .session import clear_wizard_state, get_wizard_state, set_wizard_state

logger = logging.getLogger(__name__)

# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────

def _json_body(request):
    try:
        body = json.loads(request.body or b'{}')
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    return body if isinstance(body, dict) else None


def _parse_iso(value):
    try:
        day = parse_date(value or '')
    except (ValueError, TypeError):
        return None
    return day


async def _safe(coro, default, what):
    try:
        return await coro
    except Exception:
        logger.warning('Catalogue lookup failed: %s', what, exc_info=True)
        return default


async def _load_catalog(gateway, draft) -> dict:
    """Branches always; barbers of the chosen branch; services of the chosen barber (or all)."""
    async def none():
        return []

    branches, barbers, services = await asyncio.gather(
        _safe(gateway.list_branches(), [], 'branches'),
        _safe(gateway.list_barbers(draft.branch_id), [], 'barbers') if draft.branch_id else none(),
        _safe(gateway.list_services(draft.barber_id), [], 'services'),
    )
    return {'branches': branches, 'barbers': barbers, 'services': services}


def _ids(items, **match):
    return {
        item['id']: item for item in items
        if all(item.get(k) == v for k, v in match.items())
    }


# ─────────────────────────────────────────────────────────────────────────────
# Action parsing: client JSON → reducer action, validated against the catalogue
# ─────────────────────────────────────────────────────────────────────────────

def _index(body):
    try:
        return int(body['index'])
    except (KeyError, TypeError, ValueError):
        raise InvalidActionError('A session index is required.') from None


def build_action(body, state, catalog):
    kind = body.get('type')

    if kind == 'selectBranch':
        branch_id = body.get('branchId')
        if branch_id not in _ids(catalog['branches']):
            raise InvalidActionError('Please select a valid branch.')
        return SelectBranch(branch_id, advance=bool(body.get('fromIntro')))

    if kind == 'selectBarber':
        barber_id = body.get('barberId')
        if barber_id is not None and barber_id not in _ids(catalog['barbers']):
            raise InvalidActionError('Please select a valid barber.')
        return SelectBarber(barber_id)

    if kind == 'selectService':
        service = _ids(catalog['services'], isAddOn=False).get(body.get('serviceId'))
        if service is None:
            raise InvalidActionError('Please select a valid service.')
        return SelectService(service['id'], int(service['sessionCount']))

    if kind == 'selectDate':
        index = _index(body)
        day = _parse_iso(body.get('date'))
        if day is None or day < timezone.localdate():
            raise InvalidActionError('Please choose a valid future date.')
        iso = day.isoformat()
        if state.days_key == (state.draft.barber_id, state.month_offset) and iso not in state.available_days:
            raise InvalidActionError('That date has no free slots.')
        return SelectDate(index, iso)

    if kind == 'selectTime':
        index = _index(body)
        try:
            picked = parse_hhmm(body.get('time'))
        except InvalidRangeError:
            raise InvalidActionError('Please choose a valid time (HH:MM).') from None
        return SelectTime(index, format_hhmm(picked))

    if kind == 'toggleAddOn':
        add_on_id = body.get('addOnId')
        if add_on_id not in _ids(catalog['services'], isAddOn=True):
            raise InvalidActionError('Please select a valid add-on.')
        return ToggleAddOn(_index(body), add_on_id)

    if kind == 'setDepositOnly':
        return SetDepositOnly(bool(body.get('depositOnly')))

    if kind == 'next':
        return Next()

    if kind == 'previous':
        return Previous()

    if kind == 'changeMonth':
        try:
            return ChangeMonth(int(body.get('offset')))
        except (TypeError, ValueError):
            raise InvalidActionError('A month offset is required.') from None

    raise InvalidActionError(f'Unknown action {kind!r}.')


# ─────────────────────────────────────────────────────────────────────────────
# Side effects
# ─────────────────────────────────────────────────────────────────────────────

async def _load_month(gateway, state, barber_id, offset):
    today = timezone.localdate()
    weekdays = await fetch_open_weekdays(gateway, barber_id)
    view = await browse_month(
        gateway, barber_id, today, weekdays,
        offset=offset, allow_advance=not state.auto_advanced,
    )
    return MonthLoaded(barber_id, offset, view.offset, view.days, view.auto_advanced)


async def _load_slots(gateway, index, barber_id, iso):
    slots = await fetch_slots(gateway, barber_id, iso)
    return SlotsLoaded(index, barber_id, iso, tuple(slots))


async def refresh(gateway, state):
    """Run the loads the state is waiting for, concurrently, and apply the results."""
    wanted = pending_fetches(state)
    jobs = []
    if 'month' in wanted:
        jobs.append(_load_month(gateway, state, *wanted['month']))
    if 'slots' in wanted:
        jobs.append(_load_slots(gateway, *wanted['slots']))
    for loaded in await asyncio.gather(*jobs):
        state = reduce(state, loaded)
    return state


async def _dispatch(gateway_factory, state, body):
    async with gateway_factory() as gateway:
        catalog = await _load_catalog(gateway, state.draft)
        if body is not None:
            previous = state.draft
            state = reduce(state, build_action(body, state, catalog))
            if (previous.branch_id, previous.barber_id) != (state.draft.branch_id, state.draft.barber_id):
                catalog = await _load_catalog(gateway, state.draft)
        state = await refresh(gateway, state)
    return state, catalog


# ─────────────────────────────────────────────────────────────────────────────
# Serialisation
# ─────────────────────────────────────────────────────────────────────────────

def _state_payload(state, catalog):
    draft = state.draft
    prices = {s['id']: s['price'] for s in catalog['services']}
    try:
        price = quote(draft, prices).to_dict()
    except KeyError:
        # Catalogue unavailable or the service left the barber's menu
        price = None

    calendar = None
    if state.session_index is not None:
        year, month_index = month_for_offset(timezone.localdate(), state.month_offset)
        calendar = {
            'offset': state.month_offset,
            'year': year,
            'month': month_index,
            'loaded': state.days_key is not None,
            'days': [
                {'iso': iso, 'label': day_label(parse_date(iso))}
                for iso in state.available_days
            ],
        }

    return {
        'step': state.step,
        'totalSteps': state.total_steps,
        'sessionIndex': state.session_index,
        'readyToConfirm': state.ready_to_confirm,
        'isComplete': state.is_complete,
        'draft': {
            'branchId': draft.branch_id,
            'barberId': draft.barber_id,
            'serviceId': draft.service_id,
            'depositOnly': draft.deposit_only,
            'sessions': [
                {'date': s.date, 'time': s.time, 'addOnIds': list(s.add_on_ids)}
                for s in draft.sessions
            ],
        },
        'quote': price,
        'calendar': calendar,
        'slots': list(state.slots) if state.slots_key else None,
        'branches': catalog['branches'],
        'barbers': catalog['barbers'],
        'services': [s for s in catalog['services'] if not s['isAddOn']],
        'addOns': [s for s in catalog['services'] if s['isAddOn']],
    }


# ─────────────────────────────────────────────────────────────────────────────
# Views
# ─────────────────────────────────────────────────────────────────────────────

@require_GET
def wizard_state(request):
    state = get_wizard_state(request)
    state, catalog = async_to_sync(_dispatch)(lambda: get_gateway(request), state, None)
    set_wizard_state(request, state)
    return JsonResponse(_state_payload(state, catalog))


@require_POST
def wizard_action(request):
    body = _json_body(request)
    if body is None:
        return JsonResponse({'error': 'Invalid JSON body.'}, status=400)

    state = get_wizard_state(request)
    try:
        state, catalog = async_to_sync(_dispatch)(lambda: get_gateway(request), state, body)
    except InvalidActionError as exc:
        return JsonResponse({'error': str(exc)}, status=400)

    set_wizard_state(request, state)
    return JsonResponse(_state_payload(state, catalog))


@require_POST
def wizard_confirm(request):
    body = _json_body(request)
    if body is None:
        return JsonResponse({'error': 'Invalid JSON body.'}, status=400)

    state = get_wizard_state(request)
    if not state.is_complete:
        return JsonResponse({'error': 'Completá todos los pasos antes de confirmar.'}, status=400)

    form = CustomerForm({
        'name': body.get('name', ''),
        'country_code': body.get('countryCode', '+54'),
        'phone': body.get('phone', ''),
        'age': body.get('age'),
    })
    if not form.is_valid():
        return JsonResponse({'error': 'Revisá tus datos.', 'fields': form.errors.get_json_data()}, status=400)

    async def submit():
        async with get_gateway(request) as gateway:
            return await submit_checkout(gateway, payload)

    try:
        payload = build_checkout_payload(state.draft, form.customer())
        redirect_url = async_to_sync(submit)()
    except CheckoutError as exc:
        # Draft stays in the session so the customer can retry
        set_wizard_state(request, replace(state, ready_to_confirm=False))
        return JsonResponse({'error': str(exc)}, status=exc.http_status)

    logger.info('Checkout started for barber %s, redirecting to payment', state.draft.barber_id)
    clear_wizard_state(request)
    return JsonResponse({'redirectUrl': redirect_url})


@require_POST
def wizard_reset(request):
    clear_wizard_state(request)
    return JsonResponse({'ok': True})
