"""
Booking gateway: where the wizard reads catalogues and availability and
sends the checkout.

Two implementations share the same async method set:
  LocalBookingGateway — this deployment's own database, in-process
  BookingApiClient    — a remote deployment over HTTP (client.py)

get_gateway() picks the remote client when BOOKING_API_URL is set.
"""
import logging

from asgiref.sync import sync_to_async
from django.conf import settings
from django.core.exceptions import ValidationError
from django.middleware.csrf import get_token
from django.utils.dateparse import parse_date

from apps.barbers.models import Barber
from apps.branches.models import Branch
from apps.services.models import Service

from .client import BookingApiClient
from .engine import get_available_slots

logger = logging.getLogger(__name__)


# ── Sync queries (also used by the public API views) ─────────────────────────

def get_barber(barber_id, active_only=False):
    """Barber by id, or None for unknown or malformed ids."""
    qs = Barber.objects.active() if active_only else Barber.objects.all()
    try:
        return qs.select_related('branch').filter(pk=barber_id).first()
    except (ValueError, ValidationError):
        return None


def list_branches():
    return [b.to_dict() for b in Branch.objects.active().order_by('name')]


def list_barbers(branch_id):
    qs = Barber.objects.active().filter(branch__is_active=True)
    try:
        qs = list(qs.filter(branch_id=branch_id).order_by('name'))
    except (ValueError, ValidationError):
        return []
    return [b.to_dict() for b in qs]


def list_services(barber_id=None):
    qs = Service.objects.active()
    if barber_id:
        barber = get_barber(barber_id, active_only=True)
        if barber is None:
            return []
        qs = qs.for_barber(barber)
    return [s.to_dict() for s in qs.order_by('is_add_on', 'name')]


def weekly_schedule(barber_id):
    barber = get_barber(barber_id)
    if barber is None:
        return []
    return [s.to_dict() for s in barber.weekly_slots.order_by('weekday', 'start_time')]


def available_slots(barber_id, iso_date):
    try:
        day = parse_date(iso_date or '')
    except ValueError:
        return []
    barber = get_barber(barber_id)
    if barber is None or day is None:
        return []
    return get_available_slots(barber, day)


# ── In-process gateway ────────────────────────────────────────────────────────

class LocalBookingGateway:
    """Async facade over this deployment's database."""

    def __init__(self, request=None):
        self.request = request

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return None

    async def list_branches(self):
        return await sync_to_async(list_branches)()

    async def list_barbers(self, branch_id):
        return await sync_to_async(list_barbers)(branch_id)

    async def list_services(self, barber_id=None):
        return await sync_to_async(list_services)(barber_id)

    async def get_weekly_schedule(self, barber_id):
        return await sync_to_async(weekly_schedule)(barber_id)

    async def get_available_slots(self, barber_id, iso_date):
        return await sync_to_async(available_slots)(barber_id, iso_date)

    async def get_csrf_token(self):
        return get_token(self.request) if self.request is not None else ''

    async def submit_checkout(self, payload):
        from apps.payments.services import create_checkout
        return await sync_to_async(create_checkout)(payload)


def get_gateway(request=None):
    """Remote client when BOOKING_API_URL is configured, in-process otherwise."""
    base_url = getattr(settings, 'BOOKING_API_URL', '')
    if base_url:
        return BookingApiClient(base_url, timeout=getattr(settings, 'BOOKING_API_TIMEOUT', 10.0))
    return LocalBookingGateway(request)
