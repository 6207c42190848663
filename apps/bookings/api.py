"""
Public booking API — the read side the wizard (or a separate front-end)
consumes. Checkout submission lives in apps.payments.
"""
import logging

from asgiref.sync import async_to_sync
from django.http import JsonResponse
from django.middleware.csrf import get_token
from django.utils import timezone
from django.views.decorators.csrf import ensure_csrf_cookie
from django.views.decorators.http import require_GET

from . import gateway
from .availability import browse_month, fetch_open_weekdays

logger = logging.getLogger(__name__)


@require_GET
@ensure_csrf_cookie
def api_csrf(request):
    return JsonResponse({'csrfToken': get_token(request)})


@require_GET
def api_branches(request):
    return JsonResponse({'branches': gateway.list_branches()})


@require_GET
def api_barbers(request):
    branch_id = request.GET.get('branch')
    if not branch_id:
        return JsonResponse({'error': 'branch is required.'}, status=400)
    return JsonResponse({'barbers': gateway.list_barbers(branch_id)})


@require_GET
def api_services(request):
    return JsonResponse({'services': gateway.list_services(request.GET.get('barber') or None)})


@require_GET
def api_weekly_schedule(request, barber_id):
    return JsonResponse({'schedule': gateway.weekly_schedule(barber_id)})


@require_GET
def api_slots(request, barber_id):
    """
    AJAX: free start times for a barber on a date.
    GET params: date (YYYY-MM-DD)
    """
    iso_date = request.GET.get('date')
    if not iso_date:
        return JsonResponse({'error': 'date is required.'}, status=400)
    return JsonResponse({'date': iso_date, 'slots': gateway.available_slots(barber_id, iso_date)})


@require_GET
def api_month(request, barber_id):
    """
    AJAX: days with openings in the month at ?offset= (months from today),
    auto-advancing past empty months unless ?advance=0.
    """
    try:
        offset = max(0, int(request.GET.get('offset', 0)))
    except ValueError:
        return JsonResponse({'error': 'offset must be an integer.'}, status=400)
    allow_advance = request.GET.get('advance', '1') != '0'

    async def load():
        async with gateway.LocalBookingGateway(request) as local:
            weekdays = await fetch_open_weekdays(local, str(barber_id))
            return await browse_month(
                local, str(barber_id), timezone.localdate(), weekdays,
                offset=offset, allow_advance=allow_advance,
            )

    view = async_to_sync(load)()
    return JsonResponse({
        'requestedOffset': view.requested_offset,
        'offset': view.offset,
        'year': view.year,
        'month': view.month_index,
        'days': list(view.days),
        'autoAdvanced': view.auto_advanced,
    })
