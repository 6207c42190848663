"""
Staff schedule API for the admin dashboard.

JSON endpoints behind the schedule editor. Writes that would strand a
future confirmed or blocked appointment answer 409 with the affected
appointments; validation problems answer 400.
"""
import json
import logging

from django.http import HttpResponse, JsonResponse
from django.shortcuts import get_object_or_404
from django.utils.dateparse import parse_date
from django.views.decorators.http import require_GET, require_http_methods

from apps.barbers.models import Barber, ExceptionalDay
from apps.bookings.exceptions import ScheduleConflictError
from apps.bookings.schedule import InvalidRangeError, normalize_weekday, weekly_ranges, weekly_schedule

from .decorators import dashboard_admin_required
from .schedules import add_exceptional_day, delete_exceptional_day, replace_weekly_day

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


def _conflict_response(exc: ScheduleConflictError):
    return JsonResponse({
        'error': str(exc),
        'appointments': [
            {
                'id': str(a.pk),
                'date': a.date.isoformat(),
                'time': a.time.strftime('%H:%M'),
                'customerName': a.customer_name,
                'status': a.status,
            }
            for a in exc.appointments
        ],
    }, status=409)


def _weekday_or_none(value):
    try:
        return normalize_weekday(value)
    except (InvalidRangeError, TypeError, ValueError):
        return None


# ─────────────────────────────────────────────────────────────────────────────
# Weekly hours
# ─────────────────────────────────────────────────────────────────────────────

@require_GET
@dashboard_admin_required
def weekly_hours(request, barber_id):
    barber = get_object_or_404(Barber, pk=barber_id)
    schedule = weekly_schedule(barber)
    return JsonResponse({
        'barberId': str(barber.pk),
        'weekly': {
            str(day): [r.to_dict() for r in schedule.get(day, [])]
            for day in range(1, 8)
        },
    })


@require_http_methods(['GET', 'PUT', 'DELETE'])
@dashboard_admin_required
def weekly_day(request, barber_id, weekday):
    barber = get_object_or_404(Barber, pk=barber_id)
    weekday = _weekday_or_none(weekday)
    if weekday is None:
        return JsonResponse({'error': 'Weekday must be between 1 (Monday) and 7 (Sunday).'}, status=400)

    if request.method == 'GET':
        ranges = weekly_ranges(barber, weekday)
    else:
        if request.method == 'PUT':
            body = _json_body(request)
            if body is None or not isinstance(body.get('ranges'), list):
                return JsonResponse({'error': 'Expected {"ranges": [{"start": "HH:MM", "end": "HH:MM"}]}.'}, status=400)
            requested = body['ranges']
        else:
            requested = []

        try:
            ranges = replace_weekly_day(barber, weekday, requested)
        except InvalidRangeError as exc:
            return JsonResponse({'error': str(exc)}, status=400)
        except ScheduleConflictError as exc:
            return _conflict_response(exc)

        if request.method == 'DELETE':
            return HttpResponse(status=204)

    return JsonResponse({
        'barberId': str(barber.pk),
        'weekday': weekday,
        'ranges': [r.to_dict() for r in ranges],
    })


# ─────────────────────────────────────────────────────────────────────────────
# Exceptional days
# ─────────────────────────────────────────────────────────────────────────────

@require_http_methods(['GET', 'POST'])
@dashboard_admin_required
def exceptional_days(request, barber_id):
    barber = get_object_or_404(Barber, pk=barber_id)

    if request.method == 'GET':
        rows = barber.exceptional_days.order_by('date', 'start_time')
        return JsonResponse({
            'barberId': str(barber.pk),
            'exceptionalDays': [row.to_dict() for row in rows],
        })

    body = _json_body(request)
    if body is None:
        return JsonResponse({'error': 'Invalid JSON body.'}, status=400)
    try:
        day = parse_date(str(body.get('date') or ''))
    except ValueError:
        day = None
    if day is None:
        return JsonResponse({'error': 'A valid date (YYYY-MM-DD) is required.'}, status=400)

    try:
        row = add_exceptional_day(barber, day, body.get('start'), body.get('end'))
    except InvalidRangeError as exc:
        return JsonResponse({'error': str(exc)}, status=400)
    except ScheduleConflictError as exc:
        return _conflict_response(exc)

    return JsonResponse(row.to_dict(), status=201)


@require_http_methods(['DELETE'])
@dashboard_admin_required
def exceptional_day_delete(request, barber_id, pk):
    barber = get_object_or_404(Barber, pk=barber_id)
    row = get_object_or_404(ExceptionalDay, pk=pk, barber=barber)
    try:
        delete_exceptional_day(barber, row)
    except ScheduleConflictError as exc:
        return _conflict_response(exc)
    logger.info('Exceptional day %s removed by %s', pk, request.user)
    return HttpResponse(status=204)
