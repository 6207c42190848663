"""
Staff appointment listings and barber payouts for the admin dashboard.

  GET /dashboard/api/appointments/           filtered, paginated listing
  GET /dashboard/api/appointments/upcoming/  next confirmed visits
  GET /dashboard/api/appointments/latest/    most recently booked
  GET /dashboard/api/appointments/count/     current (today onwards) count
  GET /dashboard/api/payouts/?from=&to=      per-barber settlement
"""
import uuid
from datetime import timedelta

from django.core.paginator import EmptyPage, Paginator
from django.db.models import Q
from django.http import JsonResponse
from django.utils import timezone
from django.utils.dateparse import parse_date
from django.views.decorators.http import require_GET

from apps.bookings.models import Appointment, AppointmentStatus

from .decorators import dashboard_admin_required
from .payouts import COUNTED_STATUSES, calculate_payouts

SORT_FIELDS = {'date': ('date', 'time'), 'created': ('created_at',), 'customer': ('customer_name',)}


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────

def _appointment_dict(a):
    return {
        'id': str(a.pk),
        'groupId': str(a.group_id),
        'sessionIndex': a.session_index,
        'date': a.date.isoformat(),
        'time': a.time.strftime('%H:%M'),
        'status': a.status,
        'customerName': a.customer_name,
        'customerPhone': a.customer_phone,
        'branch': a.branch.name,
        'barber': a.barber.name,
        'service': a.service.name,
        'depositOnly': a.deposit_only,
        'amountPaid': a.amount_paid,
        'cashDue': a.cash_due,
    }


def _int_param(request, name, default, low, high):
    try:
        value = int(request.GET.get(name, default))
    except (TypeError, ValueError):
        value = default
    return max(low, min(value, high))


def _uuid_or_none(value):
    try:
        return uuid.UUID(value)
    except (TypeError, ValueError):
        return None


def _listing():
    return Appointment.objects.select_related('branch', 'barber', 'service')


def _date_range(request):
    date_from = parse_date(request.GET.get('from') or '')
    date_to = parse_date(request.GET.get('to') or '')
    if date_from is None or date_to is None:
        return None, JsonResponse({'error': 'Provide from and to as YYYY-MM-DD.'}, status=400)
    if date_from > date_to:
        return None, JsonResponse({'error': '"from" must not be after "to".'}, status=400)
    return (date_from, date_to), None


# ─────────────────────────────────────────────────────────────────────────────
# Appointment listing
# ─────────────────────────────────────────────────────────────────────────────

@require_GET
@dashboard_admin_required
def appointment_list(request):
    qs = _listing()

    status_filter = request.GET.get('status', '')
    branch_filter = request.GET.get('branch', '')
    barber_filter = request.GET.get('barber', '')
    search        = request.GET.get('q', '').strip()
    date_from     = parse_date(request.GET.get('from') or '')
    date_to       = parse_date(request.GET.get('to') or '')

    if status_filter:
        if status_filter not in AppointmentStatus.values:
            return JsonResponse({'error': f'Unknown status {status_filter!r}.'}, status=400)
        qs = qs.filter(status=status_filter)
    else:
        qs = qs.filter(status__in=COUNTED_STATUSES)
    for column, raw in (('branch_id', branch_filter), ('barber_id', barber_filter)):
        if not raw:
            continue
        pk = _uuid_or_none(raw)
        if pk is None:
            return JsonResponse({'error': f'Invalid id {raw!r}.'}, status=400)
        qs = qs.filter(**{column: pk})
    if search:
        qs = qs.filter(
            Q(customer_name__icontains=search) |
            Q(customer_phone__icontains=search) |
            Q(service__name__icontains=search)
        )
    if date_from:
        qs = qs.filter(date__gte=date_from)
    if date_to:
        qs = qs.filter(date__lte=date_to)

    field, _, direction = request.GET.get('sort', 'date,desc').partition(',')
    columns = SORT_FIELDS.get(field.strip(), SORT_FIELDS['date'])
    prefix = '' if direction.strip().lower() == 'asc' else '-'
    qs = qs.order_by(*(prefix + c for c in columns))

    size = _int_param(request, 'size', 20, 1, 100)
    paginator = Paginator(qs, size)
    try:
        page = paginator.page(_int_param(request, 'page', 1, 1, 10_000))
    except EmptyPage:
        page = paginator.page(paginator.num_pages)

    return JsonResponse({
        'items': [_appointment_dict(a) for a in page.object_list],
        'page': page.number,
        'pages': paginator.num_pages,
        'total': paginator.count,
    })


@require_GET
@dashboard_admin_required
def upcoming_appointments(request):
    today = timezone.localdate()
    days = _int_param(request, 'days', 7, 0, 366)
    limit = _int_param(request, 'limit', 8, 1, 50)
    qs = (
        _listing()
        .filter(status=AppointmentStatus.CONFIRMED, date__gte=today, date__lte=today + timedelta(days=days))
        .order_by('date', 'time')[:limit]
    )
    return JsonResponse({'items': [_appointment_dict(a) for a in qs]})


@require_GET
@dashboard_admin_required
def latest_appointments(request):
    limit = _int_param(request, 'limit', 10, 1, 50)
    qs = _listing().filter(status__in=COUNTED_STATUSES).order_by('-created_at')[:limit]
    return JsonResponse({'items': [_appointment_dict(a) for a in qs]})


@require_GET
@dashboard_admin_required
def current_count(request):
    count = Appointment.objects.filter(
        status__in=COUNTED_STATUSES, date__gte=timezone.localdate(),
    ).count()
    return JsonResponse({'count': count})


# ─────────────────────────────────────────────────────────────────────────────
# Payouts
# ─────────────────────────────────────────────────────────────────────────────

@require_GET
@dashboard_admin_required
def payouts(request):
    period, error = _date_range(request)
    if error:
        return error
    date_from, date_to = period
    return JsonResponse({
        'from': date_from.isoformat(),
        'to': date_to.isoformat(),
        'barbers': calculate_payouts(date_from, date_to),
    })
