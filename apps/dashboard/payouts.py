"""
Barber payouts — what the shop owes each barber for a date range.

Public API:
  calculate_payouts(date_from, date_to)

Every peso a customer pays (online, by transfer or in cash) goes to the
shop. Barbers are settled per period:

  commission = PAYOUT_COMMISSION_RATE of everything they took in
  bonus      = one bonus per PAYOUT_BONUS_EVERY appointments on a single
               day, each worth PAYOUT_COMMISSION_RATE of the reference
               service price (PAYOUT_BONUS_SERVICE)
  total      = commission + bonus

Only confirmed (paid online) and blocked (booked at the shop) appointments
count. Online bookings report amount_paid as app money; blocked ones
report it as a transfer. cash_due is cash in both cases.
"""
import logging
from collections import defaultdict
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from django.db.models import Count, Sum

from apps.bookings.models import Appointment, AppointmentStatus
from apps.services.models import Service

logger = logging.getLogger(__name__)

COUNTED_STATUSES = [AppointmentStatus.CONFIRMED, AppointmentStatus.BLOCKED]


def _share(amount, rate) -> int:
    return int((Decimal(amount) * Decimal(str(rate))).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def _bonus_unit_price() -> int:
    name = getattr(settings, 'PAYOUT_BONUS_SERVICE', 'Corte')
    price = Service.objects.primary().filter(name=name).values_list('price', flat=True).first()
    if price is None:
        logger.warning('Payout bonus service %r not in the catalogue; bonuses count as 0.', name)
        return 0
    return price


def calculate_payouts(date_from, date_to) -> list:
    """One entry per barber with counted appointments, highest total first."""
    rate = getattr(settings, 'PAYOUT_COMMISSION_RATE', '0.5')
    every = getattr(settings, 'PAYOUT_BONUS_EVERY', 10)

    qs = Appointment.objects.filter(
        date__gte=date_from, date__lte=date_to, status__in=COUNTED_STATUSES,
    )

    barbers = {}
    for row in qs.values('barber_id', 'barber__name').annotate(n=Count('id')):
        barbers[row['barber_id']] = {
            'barberId': str(row['barber_id']),
            'barberName': row['barber__name'],
            'appointmentCount': row['n'],
            'appGross': 0,
            'transferGross': 0,
            'cashGross': 0,
            'services': [],
            'bonusesByDay': {},
        }
    if not barbers:
        return []

    # ── Gross amounts ─────────────────────────────────────────────────────
    amounts = qs.values('barber_id', 'status').annotate(paid=Sum('amount_paid'), cash=Sum('cash_due'))
    for row in amounts:
        entry = barbers[row['barber_id']]
        key = 'appGross' if row['status'] == AppointmentStatus.CONFIRMED else 'transferGross'
        entry[key] += row['paid'] or 0
        entry['cashGross'] += row['cash'] or 0

    # ── Volume bonuses ────────────────────────────────────────────────────
    for row in qs.values('barber_id', 'date').annotate(n=Count('id')).order_by('date'):
        bonuses = row['n'] // every
        if bonuses:
            barbers[row['barber_id']]['bonusesByDay'][row['date'].isoformat()] = bonuses

    # ── Per-service breakdown ─────────────────────────────────────────────
    services = defaultdict(list)
    for row in qs.values('barber_id', 'service__name', 'service__price').annotate(n=Count('id')):
        services[row['barber_id']].append({
            'name': row['service__name'],
            'isAddOn': False,
            'count': row['n'],
            'unitPrice': row['service__price'],
            'subtotal': row['service__price'] * row['n'],
        })
    add_ons = qs.values('barber_id', 'add_ons__name', 'add_ons__price').annotate(n=Count('id'))
    for row in add_ons:
        if row['add_ons__name'] is None:
            continue
        services[row['barber_id']].append({
            'name': row['add_ons__name'],
            'isAddOn': True,
            'count': row['n'],
            'unitPrice': row['add_ons__price'],
            'subtotal': row['add_ons__price'] * row['n'],
        })

    bonus_price = None
    payouts = []
    for barber_id, entry in barbers.items():
        gross = entry['appGross'] + entry['transferGross'] + entry['cashGross']
        bonus_count = sum(entry['bonusesByDay'].values())
        if bonus_count and bonus_price is None:
            bonus_price = _bonus_unit_price()
        commission = _share(gross, rate)
        bonus_amount = _share(bonus_price * bonus_count, rate) if bonus_count else 0
        entry.update(
            gross=gross,
            commission=commission,
            bonusCount=bonus_count,
            bonusAmount=bonus_amount,
            total=commission + bonus_amount,
            services=sorted(services[barber_id], key=lambda s: (-s['subtotal'], s['name'])),
        )
        payouts.append(entry)

    payouts.sort(key=lambda p: (-p['total'], p['barberName']))
    logger.info('Payouts %s..%s computed for %d barber(s)', date_from, date_to, len(payouts))
    return payouts
