from datetime import date, time, timedelta

import pytest
from django.urls import reverse
from django.utils import timezone

from apps.barbers.models import Barber
from apps.bookings.models import Appointment, AppointmentStatus
from apps.dashboard.payouts import calculate_payouts

pytestmark = pytest.mark.django_db

MONDAY = date(2030, 1, 7)


def booked(barber, service, day, at, status=AppointmentStatus.CONFIRMED, paid=0, cash=0):
    return Appointment.objects.create(
        branch=barber.branch, barber=barber, service=service, date=day, time=at,
        status=status, customer_name='Juan', customer_phone='+5493511234567',
        amount_paid=paid, cash_due=cash,
    )


def half_hours(count, start=9):
    return [time(start + i // 2, 30 * (i % 2)) for i in range(count)]


@pytest.fixture
def busy_week(barber, corte, lavado):
    """Ten paid cortes on Monday, one walk-in on Tuesday, plus rows that never count."""
    for at in half_hours(10):
        booked(barber, corte, MONDAY, at, paid=10000)
    Appointment.objects.filter(time=time(9, 0)).get().add_ons.add(lavado)
    booked(barber, corte, MONDAY + timedelta(days=1), time(10, 0),
           status=AppointmentStatus.BLOCKED, paid=3000, cash=7000)
    booked(barber, corte, MONDAY, time(18, 0), status=AppointmentStatus.PENDING_PAYMENT, paid=10000)
    booked(barber, corte, MONDAY, time(18, 30), status=AppointmentStatus.CANCELLED, paid=10000)
    return barber


# ── Calculation ───────────────────────────────────────────────────────────────

def test_commission_and_daily_bonus(busy_week, corte):
    [payout] = calculate_payouts(MONDAY, MONDAY + timedelta(days=6))

    assert payout['barberName'] == 'Nico'
    assert payout['appointmentCount'] == 11
    assert (payout['appGross'], payout['transferGross'], payout['cashGross']) == (100000, 3000, 7000)
    assert payout['gross'] == 110000
    assert payout['commission'] == 55000
    assert payout['bonusesByDay'] == {MONDAY.isoformat(): 1}
    assert payout['bonusCount'] == 1
    assert payout['bonusAmount'] == 5000
    assert payout['total'] == 60000


def test_service_breakdown_lists_add_ons(busy_week):
    [payout] = calculate_payouts(MONDAY, MONDAY + timedelta(days=6))
    assert payout['services'] == [
        {'name': 'Corte', 'isAddOn': False, 'count': 11, 'unitPrice': 10000, 'subtotal': 110000},
        {'name': 'Lavado', 'isAddOn': True, 'count': 1, 'unitPrice': 2000, 'subtotal': 2000},
    ]


def test_range_is_inclusive_and_bounded(busy_week):
    [payout] = calculate_payouts(MONDAY + timedelta(days=1), MONDAY + timedelta(days=1))
    assert payout['appointmentCount'] == 1
    assert payout['bonusCount'] == 0
    assert payout['total'] == 5000

    assert calculate_payouts(MONDAY - timedelta(days=7), MONDAY - timedelta(days=1)) == []


def test_barbers_sorted_by_total(busy_week, branch, corte):
    fede = Barber.objects.create(branch=branch, name='Fede')
    booked(fede, corte, MONDAY, time(9, 0), paid=5000, cash=5000)

    payouts = calculate_payouts(MONDAY, MONDAY)

    assert [p['barberName'] for p in payouts] == ['Nico', 'Fede']
    assert payouts[1]['commission'] == 5000


def test_missing_bonus_service_pays_no_bonus(busy_week, settings):
    settings.PAYOUT_BONUS_SERVICE = 'Afeitado'
    [payout] = calculate_payouts(MONDAY, MONDAY)
    assert payout['bonusCount'] == 1
    assert payout['bonusAmount'] == 0
    assert payout['total'] == payout['commission']


# ── Payouts endpoint ──────────────────────────────────────────────────────────

def test_payouts_endpoint(staff_client, busy_week):
    url = reverse('dashboard:payouts')
    data = staff_client.get(url, {'from': MONDAY.isoformat(), 'to': '2030-01-13'}).json()
    assert data['from'] == MONDAY.isoformat()
    assert [p['total'] for p in data['barbers']] == [60000]


def test_payouts_endpoint_validates_range(staff_client, client):
    url = reverse('dashboard:payouts')
    assert client.get(url, {'from': '2030-01-01', 'to': '2030-01-31'}).status_code == 401
    assert staff_client.get(url, {'from': '2030-01-01'}).status_code == 400
    assert staff_client.get(url, {'from': '2030-02-01', 'to': '2030-01-01'}).status_code == 400


# ── Appointment listings ──────────────────────────────────────────────────────

def test_listing_shows_counted_appointments_paginated(staff_client, busy_week):
    url = reverse('dashboard:appointment_list')
    data = staff_client.get(url, {'size': 4, 'page': 3}).json()
    assert (data['total'], data['pages'], data['page']) == (11, 3, 3)
    assert len(data['items']) == 3

    first = staff_client.get(url, {'sort': 'date,desc'}).json()['items'][0]
    assert first['status'] == AppointmentStatus.BLOCKED
    assert first['cashDue'] == 7000


def test_listing_filters(staff_client, busy_week, branch):
    url = reverse('dashboard:appointment_list')
    pending = staff_client.get(url, {'status': 'PENDING_PAYMENT'}).json()
    assert pending['total'] == 1
    assert staff_client.get(url, {'from': '2030-01-08', 'to': '2030-01-08'}).json()['total'] == 1
    assert staff_client.get(url, {'branch': str(branch.pk)}).json()['total'] == 11
    assert staff_client.get(url, {'q': 'nadie'}).json()['total'] == 0
    assert staff_client.get(url, {'branch': 'nope'}).status_code == 400
    assert staff_client.get(url, {'status': 'LOST'}).status_code == 400


def test_upcoming_latest_and_count(staff_client, barber, corte):
    today = timezone.localdate()
    booked(barber, corte, today + timedelta(days=1), time(9, 0))
    booked(barber, corte, today + timedelta(days=30), time(9, 0))
    booked(barber, corte, today - timedelta(days=1), time(9, 0))
    booked(barber, corte, today + timedelta(days=2), time(9, 0), status=AppointmentStatus.BLOCKED)
    booked(barber, corte, today + timedelta(days=3), time(9, 0), status=AppointmentStatus.PENDING_PAYMENT)

    upcoming = staff_client.get(reverse('dashboard:upcoming_appointments'), {'days': 7}).json()['items']
    assert [a['date'] for a in upcoming] == [(today + timedelta(days=1)).isoformat()]

    latest = staff_client.get(reverse('dashboard:latest_appointments'), {'limit': 2}).json()['items']
    assert len(latest) == 2

    assert staff_client.get(reverse('dashboard:current_count')).json() == {'count': 3}
