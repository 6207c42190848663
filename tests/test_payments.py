import hashlib
import hmac
import json
from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest
from django.urls import reverse

from apps.barbers.models import Barber
from apps.bookings.exceptions import CheckoutError, InvalidSessionError, SlotConflictError
from apps.bookings.models import Appointment, AppointmentStatus
from apps.payments.models import Payment, PaymentStatus
from apps.payments.services import confirm_group, create_checkout
from apps.services.models import Service

pytestmark = pytest.mark.django_db

SHORT_URL = 'https://rzp.io/i/abc'


@pytest.fixture
def razorpay_client():
    client = MagicMock()
    client.payment_link.create.return_value = {'id': 'plink_1', 'short_url': SHORT_URL}
    with patch('apps.payments.services._razorpay_client', return_value=client):
        yield client


def payload_for(barber, service, days, times=None, add_ons=None, deposit_only=False):
    times = times or ['09:30'] * len(days)
    return {
        'branchId': str(barber.branch_id),
        'barberId': str(barber.pk),
        'serviceId': str(service.pk),
        'sessions': [
            {'date': d.isoformat(), 'time': t, 'addOnIds': (add_ons or {}).get(i)}
            for i, (d, t) in enumerate(zip(days, times))
        ],
        'customerName': 'Juan Pérez',
        'customerPhone': '+5493511234567',
        'customerAge': 30,
        'depositOnly': deposit_only,
    }


def signed(body: bytes):
    return hmac.new(b'whsec_test', body, hashlib.sha256).hexdigest()


def paid_event(link_id='plink_1', event_id='evt_1', event='payment_link.paid'):
    return {
        'id': event_id,
        'event': event,
        'payload': {
            'payment_link': {'entity': {'id': link_id}},
            'payment': {'entity': {'id': 'pay_1'}},
        },
    }


def post_webhook(client, payload, signature=None):
    body = json.dumps(payload).encode()
    return client.post(
        reverse('payments:webhook'), data=body, content_type='application/json',
        HTTP_X_RAZORPAY_SIGNATURE=signature if signature is not None else signed(body),
    )


# ── Checkout ──────────────────────────────────────────────────────────────────

def test_checkout_holds_sessions_and_returns_payment_link(barber, corte, next_monday, razorpay_client):
    result = create_checkout(payload_for(barber, corte, [next_monday]))

    assert result['redirectUrl'] == SHORT_URL
    assert result['quote'] == {'total': 10000, 'payNow': 10000, 'cashDue': 0}
    link = razorpay_client.payment_link.create.call_args.args[0]
    assert link['amount'] == 1000000
    assert link['currency'] == 'ARS'
    assert link['reference_id'] == result['groupId']

    appointment = Appointment.objects.get()
    assert appointment.status == AppointmentStatus.PENDING_PAYMENT
    assert appointment.customer_phone == '+5493511234567'
    payment = Payment.objects.get()
    assert (payment.amount, payment.razorpay_link_id) == (10000, 'plink_1')


def test_deposit_checkout_charges_half_including_add_ons(barber, plan, lavado, next_monday, razorpay_client):
    days = [next_monday + timedelta(days=7 * i) for i in range(3)]
    payload = payload_for(barber, plan, days, add_ons={0: [str(lavado.pk)]}, deposit_only=True)

    result = create_checkout(payload)

    assert result['quote'] == {'total': 47000, 'payNow': 23500, 'cashDue': 23500}
    assert Appointment.objects.count() == 3
    first = Appointment.objects.get(session_index=0)
    assert list(first.add_ons.all()) == [lavado]


def test_wrong_session_count_rejected(barber, plan, next_monday, razorpay_client):
    with pytest.raises(InvalidSessionError):
        create_checkout(payload_for(barber, plan, [next_monday]))
    assert not Appointment.objects.exists()


def test_primary_service_is_not_an_add_on(barber, corte, next_monday, razorpay_client):
    payload = payload_for(barber, corte, [next_monday], add_ons={0: [str(corte.pk)]})
    with pytest.raises(InvalidSessionError):
        create_checkout(payload)


def test_barber_scoped_service_refused_for_other_barber(barber, branch, corte, next_monday, razorpay_client):
    other = Barber.objects.create(branch=branch, name='Fede')
    exclusive = Service.objects.create(name='Color', price=18000, session_count=1)
    exclusive.barbers.set([other])
    with pytest.raises(InvalidSessionError):
        create_checkout(payload_for(barber, exclusive, [next_monday]))


def test_taken_slot_conflicts(barber, corte, next_monday, razorpay_client):
    create_checkout(payload_for(barber, corte, [next_monday]))
    with pytest.raises(SlotConflictError):
        create_checkout(payload_for(barber, corte, [next_monday]))


def test_gateway_failure_releases_holds(barber, corte, next_monday, razorpay_client):
    razorpay_client.payment_link.create.side_effect = RuntimeError('gateway down')

    with pytest.raises(CheckoutError) as excinfo:
        create_checkout(payload_for(barber, corte, [next_monday]))

    assert excinfo.value.http_status == 502
    assert Appointment.objects.get().status == AppointmentStatus.EXPIRED
    assert Payment.objects.get().status == PaymentStatus.FAILED


def test_free_booking_confirms_without_payment_link(barber, next_monday, razorpay_client):
    free = Service.objects.create(name='Consulta', price=0, session_count=1)
    result = create_checkout(payload_for(barber, free, [next_monday]))

    assert '/payments/result/' in result['redirectUrl']
    razorpay_client.payment_link.create.assert_not_called()
    assert Appointment.objects.get().status == AppointmentStatus.CONFIRMED


def test_checkout_view_maps_errors_to_status(client, barber, corte, next_monday, razorpay_client):
    url = reverse('payments:checkout')
    payload = payload_for(barber, corte, [next_monday])

    first = client.post(url, data=json.dumps(payload), content_type='application/json')
    second = client.post(url, data=json.dumps(payload), content_type='application/json')
    broken = client.post(url, data='{nope', content_type='application/json')

    assert first.status_code == 200
    assert first.json()['redirectUrl'] == SHORT_URL
    assert second.status_code == 409
    assert broken.status_code == 400


# ── Confirmation ──────────────────────────────────────────────────────────────

def test_confirm_group_records_amounts_on_first_session(barber, plan, next_monday, razorpay_client):
    days = [next_monday + timedelta(days=7 * i) for i in range(3)]
    create_checkout(payload_for(barber, plan, days, deposit_only=True))
    payment = Payment.objects.get()

    assert confirm_group(payment, razorpay_payment_id='pay_1') == 3
    assert confirm_group(payment, razorpay_payment_id='pay_1') == 0

    first, second, third = Appointment.objects.in_group(payment.group_id)
    assert (first.amount_paid, first.cash_due) == (22500, 22500)
    assert (second.amount_paid, third.cash_due) == (0, 0)
    assert all(a.status == AppointmentStatus.CONFIRMED for a in (first, second, third))
    payment.refresh_from_db()
    assert payment.status == PaymentStatus.PAID


# ── Webhook ───────────────────────────────────────────────────────────────────

def test_paid_webhook_confirms_group(client, barber, corte, next_monday, razorpay_client):
    create_checkout(payload_for(barber, corte, [next_monday]))

    response = post_webhook(client, paid_event())

    assert response.status_code == 200
    assert Appointment.objects.get().status == AppointmentStatus.CONFIRMED
    payment = Payment.objects.get()
    assert (payment.status, payment.razorpay_payment_id, payment.webhook_event_id) == (
        PaymentStatus.PAID, 'pay_1', 'evt_1',
    )


def test_webhook_with_bad_signature_is_rejected(client, barber, corte, next_monday, razorpay_client):
    create_checkout(payload_for(barber, corte, [next_monday]))
    response = post_webhook(client, paid_event(), signature='forged')
    assert response.status_code == 400
    assert Appointment.objects.get().status == AppointmentStatus.PENDING_PAYMENT


def test_replayed_webhook_is_ignored(client, barber, corte, next_monday, razorpay_client):
    create_checkout(payload_for(barber, corte, [next_monday]))
    post_webhook(client, paid_event())
    with patch('apps.payments.views.confirm_group') as confirm:
        response = post_webhook(client, paid_event())
    assert response.status_code == 200
    confirm.assert_not_called()


def test_expired_link_releases_holds(client, barber, corte, next_monday, razorpay_client):
    create_checkout(payload_for(barber, corte, [next_monday]))
    post_webhook(client, paid_event(event='payment_link.expired'))
    assert Appointment.objects.get().status == AppointmentStatus.EXPIRED
    assert Payment.objects.get().status == PaymentStatus.EXPIRED


def test_unknown_link_still_answers_200(client):
    assert post_webhook(client, paid_event(link_id='plink_missing')).status_code == 200


def test_payment_result(client, barber, corte, next_monday, razorpay_client):
    result = create_checkout(payload_for(barber, corte, [next_monday], deposit_only=True))
    post_webhook(client, paid_event())

    data = client.get(reverse('payments:result', args=[result['groupId']])).json()

    assert data['paid'] is True
    assert data['amountPaid'] == 5000
    assert data['cashDue'] == 5000
    assert data['appointments'][0]['time'] == '09:30'
    assert data['appointments'][0]['status'] == AppointmentStatus.CONFIRMED
