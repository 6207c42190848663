"""
Checkout submission and payment confirmation.

Public API:
  create_checkout(payload)                  → {"redirectUrl": ..., "groupId": ..., "quote": {...}}
  confirm_group(payment, razorpay_payment_id, changed_by)
  expire_group(payment, changed_by)

Flow:
  1. create_checkout validates the payload, prices it server-side and
     holds one PENDING_PAYMENT appointment per session
  2. a Razorpay payment link is created for the pay-now amount; its
     short_url is the customer's redirect
  3. the payment_link.paid webhook confirms every session of the group
"""
import logging
from datetime import datetime

import razorpay
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.barbers.models import Barber
from apps.bookings.engine import reserve_sessions
from apps.bookings.exceptions import CheckoutError, InvalidSessionError
from apps.bookings.models import Appointment, AppointmentStatus
from apps.bookings.pricing import split_payment
from apps.bookings.schedule import InvalidRangeError, parse_hhmm
from apps.services.models import Service

from .models import Payment, PaymentStatus

logger = logging.getLogger(__name__)


def _razorpay_client():
    return razorpay.Client(
        auth=(settings.RAZORPAY_KEY_ID, settings.RAZORPAY_KEY_SECRET)
    )


# ─────────────────────────────────────────────────────────────────────────────
# Payload validation
# ─────────────────────────────────────────────────────────────────────────────

def _get(qs, pk, message):
    try:
        obj = qs.filter(pk=pk).first()
    except (ValueError, ValidationError):
        obj = None
    if obj is None:
        raise InvalidSessionError(message)
    return obj


def _parse_sessions(raw_sessions, barber, service):
    if not isinstance(raw_sessions, list) or not raw_sessions:
        raise InvalidSessionError('At least one session is required.')
    if len(raw_sessions) != service.session_count:
        raise InvalidSessionError(
            f"{service.name} needs {service.session_count} session(s), got {len(raw_sessions)}."
        )

    add_on_qs = Service.objects.active().add_ons().for_barber(barber)
    sessions = []
    for index, raw in enumerate(raw_sessions):
        if not isinstance(raw, dict):
            raise InvalidSessionError(f"Session {index + 1} is malformed.")
        try:
            day = datetime.strptime(str(raw.get('date')), '%Y-%m-%d').date()
            start_time = parse_hhmm(raw.get('time'))
        except (ValueError, InvalidRangeError):
            raise InvalidSessionError(f"Session {index + 1} needs a valid date and time.") from None

        add_ons = []
        for add_on_id in raw.get('addOnIds') or []:
            add_ons.append(_get(add_on_qs, add_on_id, f"Unknown add-on {add_on_id}."))
        sessions.append((day, start_time, add_ons))
    return sessions


def _parse_customer(payload):
    name = str(payload.get('customerName') or '').strip()
    phone = str(payload.get('customerPhone') or '').strip()
    try:
        age = int(payload.get('customerAge'))
    except (TypeError, ValueError):
        age = None
    if not name or not phone:
        raise InvalidSessionError('Customer name and phone are required.')
    if age is None or age < getattr(settings, 'MIN_CUSTOMER_AGE', 3):
        raise InvalidSessionError('Customer age is missing or too low.')
    return {'name': name, 'phone': phone, 'age': age}


# ─────────────────────────────────────────────────────────────────────────────
# Checkout
# ─────────────────────────────────────────────────────────────────────────────

def create_checkout(payload: dict) -> dict:
    """
    Hold the sessions and create the payment link.

    Raises:
      InvalidSessionError  — malformed payload or unknown ids (400)
      SlotConflictError    — a slot was taken meanwhile (409)
      SlotUnavailableError — a slot is outside the barber's hours (409)
      CheckoutError        — payment gateway failure (502)
    """
    if not isinstance(payload, dict):
        raise InvalidSessionError('Invalid checkout payload.')

    barber = _get(
        Barber.objects.active().select_related('branch'),
        payload.get('barberId'), 'Unknown barber.',
    )
    if str(barber.branch_id) != str(payload.get('branchId')) or not barber.branch.is_active:
        raise InvalidSessionError('The barber does not work at that branch.')
    service = _get(
        Service.objects.active().primary().for_barber(barber),
        payload.get('serviceId'), 'Unknown service.',
    )
    sessions = _parse_sessions(payload.get('sessions'), barber, service)
    customer = _parse_customer(payload)
    deposit_only = bool(payload.get('depositOnly'))

    total = service.price + sum(a.price for _, _, add_ons in sessions for a in add_ons)
    quote = split_payment(total, deposit_only)

    appointments = reserve_sessions(barber, service, sessions, customer, deposit_only)
    group_id = appointments[0].group_id

    payment = Payment.objects.create(
        group_id=group_id,
        total=quote.total,
        amount=quote.pay_now,
        cash_due=quote.cash_due,
        currency=settings.PAYMENT_CURRENCY,
        deposit_only=deposit_only,
    )

    if quote.pay_now == 0:
        confirm_group(payment, razorpay_payment_id=None, changed_by='checkout')
        redirect_url = _result_url(group_id)
    else:
        redirect_url = _create_payment_link(payment, barber, service, customer)

    return {'redirectUrl': redirect_url, 'groupId': str(group_id), 'quote': quote.to_dict()}


def _result_url(group_id):
    return f"{settings.FRONTEND_URL.rstrip('/')}/payments/result/{group_id}/"


def _create_payment_link(payment, barber, service, customer):
    client = _razorpay_client()
    try:
        link = client.payment_link.create({
            'amount': payment.amount * 100,  # smallest currency unit
            'currency': payment.currency,
            'accept_partial': False,
            'reference_id': str(payment.group_id),
            'description': f"{service.name} con {barber.name}"[:255],
            'customer': {'name': customer['name'], 'contact': customer['phone']},
            'notify': {'sms': False, 'email': False},
            'callback_url': _result_url(payment.group_id),
            'callback_method': 'get',
            'notes': {
                'group_id': str(payment.group_id),
                'deposit_only': str(payment.deposit_only).lower(),
            },
        })
    except Exception as exc:
        logger.exception('Razorpay payment link creation failed for group %s: %s', payment.group_id, exc)
        payment.status = PaymentStatus.FAILED
        payment.save(update_fields=['status', 'updated_at'])
        expire_group(payment, changed_by='checkout')
        raise CheckoutError('Could not connect to the payment gateway. Please try again.', status=502) from exc

    payment.razorpay_link_id = link['id']
    payment.redirect_url = link['short_url']
    payment.save(update_fields=['razorpay_link_id', 'redirect_url', 'updated_at'])
    logger.info('Payment link %s created for group %s', link['id'], payment.group_id)
    return link['short_url']


# ─────────────────────────────────────────────────────────────────────────────
# Confirmation / expiry
# ─────────────────────────────────────────────────────────────────────────────

@transaction.atomic
def confirm_group(payment: Payment, razorpay_payment_id=None, changed_by='webhook') -> int:
    """
    Confirm every held session of the payment's group. The online amount
    and the cash balance are recorded on the first session.
    Returns the number of appointments confirmed.
    """
    payment = Payment.objects.select_for_update().get(pk=payment.pk)
    if payment.status == PaymentStatus.PAID:
        return 0

    confirmed = 0
    appointments = Appointment.objects.select_for_update().in_group(payment.group_id)
    for appointment in appointments:
        if appointment.status not in (AppointmentStatus.PENDING_PAYMENT, AppointmentStatus.EXPIRED):
            continue
        first = appointment.session_index == 0
        try:
            with transaction.atomic():
                appointment.confirm(
                    amount_paid=payment.amount if first else 0,
                    cash_due=payment.cash_due if first else 0,
                    changed_by=changed_by,
                )
        except IntegrityError:
            # Hold expired and someone else took the slot before the payment landed
            logger.error(
                'Paid appointment %s (group %s) lost its slot %s %s; refund or reschedule required',
                appointment.pk, payment.group_id, appointment.date, appointment.time,
            )
            continue
        confirmed += 1

    payment.status = PaymentStatus.PAID
    payment.razorpay_payment_id = razorpay_payment_id or payment.razorpay_payment_id
    payment.paid_at = timezone.now()
    payment.save(update_fields=['status', 'razorpay_payment_id', 'paid_at', 'updated_at'])
    logger.info('Group %s confirmed: %d session(s) via %s', payment.group_id, confirmed, changed_by)
    return confirmed


@transaction.atomic
def expire_group(payment: Payment, changed_by='system') -> int:
    """Release the holds of an unpaid group."""
    count = 0
    for appointment in Appointment.objects.select_for_update().in_group(payment.group_id):
        if appointment.status == AppointmentStatus.PENDING_PAYMENT:
            appointment.expire(changed_by=changed_by)
            count += 1
    if payment.status == PaymentStatus.CREATED:
        payment.status = PaymentStatus.EXPIRED
        payment.save(update_fields=['status', 'updated_at'])
    return count
