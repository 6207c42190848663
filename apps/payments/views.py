"""
Payment views for Cromados.

Flow:
  1. checkout        → validate + hold sessions → Razorpay payment link
                     → {"redirectUrl": short_url}
  2. razorpay_webhook → payment_link.paid confirms the whole group
                        (payment_link.expired / cancelled release the holds)
  3. payment_result  → status of a group for the page the customer lands on
"""
import hashlib
import hmac
import json
import logging

from django.conf import settings
from django.http import HttpResponse, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from apps.bookings.exceptions import BookingEngineError
from apps.bookings.models import Appointment

from .models import Payment, PaymentStatus
from .services import confirm_group, create_checkout, expire_group

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────

def _verify_webhook_signature(raw_body: bytes, signature: str) -> bool:
    """Verify Razorpay webhook signature (HMAC-SHA256 of the raw body)."""
    secret = settings.RAZORPAY_WEBHOOK_SECRET.encode()
    computed = hmac.new(key=secret, msg=raw_body, digestmod=hashlib.sha256).hexdigest()
    return hmac.compare_digest(computed, signature)


# ─────────────────────────────────────────────────────────────────────────────
# Checkout
# ─────────────────────────────────────────────────────────────────────────────

@require_POST
def checkout(request):
    try:
        payload = json.loads(request.body or b'{}')
    except (json.JSONDecodeError, UnicodeDecodeError):
        return JsonResponse({'error': 'Invalid JSON body.'}, status=400)

    try:
        result = create_checkout(payload)
    except BookingEngineError as exc:
        logger.info('Checkout rejected: %s', exc)
        return JsonResponse({'error': str(exc)}, status=exc.http_status)

    return JsonResponse(result)


# ─────────────────────────────────────────────────────────────────────────────
# Razorpay Webhook (server-to-server, authoritative)
# ─────────────────────────────────────────────────────────────────────────────

@csrf_exempt
@require_POST
def razorpay_webhook(request):
    """
    Razorpay fires this endpoint for payment-link events.
    CSRF-exempt; security comes from the HMAC-SHA256 signature check.
    Processing errors are logged and still answered with 200 so Razorpay
    does not hammer a broken event.
    """
    raw_body = request.body
    signature = request.headers.get('X-Razorpay-Signature', '')

    if settings.RAZORPAY_WEBHOOK_SECRET:
        if not _verify_webhook_signature(raw_body, signature):
            logger.warning('Webhook signature verification failed.')
            return HttpResponse(status=400)

    try:
        payload = json.loads(raw_body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return HttpResponse(status=400)

    event = payload.get('event', '')
    event_id = request.headers.get('X-Razorpay-Event-Id') or payload.get('id') or None

    # Idempotency: skip if already processed
    if event_id and Payment.objects.filter(webhook_event_id=event_id).exists():
        logger.info('Webhook event %s already processed — skipping.', event_id)
        return HttpResponse(status=200)

    if event not in ('payment_link.paid', 'payment_link.expired', 'payment_link.cancelled'):
        return HttpResponse(status=200)

    try:
        link = payload['payload']['payment_link']['entity']
        payment = Payment.objects.filter(razorpay_link_id=link['id']).first()
        if payment is None:
            logger.warning('Webhook: no payment for link %s', link['id'])
            return HttpResponse(status=200)

        payment.webhook_event_id = event_id
        payment.webhook_payload = payload
        payment.save(update_fields=['webhook_event_id', 'webhook_payload', 'updated_at'])

        if event == 'payment_link.paid':
            razorpay_payment_id = (
                payload['payload'].get('payment', {}).get('entity', {}).get('id')
            )
            confirm_group(payment, razorpay_payment_id=razorpay_payment_id, changed_by='webhook')
        else:
            expire_group(payment, changed_by='webhook')
    except Exception as exc:
        # Webhook must never crash or return 500
        logger.exception('Webhook processing error: %s', exc)

    return HttpResponse(status=200)


# ─────────────────────────────────────────────────────────────────────────────
# Payment result
# ─────────────────────────────────────────────────────────────────────────────

@require_GET
def payment_result(request, group_id):
    payment = Payment.objects.filter(group_id=group_id).first()
    appointments = list(
        Appointment.objects.in_group(group_id).select_related('barber', 'service', 'branch')
    )
    if payment is None and not appointments:
        return JsonResponse({'error': 'Booking not found.'}, status=404)

    return JsonResponse({
        'groupId': str(group_id),
        'paymentStatus': payment.status if payment else PaymentStatus.CREATED,
        'paid': bool(payment and payment.status == PaymentStatus.PAID),
        'amountPaid': payment.amount if payment and payment.status == PaymentStatus.PAID else 0,
        'cashDue': payment.cash_due if payment else 0,
        'appointments': [
            {
                'date': a.date.isoformat(),
                'time': a.time.strftime('%H:%M'),
                'status': a.status,
                'barber': a.barber.name,
                'service': a.service.name,
                'branch': a.branch.name,
            }
            for a in appointments
        ],
    })
