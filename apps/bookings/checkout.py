"""
Checkout assembler: turns a complete draft plus the customer's contact
details into the checkout payload, submits it, and returns the payment
redirect URL.
"""
import logging
import re

from django import forms
from django.conf import settings

from .client import BookingApiError
from .draft import is_complete
from .exceptions import BookingEngineError, CheckoutError

logger = logging.getLogger(__name__)

COUNTRY_CODE_CHOICES = [
    ('+54', 'Argentina (+54)'),
    ('+598', 'Uruguay (+598)'),
    ('+595', 'Paraguay (+595)'),
    ('+56', 'Chile (+56)'),
    ('+55', 'Brasil (+55)'),
    ('+1', 'USA / Canadá (+1)'),
    ('+34', 'España (+34)'),
    ('+52', 'México (+52)'),
    ('+51', 'Perú (+51)'),
    ('+57', 'Colombia (+57)'),
]


def clean_local_number(local: str) -> str:
    """Drop a leading '+' and every whitespace character."""
    return re.sub(r'\s+', '', local or '').lstrip('+')


def compose_phone(country_code: str, local: str) -> str:
    """
    Full number for messaging.

    Usually the calling code followed by the local number. Some countries
    route mobiles through an extra digit after the calling code
    (Argentina: +54 9 ...); MOBILE_PREFIX_RULES lists those.
    """
    rules = getattr(settings, 'MOBILE_PREFIX_RULES', {'+54': '9'})
    return f"{country_code}{rules.get(country_code, '')}{clean_local_number(local)}"


class CustomerForm(forms.Form):
    name = forms.CharField(max_length=120, label='Nombre y apellido')
    country_code = forms.ChoiceField(choices=COUNTRY_CODE_CHOICES, initial='+54', label='País')
    phone = forms.CharField(max_length=20, label='Teléfono')
    age = forms.IntegerField(label='Edad')

    def clean_name(self):
        name = self.cleaned_data['name'].strip()
        if not name:
            raise forms.ValidationError('Ingresá tu nombre.')
        return name

    def clean_phone(self):
        local = clean_local_number(self.cleaned_data['phone'])
        if not local.isdigit():
            raise forms.ValidationError('El teléfono sólo puede tener números.')
        return local

    def clean_age(self):
        age = self.cleaned_data['age']
        minimum = getattr(settings, 'MIN_CUSTOMER_AGE', 3)
        if age < minimum:
            raise forms.ValidationError(f'La edad debe ser al menos {minimum}.')
        return age

    def customer(self) -> dict:
        data = self.cleaned_data
        return {
            'name': data['name'],
            'phone': compose_phone(data['country_code'], data['phone']),
            'age': data['age'],
        }


def build_checkout_payload(draft, customer: dict) -> dict:
    """Serialise a complete draft; raise CheckoutError for an incomplete one."""
    if not is_complete(draft):
        raise CheckoutError('Completá todos los pasos antes de confirmar.', status=400)
    return {
        'branchId': draft.branch_id,
        'barberId': draft.barber_id,
        'serviceId': draft.service_id,
        'sessions': [
            {
                'date': s.date,
                'time': s.time,
                'addOnIds': list(s.add_on_ids) or None,
            }
            for s in draft.sessions
        ],
        'customerName': customer['name'],
        'customerPhone': customer['phone'],
        'customerAge': customer['age'],
        'depositOnly': draft.deposit_only,
    }


async def submit_checkout(gateway, payload: dict) -> str:
    """
    Send the payload and return the payment redirect URL.

    Any failure (HTTP error, rejected slot, missing redirect) becomes a
    CheckoutError; the caller keeps the draft so the customer can retry.
    """
    try:
        response = await gateway.submit_checkout(payload)
    except BookingApiError as exc:
        logger.warning('Checkout rejected by booking API: %s', exc)
        status = getattr(exc, 'status_code', 502)
        if status >= 500:
            status = 502
        detail = getattr(exc, 'detail', '') or 'No pudimos iniciar el pago. Probá de nuevo.'
        raise CheckoutError(detail, status=status) from exc
    except BookingEngineError as exc:
        logger.info('Checkout rejected: %s', exc)
        raise CheckoutError(str(exc), status=exc.http_status) from exc
    except Exception as exc:
        logger.exception('Checkout submission failed: %s', exc)
        raise CheckoutError('No pudimos iniciar el pago. Probá de nuevo.', status=502) from exc

    redirect_url = (response or {}).get('redirectUrl')
    if not redirect_url:
        logger.error('Checkout response without redirectUrl: %r', response)
        raise CheckoutError('No pudimos iniciar el pago. Probá de nuevo.', status=502)
    return redirect_url
