"""
Price quote for a booking draft.

  total    = primary service price + every add-on of every session
  pay_now  = total, or the deposit share of it when deposit_only
  cash_due = total - pay_now, settled at the shop

The deposit is rounded half-up to a whole currency unit, so an odd total
charges the extra unit online (total 5001 → pay_now 2501, cash_due 2500).
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings


@dataclass(frozen=True)
class Quote:
    total: int
    pay_now: int
    cash_due: int

    def to_dict(self) -> dict:
        return {'total': self.total, 'payNow': self.pay_now, 'cashDue': self.cash_due}


def deposit_amount(total: int, rate=None) -> int:
    rate = Decimal(str(rate if rate is not None else getattr(settings, 'DEPOSIT_RATE', '0.5')))
    return int((Decimal(total) * rate).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def split_payment(total: int, deposit_only: bool, rate=None) -> Quote:
    pay_now = deposit_amount(total, rate) if deposit_only else total
    return Quote(total=total, pay_now=pay_now, cash_due=total - pay_now)


def draft_total(draft, prices) -> int:
    """
    `prices` maps service id → price for the primary service and add-ons.
    Unknown ids raise KeyError; a draft without a service totals 0.
    """
    if not draft.service_id:
        return 0
    total = prices[draft.service_id]
    for session in draft.sessions:
        total += sum(prices[add_on_id] for add_on_id in session.add_on_ids)
    return total


def quote(draft, prices) -> Quote:
    return split_payment(draft_total(draft, prices), draft.deposit_only)
