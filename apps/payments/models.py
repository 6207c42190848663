"""
Payment model — records the Razorpay payment-link lifecycle of a checkout.
One Payment per checkout group (all sessions of one booking).

Nullable unique columns use conditional UniqueConstraints so rows that
have not been paid yet (NULL ids) never collide.
"""
from django.db import models
from apps.core.models import UUIDModel, TimestampedModel


class PaymentStatus(models.TextChoices):
    CREATED   = 'CREATED',   'Created'
    PAID      = 'PAID',      'Paid'
    EXPIRED   = 'EXPIRED',   'Expired'
    FAILED    = 'FAILED',    'Failed'


class Payment(UUIDModel, TimestampedModel):
    """
    Created together with the payment link at checkout.
    Updated by the webhook when Razorpay reports the link as paid.
    """
    group_id = models.UUIDField(unique=True, db_index=True)
    razorpay_link_id = models.CharField(max_length=100, blank=True, null=True)
    redirect_url = models.URLField(max_length=500, blank=True)
    total = models.PositiveIntegerField()
    amount = models.PositiveIntegerField(help_text='Charged online (deposit or full total).')
    cash_due = models.PositiveIntegerField(default=0)
    currency = models.CharField(max_length=3, default='ARS')
    deposit_only = models.BooleanField(default=False)
    status = models.CharField(
        max_length=10, choices=PaymentStatus.choices, default=PaymentStatus.CREATED,
    )
    razorpay_payment_id = models.CharField(max_length=100, blank=True, null=True)
    webhook_event_id = models.CharField(max_length=100, blank=True, null=True)
    webhook_payload = models.JSONField(null=True, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        verbose_name = 'Payment'
        verbose_name_plural = 'Payments'
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['razorpay_link_id'],
                condition=models.Q(razorpay_link_id__isnull=False),
                name='uq_payment_razorpay_link_id',
            ),
            models.UniqueConstraint(
                fields=['razorpay_payment_id'],
                condition=models.Q(razorpay_payment_id__isnull=False),
                name='uq_payment_razorpay_payment_id',
            ),
            models.UniqueConstraint(
                fields=['webhook_event_id'],
                condition=models.Q(webhook_event_id__isnull=False),
                name='uq_payment_webhook_event_id',
            ),
        ]

    def __str__(self):
        return f"Payment {self.razorpay_link_id or self.group_id} [{self.status}] — {self.amount} {self.currency}"
