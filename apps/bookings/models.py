"""
Bookings app models:
  - Appointment          : one booked session, with its own state machine
  - AppointmentStatusLog : full audit trail of state transitions

A multi-session checkout creates one Appointment per session; they share
a group_id so payment confirmation can move them together.
"""
import uuid
from django.db import models
from django.utils import timezone
from apps.core.models import UUIDModel, TimestampedModel
from apps.branches.models import Branch
from apps.barbers.models import Barber
from apps.services.models import Service


class AppointmentStatus(models.TextChoices):
    PENDING_PAYMENT = 'PENDING_PAYMENT', 'Pending Payment'
    CONFIRMED       = 'CONFIRMED',       'Confirmed'
    BLOCKED         = 'BLOCKED',         'Blocked'
    COMPLETED       = 'COMPLETED',       'Completed'
    CANCELLED       = 'CANCELLED',       'Cancelled'
    EXPIRED         = 'EXPIRED',         'Expired'


class AppointmentQuerySet(models.QuerySet):
    def occupying(self, now=None):
        """Rows that take a slot off the calendar."""
        now = now or timezone.now()
        return self.filter(
            models.Q(status__in=[AppointmentStatus.CONFIRMED, AppointmentStatus.BLOCKED])
            | models.Q(status=AppointmentStatus.PENDING_PAYMENT, hold_expires_at__gt=now)
        )

    def in_group(self, group_id):
        return self.filter(group_id=group_id).order_by('session_index')


class Appointment(UUIDModel, TimestampedModel):
    """
    One session of a booking. Created PENDING_PAYMENT at checkout with a
    short hold; the payment webhook confirms it.
    Status transitions go through the explicit methods, not field writes.
    """
    branch = models.ForeignKey(Branch, on_delete=models.PROTECT, related_name='appointments')
    barber = models.ForeignKey(Barber, on_delete=models.PROTECT, related_name='appointments')
    service = models.ForeignKey(Service, on_delete=models.PROTECT, related_name='appointments')
    add_ons = models.ManyToManyField(Service, blank=True, related_name='add_on_appointments')

    group_id = models.UUIDField(default=uuid.uuid4, db_index=True)
    session_index = models.PositiveSmallIntegerField(default=0)

    date = models.DateField(db_index=True)
    time = models.TimeField()

    status = models.CharField(
        max_length=20, choices=AppointmentStatus.choices,
        default=AppointmentStatus.PENDING_PAYMENT, db_index=True,
    )
    hold_expires_at = models.DateTimeField(null=True, blank=True, db_index=True)

    customer_name = models.CharField(max_length=120)
    customer_phone = models.CharField(max_length=24)
    customer_age = models.PositiveSmallIntegerField(null=True, blank=True)

    deposit_only = models.BooleanField(default=False)
    amount_paid = models.PositiveIntegerField(default=0)
    cash_due = models.PositiveIntegerField(default=0)

    objects = AppointmentQuerySet.as_manager()

    class Meta:
        verbose_name = 'Appointment'
        verbose_name_plural = 'Appointments'
        ordering = ['-date', '-time']
        # DB-level guard: a barber holds one confirmed or blocked booking per slot
        constraints = [
            models.UniqueConstraint(
                fields=['barber', 'date', 'time'],
                condition=models.Q(status__in=['CONFIRMED', 'BLOCKED']),
                name='uq_taken_appointment_slot',
            )
        ]

    def __str__(self):
        return (
            f"{self.customer_name} | {self.service.name} | "
            f"{self.barber.name} {self.date} {self.time.strftime('%H:%M')}"
        )

    @property
    def hold_is_active(self):
        return (
            self.status == AppointmentStatus.PENDING_PAYMENT
            and self.hold_expires_at is not None
            and self.hold_expires_at > timezone.now()
        )

    # ── State transition helpers ──────────────────────────────────────────────

    def confirm(self, amount_paid, cash_due, changed_by='system'):
        """Transition to CONFIRMED after the payment gateway reports success."""
        self._transition(AppointmentStatus.CONFIRMED, changed_by)
        self.amount_paid = amount_paid
        self.cash_due = cash_due
        self.hold_expires_at = None
        self.save(update_fields=['status', 'amount_paid', 'cash_due', 'hold_expires_at', 'updated_at'])

    def complete(self, changed_by='admin'):
        self._transition(AppointmentStatus.COMPLETED, changed_by)
        self.save(update_fields=['status', 'updated_at'])

    def cancel(self, changed_by='admin', reason=''):
        self._transition(AppointmentStatus.CANCELLED, changed_by, reason)
        self.save(update_fields=['status', 'updated_at'])

    def expire(self, changed_by='system'):
        """Hold elapsed without payment; the slot goes back on the calendar."""
        self._transition(AppointmentStatus.EXPIRED, changed_by)
        self.hold_expires_at = None
        self.save(update_fields=['status', 'hold_expires_at', 'updated_at'])

    def _transition(self, new_status, changed_by, reason=''):
        old_status = self.status
        self.status = new_status
        AppointmentStatusLog.objects.create(
            appointment=self,
            from_status=old_status,
            to_status=new_status,
            changed_by=changed_by,
            reason=reason,
        )


# ── Appointment Audit Log ─────────────────────────────────────────────────────

class AppointmentStatusLog(UUIDModel):
    """Immutable audit trail of every status transition on an appointment."""
    appointment = models.ForeignKey(Appointment, on_delete=models.CASCADE, related_name='status_logs')
    from_status = models.CharField(max_length=20, choices=AppointmentStatus.choices, blank=True)
    to_status = models.CharField(max_length=20, choices=AppointmentStatus.choices)
    changed_by = models.CharField(max_length=80, help_text='system / admin / webhook')
    reason = models.TextField(blank=True)
    changed_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = 'Appointment Status Log'
        verbose_name_plural = 'Appointment Status Logs'
        ordering = ['changed_at']

    def __str__(self):
        return f"Appointment {str(self.appointment_id)[:8]}: {self.from_status} → {self.to_status}"
