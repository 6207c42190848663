"""
Barber models: Barber profile, WeeklySlot, ExceptionalDay.
Each barber belongs to exactly one branch.

Weekdays are ISO numbered: 1=Monday .. 7=Sunday.
"""
from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from apps.core.models import CatalogModel, UUIDModel, TimestampedModel
from apps.branches.models import Branch


WEEKDAY_CHOICES = [
    (1, 'Monday'), (2, 'Tuesday'), (3, 'Wednesday'), (4, 'Thursday'),
    (5, 'Friday'), (6, 'Saturday'), (7, 'Sunday'),
]


class Barber(CatalogModel):
    branch = models.ForeignKey(
        Branch,
        on_delete=models.CASCADE,
        related_name='barbers',
    )
    name = models.CharField(max_length=120)
    photo_url = models.URLField(blank=True)
    instagram_url = models.URLField(blank=True)
    facebook_url = models.URLField(blank=True)

    class Meta:
        verbose_name = 'Barber'
        verbose_name_plural = 'Barbers'
        ordering = ['branch', 'name']

    def __str__(self):
        return f"{self.name} — {self.branch.name}"

    def to_dict(self):
        return {
            'id': str(self.id),
            'name': self.name,
            'branchId': str(self.branch_id),
            'photoUrl': self.photo_url or None,
            'instagramUrl': self.instagram_url or None,
            'facebookUrl': self.facebook_url or None,
        }


class WeeklySlot(UUIDModel):
    """
    One open range of a barber's recurring week.
    Two rows on the same weekday model a split shift.
    """
    barber = models.ForeignKey(
        Barber,
        on_delete=models.CASCADE,
        related_name='weekly_slots',
    )
    weekday = models.PositiveSmallIntegerField(
        choices=WEEKDAY_CHOICES,
        validators=[MinValueValidator(1), MaxValueValidator(7)],
    )
    start_time = models.TimeField()
    end_time = models.TimeField()

    class Meta:
        verbose_name = 'Weekly Slot'
        verbose_name_plural = 'Weekly Slots'
        ordering = ['barber', 'weekday', 'start_time']
        constraints = [
            models.UniqueConstraint(
                fields=['barber', 'weekday', 'start_time'],
                name='uq_weekly_slot_start',
            )
        ]

    def __str__(self):
        return (
            f"{self.barber.name} — {self.get_weekday_display()} "
            f"({self.start_time.strftime('%H:%M')}–{self.end_time.strftime('%H:%M')})"
        )

    def clean(self):
        if self.start_time and self.end_time and self.start_time >= self.end_time:
            raise ValidationError('Start time must be before end time.')

    def to_dict(self):
        return {
            'barberId': str(self.barber_id),
            'weekday': self.weekday,
            'start': self.start_time.strftime('%H:%M'),
            'end': self.end_time.strftime('%H:%M'),
        }


class ExceptionalDay(UUIDModel, TimestampedModel):
    """
    Date-specific hours that replace the weekly schedule for that date.
    A row without times closes the barber for the whole date.
    """
    barber = models.ForeignKey(
        Barber,
        on_delete=models.CASCADE,
        related_name='exceptional_days',
    )
    date = models.DateField(db_index=True)
    start_time = models.TimeField(null=True, blank=True)
    end_time = models.TimeField(null=True, blank=True)

    class Meta:
        verbose_name = 'Exceptional Day'
        verbose_name_plural = 'Exceptional Days'
        ordering = ['date', 'start_time']

    def __str__(self):
        if self.is_closed:
            return f"{self.barber.name} — closed on {self.date}"
        return (
            f"{self.barber.name} — {self.date} "
            f"({self.start_time.strftime('%H:%M')}–{self.end_time.strftime('%H:%M')})"
        )

    @property
    def is_closed(self):
        return self.start_time is None or self.end_time is None

    def clean(self):
        if (self.start_time is None) != (self.end_time is None):
            raise ValidationError('Provide both start and end time, or neither to close the day.')
        if not self.is_closed and self.start_time >= self.end_time:
            raise ValidationError('Start time must be before end time.')

    def to_dict(self):
        return {
            'id': str(self.id),
            'barberId': str(self.barber_id),
            'date': self.date.isoformat(),
            'start': self.start_time.strftime('%H:%M') if self.start_time else None,
            'end': self.end_time.strftime('%H:%M') if self.end_time else None,
        }
