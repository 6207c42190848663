"""
Service model — one row per service on the menu.

Two kinds share the table:
  - primary services ("Corte", "Tratamiento capilar") decide how many
    sessions a booking needs via session_count;
  - add-ons (is_add_on=True, e.g. "Barba", "Lavado") are optional extras
    attached to an individual session, each priced on its own.

Prices are whole currency units; no cents are ever charged.
A service with no barbers assigned is offered by every barber.
"""
from django.core.validators import MinValueValidator
from django.db import models
from apps.core.models import ActiveQuerySet, CatalogModel
from apps.barbers.models import Barber


class ServiceQuerySet(ActiveQuerySet):
    def primary(self):
        return self.filter(is_add_on=False)

    def add_ons(self):
        return self.filter(is_add_on=True)

    def for_barber(self, barber):
        """Services the barber offers: explicitly assigned or open to everyone."""
        return self.filter(
            models.Q(barbers=barber) | models.Q(barbers__isnull=True)
        ).distinct()


class Service(CatalogModel):
    barbers = models.ManyToManyField(
        Barber,
        related_name='services',
        blank=True,
        help_text='Leave empty to offer the service with every barber.',
    )
    name = models.CharField(max_length=150)
    description = models.TextField(blank=True)
    price = models.PositiveIntegerField()
    duration_minutes = models.PositiveIntegerField(default=30)
    session_count = models.PositiveSmallIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
        help_text='Number of separate visits this service requires.',
    )
    is_add_on = models.BooleanField(default=False, db_index=True)

    objects = ServiceQuerySet.as_manager()

    class Meta:
        verbose_name = 'Service'
        verbose_name_plural = 'Services'
        ordering = ['is_add_on', 'name']
        constraints = [
            models.CheckConstraint(
                condition=models.Q(session_count__gte=1),
                name='ck_service_session_count_positive',
            )
        ]

    def __str__(self):
        kind = 'add-on' if self.is_add_on else f'{self.session_count} session(s)'
        return f"{self.name} ({kind})"

    def to_dict(self):
        return {
            'id': str(self.id),
            'name': self.name,
            'price': self.price,
            'durationMinutes': self.duration_minutes,
            'sessionCount': self.session_count,
            'isAddOn': self.is_add_on,
            'description': self.description or None,
        }
