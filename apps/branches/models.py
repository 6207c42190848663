"""
Branch model — a physical Cromados barbershop.
"""
from django.db import models
from apps.core.models import CatalogModel


class Branch(CatalogModel):
    name = models.CharField(max_length=120)
    address = models.CharField(max_length=255)
    photo_url = models.URLField(blank=True)

    class Meta:
        verbose_name = 'Branch'
        verbose_name_plural = 'Branches'
        ordering = ['name']

    def __str__(self):
        return self.name

    def to_dict(self):
        return {
            'id': str(self.id),
            'name': self.name,
            'address': self.address,
            'photoUrl': self.photo_url or None,
        }
