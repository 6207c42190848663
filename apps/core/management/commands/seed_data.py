"""
Seed management command.

Populates the database with demo data:
  - 2 branches
  - 3 barbers with weekly hours (one works a split shift)
  - 4 services (one of them a 3-session package) and 2 add-ons

Usage:
    python manage.py seed_data
    python manage.py seed_data --flush   # wipe and re-seed
"""
from datetime import time

from django.core.management.base import BaseCommand
from django.db import transaction

from apps.barbers.models import Barber, ExceptionalDay, WeeklySlot
from apps.bookings.models import Appointment
from apps.branches.models import Branch
from apps.payments.models import Payment
from apps.services.models import Service


class Command(BaseCommand):
    help = 'Seed demo branches, barbers, weekly hours, services and add-ons'

    def add_arguments(self, parser):
        parser.add_argument(
            '--flush', action='store_true',
            help='Delete all existing data (appointments included) before seeding',
        )

    @transaction.atomic
    def handle(self, *args, **options):
        if options['flush']:
            self.stdout.write('Flushing existing data...')
            Payment.objects.all().delete()
            Appointment.objects.all().delete()
            WeeklySlot.objects.all().delete()
            ExceptionalDay.objects.all().delete()
            Service.objects.all().delete()
            Barber.objects.all().delete()
            Branch.objects.all().delete()

        self.stdout.write('Seeding branches...')
        centro, _ = Branch.objects.get_or_create(
            name='Cromados Centro',
            defaults={'address': 'Av. Corrientes 1234, CABA'},
        )
        palermo, _ = Branch.objects.get_or_create(
            name='Cromados Palermo',
            defaults={'address': 'Gurruchaga 1650, CABA'},
        )
        self.stdout.write(self.style.SUCCESS('  ✔ 2 branches'))

        # ── Barbers + weekly hours ───────────────────────────────────────────
        self.stdout.write('Seeding barbers...')
        morning = [(time(9, 0), time(13, 0))]
        split = [(time(9, 0), time(12, 0)), (time(15, 0), time(19, 0))]
        afternoon = [(time(13, 0), time(20, 0))]
        barbers_data = [
            {'branch': centro, 'name': 'Nico', 'days': [1, 2, 3, 4, 5], 'ranges': split},
            {'branch': centro, 'name': 'Fede', 'days': [2, 3, 4, 5, 6], 'ranges': morning},
            {'branch': palermo, 'name': 'Lucho', 'days': [1, 3, 5, 6], 'ranges': afternoon},
        ]
        barbers = []
        for data in barbers_data:
            barber, _ = Barber.objects.get_or_create(name=data['name'], branch=data['branch'])
            for weekday in data['days']:
                for start, end in data['ranges']:
                    WeeklySlot.objects.get_or_create(
                        barber=barber, weekday=weekday, start_time=start,
                        defaults={'end_time': end},
                    )
            barbers.append(barber)
        self.stdout.write(self.style.SUCCESS(f'  ✔ {len(barbers)} barbers with weekly hours'))

        # ── Services ──────────────────────────────────────────────────────────
        self.stdout.write('Seeding services...')
        services_data = [
            {'name': 'Corte', 'price': 10000, 'duration_minutes': 30, 'session_count': 1,
             'description': 'Corte clásico con máquina y tijera.'},
            {'name': 'Corte y barba', 'price': 14000, 'duration_minutes': 60, 'session_count': 1,
             'description': 'Corte completo más perfilado de barba con toalla caliente.'},
            {'name': 'Color', 'price': 18000, 'duration_minutes': 90, 'session_count': 1,
             'description': 'Coloración completa.'},
            {'name': 'Plan Platinado', 'price': 45000, 'duration_minutes': 90, 'session_count': 3,
             'description': 'Decoloración progresiva en tres sesiones.'},
            {'name': 'Lavado', 'price': 2000, 'duration_minutes': 10, 'session_count': 1,
             'is_add_on': True, 'description': 'Lavado con masaje capilar.'},
            {'name': 'Cejas', 'price': 1500, 'duration_minutes': 10, 'session_count': 1,
             'is_add_on': True, 'description': 'Perfilado de cejas.'},
        ]
        for data in services_data:
            name = data.pop('name')
            service, _ = Service.objects.get_or_create(name=name, defaults=data)
            if name == 'Plan Platinado':
                # Only the Centro barbers offer the package; everything else is global
                service.barbers.set(barbers[:2])
        self.stdout.write(self.style.SUCCESS(f'  ✔ {len(services_data)} services and add-ons'))

        self.stdout.write(self.style.SUCCESS('\n✅ Seed complete!'))
