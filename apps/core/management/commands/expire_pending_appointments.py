"""
management command: expire_pending_appointments

Moves PENDING_PAYMENT appointments whose hold has elapsed to EXPIRED so
their slots show up as free again.

Run via OS cron every 5 minutes:
  */5 * * * *  /path/to/venv/bin/python manage.py expire_pending_appointments
"""
from django.core.management.base import BaseCommand
from django.utils import timezone

from apps.bookings.engine import expire_stale_holds


class Command(BaseCommand):
    help = 'Expire PENDING_PAYMENT appointments whose payment hold has elapsed'

    def handle(self, *args, **options):
        count = expire_stale_holds(now=timezone.now())
        self.stdout.write(
            self.style.SUCCESS(f'expire_pending_appointments: expired {count} appointments')
        )
