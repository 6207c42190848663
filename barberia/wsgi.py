"""
WSGI config for the Cromados booking system.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'barberia.settings.production')

application = get_wsgi_application()
