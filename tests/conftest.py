from datetime import time

import pytest
from django.test import Client

from apps.barbers.models import Barber, WeeklySlot
from apps.branches.models import Branch
from apps.services.models import Service

from .helpers import next_weekday


@pytest.fixture
def next_monday():
    return next_weekday(1)


@pytest.fixture
def branch(db):
    return Branch.objects.create(name='Cromados Centro', address='Av. Corrientes 1234')


@pytest.fixture
def barber(branch):
    """Works Mondays 09:00-12:00."""
    barber = Barber.objects.create(branch=branch, name='Nico')
    WeeklySlot.objects.create(barber=barber, weekday=1, start_time=time(9, 0), end_time=time(12, 0))
    return barber


@pytest.fixture
def corte(db):
    return Service.objects.create(name='Corte', price=10000, duration_minutes=30, session_count=1)


@pytest.fixture
def plan(db):
    return Service.objects.create(name='Plan Platinado', price=45000, duration_minutes=90, session_count=3)


@pytest.fixture
def lavado(db):
    return Service.objects.create(name='Lavado', price=2000, duration_minutes=10, is_add_on=True)


@pytest.fixture
def staff_client(django_user_model):
    user = django_user_model.objects.create_user(username='admin', password='pw', is_staff=True)
    client = Client()
    client.force_login(user, backend='django.contrib.auth.backends.ModelBackend')
    return client
