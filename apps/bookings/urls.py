"""
Booking URLs.

  /bookings/wizard/                         Wizard state (GET)
  /bookings/wizard/action/                  Apply one wizard action (POST)
  /bookings/wizard/confirm/                 Customer details → payment redirect (POST)
  /bookings/wizard/reset/                   Discard the draft (POST)
  /bookings/api/csrf/                       CSRF token + cookie
  /bookings/api/branches/                   Active branches
  /bookings/api/barbers/?branch=<uuid>      Barbers of a branch
  /bookings/api/services/?barber=<uuid>     Services (barber-scoped or all)
  /bookings/api/barbers/<uuid>/schedule/    Weekly hours
  /bookings/api/barbers/<uuid>/slots/       Free slots for ?date=
  /bookings/api/barbers/<uuid>/month/       Days with openings for ?offset=
"""
from django.urls import path
from . import api, views

app_name = 'bookings'

urlpatterns = [
    # ── Wizard ────────────────────────────────────────────────────────────────
    path('wizard/',                 views.wizard_state,       name='wizard'),
    path('wizard/action/',          views.wizard_action,      name='wizard_action'),
    path('wizard/confirm/',         views.wizard_confirm,     name='wizard_confirm'),
    path('wizard/reset/',           views.wizard_reset,       name='wizard_reset'),

    # ── Public API ────────────────────────────────────────────────────────────
    path('api/csrf/',               api.api_csrf,             name='api_csrf'),
    path('api/branches/',           api.api_branches,         name='api_branches'),
    path('api/barbers/',            api.api_barbers,          name='api_barbers'),
    path('api/services/',           api.api_services,         name='api_services'),
    path('api/barbers/<uuid:barber_id>/schedule/', api.api_weekly_schedule, name='api_schedule'),
    path('api/barbers/<uuid:barber_id>/slots/',    api.api_slots,           name='api_slots'),
    path('api/barbers/<uuid:barber_id>/month/',    api.api_month,           name='api_month'),
]
