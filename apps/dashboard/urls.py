from django.urls import path
from . import views_appointments, views_schedules

app_name = 'dashboard'

urlpatterns = [
    # ── Weekly hours ──────────────────────────────────────────────────────
    path('api/barbers/<uuid:barber_id>/weekly/',
         views_schedules.weekly_hours, name='weekly_hours'),
    path('api/barbers/<uuid:barber_id>/weekly/<int:weekday>/',
         views_schedules.weekly_day, name='weekly_day'),

    # ── Exceptional days ──────────────────────────────────────────────────
    path('api/barbers/<uuid:barber_id>/exceptional/',
         views_schedules.exceptional_days, name='exceptional_days'),
    path('api/barbers/<uuid:barber_id>/exceptional/<uuid:pk>/',
         views_schedules.exceptional_day_delete, name='exceptional_day_delete'),

    # ── Appointments ──────────────────────────────────────────────────────
    path('api/appointments/',          views_appointments.appointment_list,      name='appointment_list'),
    path('api/appointments/upcoming/', views_appointments.upcoming_appointments, name='upcoming_appointments'),
    path('api/appointments/latest/',   views_appointments.latest_appointments,   name='latest_appointments'),
    path('api/appointments/count/',    views_appointments.current_count,         name='current_count'),

    # ── Payouts ───────────────────────────────────────────────────────────
    path('api/payouts/', views_appointments.payouts, name='payouts'),
]
