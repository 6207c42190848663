import django.db.models.deletion
import uuid

from django.db import migrations, models


STATUS_CHOICES = [
    ('PENDING_PAYMENT', 'Pending Payment'),
    ('CONFIRMED', 'Confirmed'),
    ('BLOCKED', 'Blocked'),
    ('COMPLETED', 'Completed'),
    ('CANCELLED', 'Cancelled'),
    ('EXPIRED', 'Expired'),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('branches', '0001_initial'),
        ('barbers', '0001_initial'),
        ('services', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Appointment',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('group_id', models.UUIDField(db_index=True, default=uuid.uuid4)),
                ('session_index', models.PositiveSmallIntegerField(default=0)),
                ('date', models.DateField(db_index=True)),
                ('time', models.TimeField()),
                ('status', models.CharField(
                    choices=STATUS_CHOICES, db_index=True, default='PENDING_PAYMENT', max_length=20,
                )),
                ('hold_expires_at', models.DateTimeField(blank=True, db_index=True, null=True)),
                ('customer_name', models.CharField(max_length=120)),
                ('customer_phone', models.CharField(max_length=24)),
                ('customer_age', models.PositiveSmallIntegerField(blank=True, null=True)),
                ('deposit_only', models.BooleanField(default=False)),
                ('amount_paid', models.PositiveIntegerField(default=0)),
                ('cash_due', models.PositiveIntegerField(default=0)),
                ('add_ons', models.ManyToManyField(
                    blank=True, related_name='add_on_appointments', to='services.service',
                )),
                ('barber', models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT, related_name='appointments', to='barbers.barber',
                )),
                ('branch', models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT, related_name='appointments', to='branches.branch',
                )),
                ('service', models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT, related_name='appointments', to='services.service',
                )),
            ],
            options={
                'verbose_name': 'Appointment',
                'verbose_name_plural': 'Appointments',
                'ordering': ['-date', '-time'],
                'constraints': [
                    models.UniqueConstraint(
                        condition=models.Q(status__in=['CONFIRMED', 'BLOCKED']),
                        fields=('barber', 'date', 'time'),
                        name='uq_taken_appointment_slot',
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name='AppointmentStatusLog',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('from_status', models.CharField(blank=True, choices=STATUS_CHOICES, max_length=20)),
                ('to_status', models.CharField(choices=STATUS_CHOICES, max_length=20)),
                ('changed_by', models.CharField(help_text='system / admin / webhook', max_length=80)),
                ('reason', models.TextField(blank=True)),
                ('changed_at', models.DateTimeField(auto_now_add=True)),
                ('appointment', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='status_logs',
                    to='bookings.appointment',
                )),
            ],
            options={
                'verbose_name': 'Appointment Status Log',
                'verbose_name_plural': 'Appointment Status Logs',
                'ordering': ['changed_at'],
            },
        ),
    ]
