import django.core.validators
import django.db.models.deletion
import uuid

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('branches', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Barber',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('is_active', models.BooleanField(db_index=True, default=True)),
                ('name', models.CharField(max_length=120)),
                ('photo_url', models.URLField(blank=True)),
                ('instagram_url', models.URLField(blank=True)),
                ('facebook_url', models.URLField(blank=True)),
                ('branch', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='barbers',
                    to='branches.branch',
                )),
            ],
            options={
                'verbose_name': 'Barber',
                'verbose_name_plural': 'Barbers',
                'ordering': ['branch', 'name'],
            },
        ),
        migrations.CreateModel(
            name='ExceptionalDay',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('date', models.DateField(db_index=True)),
                ('start_time', models.TimeField(blank=True, null=True)),
                ('end_time', models.TimeField(blank=True, null=True)),
                ('barber', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='exceptional_days',
                    to='barbers.barber',
                )),
            ],
            options={
                'verbose_name': 'Exceptional Day',
                'verbose_name_plural': 'Exceptional Days',
                'ordering': ['date', 'start_time'],
            },
        ),
        migrations.CreateModel(
            name='WeeklySlot',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('weekday', models.PositiveSmallIntegerField(
                    choices=[
                        (1, 'Monday'), (2, 'Tuesday'), (3, 'Wednesday'), (4, 'Thursday'),
                        (5, 'Friday'), (6, 'Saturday'), (7, 'Sunday'),
                    ],
                    validators=[
                        django.core.validators.MinValueValidator(1),
                        django.core.validators.MaxValueValidator(7),
                    ],
                )),
                ('start_time', models.TimeField()),
                ('end_time', models.TimeField()),
                ('barber', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='weekly_slots',
                    to='barbers.barber',
                )),
            ],
            options={
                'verbose_name': 'Weekly Slot',
                'verbose_name_plural': 'Weekly Slots',
                'ordering': ['barber', 'weekday', 'start_time'],
                'constraints': [
                    models.UniqueConstraint(fields=('barber', 'weekday', 'start_time'), name='uq_weekly_slot_start'),
                ],
            },
        ),
    ]
