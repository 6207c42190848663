import django.core.validators
import uuid

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('barbers', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Service',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('is_active', models.BooleanField(db_index=True, default=True)),
                ('name', models.CharField(max_length=150)),
                ('description', models.TextField(blank=True)),
                ('price', models.PositiveIntegerField()),
                ('duration_minutes', models.PositiveIntegerField(default=30)),
                ('session_count', models.PositiveSmallIntegerField(
                    default=1,
                    help_text='Number of separate visits this service requires.',
                    validators=[django.core.validators.MinValueValidator(1)],
                )),
                ('is_add_on', models.BooleanField(db_index=True, default=False)),
                ('barbers', models.ManyToManyField(
                    blank=True,
                    help_text='Leave empty to offer the service with every barber.',
                    related_name='services',
                    to='barbers.barber',
                )),
            ],
            options={
                'verbose_name': 'Service',
                'verbose_name_plural': 'Services',
                'ordering': ['is_add_on', 'name'],
                'constraints': [
                    models.CheckConstraint(
                        condition=models.Q(session_count__gte=1),
                        name='ck_service_session_count_positive',
                    ),
                ],
            },
        ),
    ]
