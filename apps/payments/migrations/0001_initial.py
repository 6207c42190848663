import uuid

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Payment',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('group_id', models.UUIDField(db_index=True, unique=True)),
                ('razorpay_link_id', models.CharField(blank=True, max_length=100, null=True)),
                ('redirect_url', models.URLField(blank=True, max_length=500)),
                ('total', models.PositiveIntegerField()),
                ('amount', models.PositiveIntegerField(help_text='Charged online (deposit or full total).')),
                ('cash_due', models.PositiveIntegerField(default=0)),
                ('currency', models.CharField(default='ARS', max_length=3)),
                ('deposit_only', models.BooleanField(default=False)),
                ('status', models.CharField(
                    choices=[('CREATED', 'Created'), ('PAID', 'Paid'), ('EXPIRED', 'Expired'), ('FAILED', 'Failed')],
                    default='CREATED',
                    max_length=10,
                )),
                ('razorpay_payment_id', models.CharField(blank=True, max_length=100, null=True)),
                ('webhook_event_id', models.CharField(blank=True, max_length=100, null=True)),
                ('webhook_payload', models.JSONField(blank=True, null=True)),
                ('paid_at', models.DateTimeField(blank=True, null=True)),
            ],
            options={
                'verbose_name': 'Payment',
                'verbose_name_plural': 'Payments',
                'ordering': ['-created_at'],
                'constraints': [
                    models.UniqueConstraint(
                        condition=models.Q(razorpay_link_id__isnull=False),
                        fields=('razorpay_link_id',),
                        name='uq_payment_razorpay_link_id',
                    ),
                    models.UniqueConstraint(
                        condition=models.Q(razorpay_payment_id__isnull=False),
                        fields=('razorpay_payment_id',),
                        name='uq_payment_razorpay_payment_id',
                    ),
                    models.UniqueConstraint(
                        condition=models.Q(webhook_event_id__isnull=False),
                        fields=('webhook_event_id',),
                        name='uq_payment_webhook_event_id',
                    ),
                ],
            },
        ),
    ]
