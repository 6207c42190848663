from django.contrib import admin
from .models import Payment


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = [
        'razorpay_link_id', 'group_id', 'total', 'amount', 'cash_due', 'currency',
        'deposit_only', 'status', 'paid_at', 'created_at',
    ]
    list_filter = ['status', 'currency', 'deposit_only']
    search_fields = ['razorpay_link_id', 'razorpay_payment_id', 'group_id']
    readonly_fields = [
        'id', 'group_id', 'razorpay_link_id', 'redirect_url', 'razorpay_payment_id',
        'webhook_event_id', 'webhook_payload', 'paid_at', 'created_at', 'updated_at',
    ]
    fieldsets = (
        ('Payment', {'fields': ('id', 'group_id', 'total', 'amount', 'cash_due', 'currency', 'deposit_only', 'status', 'paid_at')}),
        ('Razorpay', {'fields': ('razorpay_link_id', 'redirect_url', 'razorpay_payment_id')}),
        ('Webhook', {'fields': ('webhook_event_id', 'webhook_payload'), 'classes': ('collapse',)}),
        ('Audit', {'fields': ('created_at', 'updated_at'), 'classes': ('collapse',)}),
    )
