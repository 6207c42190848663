from django.contrib import admin
from .models import Appointment, AppointmentStatusLog


class AppointmentStatusLogInline(admin.TabularInline):
    model = AppointmentStatusLog
    extra = 0
    readonly_fields = ['from_status', 'to_status', 'changed_by', 'reason', 'changed_at']
    can_delete = False


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = [
        'short_id', 'customer_name', 'branch', 'barber', 'service',
        'date', 'time', 'session_index', 'status', 'amount_paid', 'cash_due',
    ]
    list_filter = ['status', 'branch', 'deposit_only', 'date']
    search_fields = ['customer_name', 'customer_phone', 'barber__name', 'service__name']
    readonly_fields = ['id', 'group_id', 'created_at', 'updated_at']
    date_hierarchy = 'date'
    filter_horizontal = ['add_ons']
    inlines = [AppointmentStatusLogInline]
    fieldsets = (
        ('Appointment', {'fields': ('id', 'group_id', 'session_index', 'branch', 'barber', 'service', 'add_ons')}),
        ('Schedule', {'fields': ('date', 'time', 'hold_expires_at')}),
        ('Customer', {'fields': ('customer_name', 'customer_phone', 'customer_age')}),
        ('Status', {'fields': ('status', 'deposit_only', 'amount_paid', 'cash_due')}),
        ('Audit', {'fields': ('created_at', 'updated_at'), 'classes': ('collapse',)}),
    )

    def short_id(self, obj):
        return str(obj.id)[:8]
    short_id.short_description = 'ID'
