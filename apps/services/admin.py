from django.contrib import admin
from .models import Service


def get_barbers(obj):
    return ', '.join(b.name for b in obj.barbers.all()) or 'All barbers'
get_barbers.short_description = 'Barbers'


@admin.register(Service)
class ServiceAdmin(admin.ModelAdmin):
    list_display = ['name', get_barbers, 'price', 'session_count', 'is_add_on', 'is_active']
    list_filter = ['is_add_on', 'is_active', 'barbers__branch']
    search_fields = ['name', 'barbers__name']
    list_editable = ['is_active', 'price']
    filter_horizontal = ['barbers']
    readonly_fields = ['id', 'created_at', 'updated_at']
    fieldsets = (
        ('Service Info', {'fields': ('id', 'name', 'description', 'is_add_on', 'barbers')}),
        ('Timing & Pricing', {'fields': ('duration_minutes', 'session_count', 'price')}),
        ('Status', {'fields': ('is_active',)}),
        ('Audit', {'fields': ('created_at', 'updated_at'), 'classes': ('collapse',)}),
    )
