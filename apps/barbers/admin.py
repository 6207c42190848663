from django.contrib import admin
from .models import Barber, WeeklySlot, ExceptionalDay


class WeeklySlotInline(admin.TabularInline):
    model = WeeklySlot
    extra = 1


class ExceptionalDayInline(admin.TabularInline):
    model = ExceptionalDay
    extra = 0


@admin.register(Barber)
class BarberAdmin(admin.ModelAdmin):
    list_display = ['name', 'branch', 'is_active']
    list_filter = ['branch', 'is_active']
    search_fields = ['name', 'branch__name']
    list_editable = ['is_active']
    readonly_fields = ['id', 'created_at', 'updated_at']
    inlines = [WeeklySlotInline, ExceptionalDayInline]
    fieldsets = (
        ('Barber Info', {'fields': ('id', 'branch', 'name', 'photo_url')}),
        ('Social', {'fields': ('instagram_url', 'facebook_url')}),
        ('Status', {'fields': ('is_active',)}),
        ('Audit', {'fields': ('created_at', 'updated_at'), 'classes': ('collapse',)}),
    )


@admin.register(ExceptionalDay)
class ExceptionalDayAdmin(admin.ModelAdmin):
    list_display = ['barber', 'date', 'start_time', 'end_time']
    list_filter = ['barber__branch', 'date']
    search_fields = ['barber__name']
    date_hierarchy = 'date'
