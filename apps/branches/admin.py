from django.contrib import admin
from .models import Branch


@admin.register(Branch)
class BranchAdmin(admin.ModelAdmin):
    list_display = ['name', 'address', 'is_active']
    list_filter = ['is_active']
    search_fields = ['name', 'address']
    list_editable = ['is_active']
    readonly_fields = ['id', 'created_at', 'updated_at']
    fieldsets = (
        ('Branch Info', {'fields': ('id', 'name', 'address', 'photo_url')}),
        ('Status', {'fields': ('is_active',)}),
        ('Audit', {'fields': ('created_at', 'updated_at'), 'classes': ('collapse',)}),
    )
