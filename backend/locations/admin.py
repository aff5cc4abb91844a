from django.contrib import admin
from .models import Store


@admin.register(Store)
class StoreAdmin(admin.ModelAdmin):
    list_display = ['name', 'code', 'tin', 'phone', 'is_active', 'created_at']
    list_filter = ['is_active']
    search_fields = ['name', 'code', 'email', 'tin', 'business_name']
    fieldsets = (
        (None, {'fields': ('name', 'code', 'address', 'phone', 'email', 'is_active')}),
        ('BIR registration', {'fields': ('tin', 'business_name', 'machine_accreditation_number',
                                         'machine_serial_number', 'permit_number')}),
    )
