from django.contrib import admin
from .models import StoreComplianceSettings


@admin.register(StoreComplianceSettings)
class StoreComplianceSettingsAdmin(admin.ModelAdmin):
    list_display = ['store', 'updated_by', 'updated_at']
    search_fields = ['store__name', 'store__code']
    readonly_fields = ['created_at', 'updated_at']
