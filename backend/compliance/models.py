from django.db import models
from backend.locations.models import Store


class StoreComplianceSettings(models.Model):
    """Per-store BIR compliance toggles; keys missing from the JSON fall back to defaults"""
    store = models.OneToOneField(Store, on_delete=models.CASCADE, related_name='compliance_settings')
    bir_compliance_config = models.JSONField(default=dict, blank=True)
    updated_by = models.CharField(max_length=150, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Compliance settings for {self.store.name}"

    class Meta:
        db_table = 'store_compliance_settings'
        verbose_name_plural = 'store compliance settings'
