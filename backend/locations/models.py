from django.db import models


class Store(models.Model):
    """Restaurant branch; also carries the BIR identity printed on receipts"""
    name = models.CharField(max_length=200)
    code = models.CharField(max_length=50, unique=True)
    address = models.TextField(blank=True)
    phone = models.CharField(max_length=20, blank=True)
    email = models.EmailField(blank=True)
    is_active = models.BooleanField(default=True)

    # BIR registration
    tin = models.CharField(max_length=30, blank=True)
    business_name = models.CharField(max_length=255, blank=True)
    machine_accreditation_number = models.CharField(max_length=100, blank=True)
    machine_serial_number = models.CharField(max_length=100, blank=True)
    permit_number = models.CharField(max_length=100, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'stores'
        ordering = ['name']
