from rest_framework import serializers
from .models import Store


class StoreSerializer(serializers.ModelSerializer):
    class Meta:
        model = Store
        fields = ['id', 'name', 'code', 'address', 'phone', 'email', 'is_active',
                  'tin', 'business_name', 'machine_accreditation_number',
                  'machine_serial_number', 'permit_number', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def validate_code(self, value):
        return value.strip().upper()
