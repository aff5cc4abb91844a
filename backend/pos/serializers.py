from decimal import Decimal
from rest_framework import serializers
from .models import Transaction, TransactionItem


class TransactionItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = TransactionItem
        fields = ['id', 'product', 'product_name', 'quantity', 'unit_price', 'total_price', 'add_ons']


class TransactionSerializer(serializers.ModelSerializer):
    items = TransactionItemSerializer(many=True, read_only=True)
    store_name = serializers.CharField(source='store.name', read_only=True)
    created_by_name = serializers.CharField(source='created_by.username', read_only=True, default=None)
    voided_by_name = serializers.CharField(source='voided_by.username', read_only=True, default=None)

    class Meta:
        model = Transaction
        fields = ['id', 'reference', 'store', 'store_name', 'receipt_number', 'sequence_number', 'status',
                  'subtotal', 'discount_type', 'discount_id_number', 'discount_amount', 'vatable_sales',
                  'vat_amount', 'vat_exempt_sales', 'total', 'payment_method', 'amount_tendered',
                  'change_amount', 'notes', 'items', 'created_by', 'created_by_name', 'created_at',
                  'completed_at', 'voided_at', 'voided_by', 'voided_by_name', 'void_reason']
        read_only_fields = fields


class TransactionItemInputSerializer(serializers.Serializer):
    product_id = serializers.IntegerField(required=False)
    product_name = serializers.CharField(required=False, allow_blank=True)
    quantity = serializers.DecimalField(max_digits=12, decimal_places=3, min_value=Decimal('0.001'))
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'), required=False)
    add_ons = serializers.ListField(child=serializers.CharField(max_length=200), required=False, default=list)

    def validate(self, attrs):
        if not attrs.get('product_id') and not attrs.get('product_name'):
            raise serializers.ValidationError('Provide product_id or product_name')
        return attrs


class TransactionCreateSerializer(serializers.Serializer):
    store = serializers.IntegerField()
    items = TransactionItemInputSerializer(many=True, allow_empty=False)
    discount_type = serializers.ChoiceField(choices=[c[0] for c in Transaction.DISCOUNT_TYPE_CHOICES], default='none')
    discount_amount = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)
    discount_id_number = serializers.CharField(required=False, allow_blank=True, default='')
    payment_method = serializers.ChoiceField(choices=[c[0] for c in Transaction.PAYMENT_METHOD_CHOICES], default='cash')
    amount_tendered = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    complete = serializers.BooleanField(default=False)

    def validate(self, attrs):
        if attrs['discount_type'] in ('senior', 'pwd') and not attrs.get('discount_id_number'):
            raise serializers.ValidationError({'discount_id_number': 'ID number is required for senior/PWD discounts'})
        return attrs
