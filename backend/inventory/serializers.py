from decimal import Decimal
from rest_framework import serializers
from .models import InventoryStock, CommissaryItem, InventoryMovement, InventoryTransaction, InventoryConversion


class InventoryStockSerializer(serializers.ModelSerializer):
    store_name = serializers.CharField(source='store.name', read_only=True)
    current_quantity = serializers.DecimalField(max_digits=12, decimal_places=3, read_only=True)
    stock_status = serializers.CharField(read_only=True)

    class Meta:
        model = InventoryStock
        fields = ['id', 'store', 'store_name', 'item', 'unit', 'item_category', 'stock_quantity',
                  'serving_ready_quantity', 'current_quantity', 'minimum_threshold', 'cost',
                  'order_unit', 'order_quantity', 'stock_status', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def validate_item(self, value):
        return value.strip()

    def validate(self, attrs):
        # quantities change only through the adjust endpoint once the item exists
        if self.instance is not None:
            attrs.pop('stock_quantity', None)
            attrs.pop('serving_ready_quantity', None)
        return attrs


class StockAdjustmentSerializer(serializers.Serializer):
    ADJUSTMENT_TYPES = ['adjustment', 'restock', 'damage', 'expire', 'transfer_in', 'transfer_out']

    new_quantity = serializers.DecimalField(max_digits=12, decimal_places=3, required=False)
    quantity_change = serializers.DecimalField(max_digits=12, decimal_places=3, required=False)
    movement_type = serializers.ChoiceField(choices=ADJUSTMENT_TYPES, default='adjustment')
    use_serving_ready = serializers.BooleanField(required=False, allow_null=True, default=None)
    reference_id = serializers.CharField(required=False, allow_blank=True, default='')
    notes = serializers.CharField(required=False, allow_blank=True, default='')

    def validate(self, attrs):
        if attrs.get('new_quantity') is None and attrs.get('quantity_change') is None:
            raise serializers.ValidationError('Provide new_quantity or quantity_change')
        if attrs.get('new_quantity') is not None and attrs['new_quantity'] < 0:
            raise serializers.ValidationError({'new_quantity': 'Quantity cannot be negative'})
        return attrs


class BatchStockUpdateSerializer(serializers.Serializer):
    """One entry of a batch adjustment"""
    stock_id = serializers.IntegerField()
    new_quantity = serializers.DecimalField(max_digits=12, decimal_places=3, min_value=Decimal('0'))
    movement_type = serializers.ChoiceField(choices=StockAdjustmentSerializer.ADJUSTMENT_TYPES, default='adjustment')
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class CommissaryItemSerializer(serializers.ModelSerializer):
    stock_status = serializers.CharField(read_only=True)
    stock_value = serializers.SerializerMethodField()

    class Meta:
        model = CommissaryItem
        fields = ['id', 'name', 'category', 'unit', 'current_stock', 'minimum_threshold', 'unit_cost',
                  'order_unit', 'order_quantity', 'stock_status', 'stock_value', 'is_active',
                  'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def get_stock_value(self, obj):
        return str((obj.current_stock * obj.unit_cost).quantize(Decimal('0.01')))


class InventoryMovementSerializer(serializers.ModelSerializer):
    item = serializers.CharField(source='inventory_stock.item', read_only=True)
    unit = serializers.CharField(source='inventory_stock.unit', read_only=True)
    store = serializers.IntegerField(source='inventory_stock.store_id', read_only=True)

    class Meta:
        model = InventoryMovement
        fields = ['id', 'inventory_stock', 'item', 'unit', 'store', 'movement_type', 'quantity_change',
                  'previous_quantity', 'new_quantity', 'reference_type', 'reference_id', 'notes',
                  'created_by', 'created_at']


class InventoryTransactionSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.product_name', read_only=True, default=None)

    class Meta:
        model = InventoryTransaction
        fields = ['id', 'store', 'product', 'product_name', 'inventory_stock', 'transaction_type', 'quantity',
                  'previous_quantity', 'new_quantity', 'reference_id', 'notes', 'created_by', 'created_at']


class InventoryConversionSerializer(serializers.ModelSerializer):
    store_name = serializers.CharField(source='store.name', read_only=True)
    item = serializers.CharField(source='inventory_stock.item', read_only=True)
    unit = serializers.CharField(source='inventory_stock.unit', read_only=True)
    commissary_item_name = serializers.CharField(source='commissary_item.name', read_only=True, default=None)
    recipe_template_name = serializers.CharField(source='recipe_template.name', read_only=True, default=None)

    class Meta:
        model = InventoryConversion
        fields = ['id', 'store', 'store_name', 'commissary_item', 'commissary_item_name', 'inventory_stock',
                  'item', 'unit', 'recipe_template', 'recipe_template_name', 'quantity_converted',
                  'finished_goods_quantity', 'converted_by', 'notes', 'conversion_date']


class DirectConversionSerializer(serializers.Serializer):
    store = serializers.IntegerField()
    commissary_item = serializers.IntegerField()
    quantity = serializers.DecimalField(max_digits=12, decimal_places=3, min_value=Decimal('0.001'))
    store_item_name = serializers.CharField(max_length=200)
    store_item_unit = serializers.CharField(max_length=50)
    conversion_ratio = serializers.DecimalField(max_digits=12, decimal_places=6, min_value=Decimal('0.000001'),
                                                default=Decimal('1'))
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class RecipeProductionSerializer(serializers.Serializer):
    store = serializers.IntegerField()
    recipe_template = serializers.IntegerField()
    batches = serializers.DecimalField(max_digits=12, decimal_places=3, min_value=Decimal('0.001'))
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class SaleItemSerializer(serializers.Serializer):
    product_id = serializers.IntegerField(required=False, allow_null=True)
    product_name = serializers.CharField(required=False, allow_blank=True, default='')
    quantity = serializers.DecimalField(max_digits=12, decimal_places=3, min_value=Decimal('0.001'))
    add_ons = serializers.ListField(child=serializers.CharField(max_length=200), required=False, default=list)

    def validate(self, attrs):
        if not attrs.get('product_id') and not attrs.get('product_name'):
            raise serializers.ValidationError('Provide product_id or product_name')
        return attrs


class PreValidationSerializer(serializers.Serializer):
    store = serializers.IntegerField()
    items = SaleItemSerializer(many=True, allow_empty=False)
