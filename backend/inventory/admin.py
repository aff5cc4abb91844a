from django.contrib import admin
from .models import InventoryStock, CommissaryItem, InventoryMovement, InventoryTransaction, InventoryConversion


@admin.register(InventoryStock)
class InventoryStockAdmin(admin.ModelAdmin):
    list_display = ['item', 'unit', 'store', 'stock_quantity', 'serving_ready_quantity', 'minimum_threshold', 'is_active']
    list_filter = ['store', 'is_active', 'item_category']
    search_fields = ['item', 'store__name']
    ordering = ['store', 'item']


@admin.register(CommissaryItem)
class CommissaryItemAdmin(admin.ModelAdmin):
    list_display = ['name', 'category', 'unit', 'current_stock', 'minimum_threshold', 'unit_cost', 'is_active']
    list_filter = ['category', 'is_active']
    search_fields = ['name']


@admin.register(InventoryMovement)
class InventoryMovementAdmin(admin.ModelAdmin):
    list_display = ['inventory_stock', 'movement_type', 'quantity_change', 'previous_quantity', 'new_quantity',
                    'reference_type', 'reference_id', 'created_by', 'created_at']
    list_filter = ['movement_type', 'reference_type', 'created_at']
    search_fields = ['inventory_stock__item', 'reference_id', 'notes']
    ordering = ['-created_at']
    readonly_fields = ['created_at']


@admin.register(InventoryTransaction)
class InventoryTransactionAdmin(admin.ModelAdmin):
    list_display = ['store', 'product', 'transaction_type', 'quantity', 'reference_id', 'created_by', 'created_at']
    list_filter = ['transaction_type', 'store', 'created_at']
    search_fields = ['reference_id', 'product__product_name']
    readonly_fields = ['created_at']


@admin.register(InventoryConversion)
class InventoryConversionAdmin(admin.ModelAdmin):
    list_display = ['inventory_stock', 'store', 'commissary_item', 'recipe_template', 'quantity_converted',
                    'finished_goods_quantity', 'converted_by', 'conversion_date']
    list_filter = ['store', 'conversion_date']
    readonly_fields = ['conversion_date']
