from django.urls import path
from .views import (
    stock_list_create, stock_detail, stock_adjust, stock_batch_adjust, stock_audit_trail, stock_integrity,
    movement_list, inventory_transaction_list,
    commissary_list_create, commissary_detail,
    conversion_list, conversion_direct, conversion_recipe_production, conversion_recipe_check,
    normalize_order_units, store_inventory_health, pre_validate_sale,
)

urlpatterns = [
    path('inventory/stock/', stock_list_create, name='inventory-stock-list-create'),
    path('inventory/stock/batch-adjust/', stock_batch_adjust, name='inventory-stock-batch-adjust'),
    path('inventory/stock/<int:pk>/', stock_detail, name='inventory-stock-detail'),
    path('inventory/stock/<int:pk>/adjust/', stock_adjust, name='inventory-stock-adjust'),
    path('inventory/stock/<int:pk>/audit-trail/', stock_audit_trail, name='inventory-stock-audit-trail'),
    path('inventory/stock/<int:pk>/integrity/', stock_integrity, name='inventory-stock-integrity'),
    path('inventory/movements/', movement_list, name='inventory-movement-list'),
    path('inventory/transactions/', inventory_transaction_list, name='inventory-transaction-list'),
    path('inventory/pre-validate/', pre_validate_sale, name='inventory-pre-validate'),
    path('inventory/normalize-order-units/', normalize_order_units, name='inventory-normalize-order-units'),

    path('commissary/items/', commissary_list_create, name='commissary-item-list-create'),
    path('commissary/items/<int:pk>/', commissary_detail, name='commissary-item-detail'),

    path('conversions/', conversion_list, name='conversion-list'),
    path('conversions/direct/', conversion_direct, name='conversion-direct'),
    path('conversions/recipe-production/', conversion_recipe_production, name='conversion-recipe-production'),
    path('conversions/recipe-check/<int:template_id>/', conversion_recipe_check, name='conversion-recipe-check'),

    path('stores/<int:store_id>/inventory-health/', store_inventory_health, name='store-inventory-health'),
]
