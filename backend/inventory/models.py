from django.db import models
from decimal import Decimal
from backend.locations.models import Store

QTY = dict(max_digits=12, decimal_places=3)


class InventoryStock(models.Model):
    """Store-level ingredient/finished-goods stock"""
    store = models.ForeignKey(Store, on_delete=models.CASCADE, related_name='inventory_stock')
    item = models.CharField(max_length=200)
    unit = models.CharField(max_length=50)
    item_category = models.CharField(max_length=100, blank=True)
    stock_quantity = models.DecimalField(default=Decimal('0.000'), **QTY)
    # Portioned stock; when set, sales deduct from here instead of stock_quantity
    serving_ready_quantity = models.DecimalField(null=True, blank=True, **QTY)
    minimum_threshold = models.DecimalField(default=Decimal('0.000'), **QTY)
    cost = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    order_unit = models.CharField(max_length=100, blank=True)
    order_quantity = models.DecimalField(default=Decimal('1.000'), **QTY)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.item} ({self.unit}) @ {self.store}"

    @property
    def current_quantity(self):
        """Quantity sales draw from"""
        if self.serving_ready_quantity is not None:
            return self.serving_ready_quantity
        return self.stock_quantity

    @property
    def stock_status(self):
        quantity = self.current_quantity
        if quantity <= 0:
            return 'out'
        if quantity <= self.minimum_threshold:
            return 'low'
        return 'good'

    class Meta:
        db_table = 'inventory_stock'
        ordering = ['item']
        constraints = [
            models.UniqueConstraint(fields=['store', 'item', 'unit'], name='unique_inventory_stock_item_unit'),
        ]
        indexes = [
            models.Index(fields=['store', 'is_active'], name='idx_inv_stock_store_active'),
        ]


class CommissaryItem(models.Model):
    """Central kitchen stock supplying the stores"""
    CATEGORY_CHOICES = [
        ('raw_materials', 'Raw Materials'),
        ('packaging_materials', 'Packaging Materials'),
        ('supplies', 'Supplies'),
        ('finished_goods', 'Finished Goods'),
    ]

    name = models.CharField(max_length=200, unique=True)
    category = models.CharField(max_length=30, choices=CATEGORY_CHOICES, default='raw_materials')
    unit = models.CharField(max_length=50)
    current_stock = models.DecimalField(default=Decimal('0.000'), **QTY)
    minimum_threshold = models.DecimalField(default=Decimal('0.000'), **QTY)
    unit_cost = models.DecimalField(max_digits=12, decimal_places=4, default=Decimal('0'))
    order_unit = models.CharField(max_length=100, blank=True)
    order_quantity = models.DecimalField(default=Decimal('1.000'), **QTY)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    @property
    def stock_status(self):
        if self.current_stock <= 0:
            return 'out'
        if self.current_stock <= self.minimum_threshold:
            return 'low'
        return 'good'

    class Meta:
        db_table = 'commissary_inventory'
        ordering = ['name']


class InventoryMovement(models.Model):
    """Primary inventory audit table: one row per stock change"""
    MOVEMENT_TYPE_CHOICES = [
        ('sale', 'Sale'),
        ('return', 'Return'),
        ('adjustment', 'Adjustment'),
        ('transfer_in', 'Transfer In'),
        ('transfer_out', 'Transfer Out'),
        ('restock', 'Restock'),
        ('damage', 'Damage'),
        ('expire', 'Expired'),
        ('recipe_usage', 'Recipe Usage'),
        ('conversion', 'Conversion'),
    ]
    REFERENCE_TYPE_CHOICES = [
        ('transaction', 'Transaction'),
        ('purchase_order', 'Purchase Order'),
        ('grn', 'Goods Received Note'),
        ('manual', 'Manual'),
        ('transfer', 'Transfer'),
        ('recipe', 'Recipe'),
        ('conversion', 'Conversion'),
    ]

    inventory_stock = models.ForeignKey(InventoryStock, on_delete=models.CASCADE, related_name='movements')
    movement_type = models.CharField(max_length=20, choices=MOVEMENT_TYPE_CHOICES)
    quantity_change = models.DecimalField(**QTY)
    previous_quantity = models.DecimalField(**QTY)
    new_quantity = models.DecimalField(**QTY)
    reference_type = models.CharField(max_length=20, choices=REFERENCE_TYPE_CHOICES, default='manual')
    reference_id = models.CharField(max_length=100, blank=True)
    notes = models.TextField(blank=True)
    created_by = models.CharField(max_length=150, default='system')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.movement_type} {self.quantity_change} {self.inventory_stock.item}"

    class Meta:
        db_table = 'inventory_movements'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['inventory_stock', 'created_at'], name='idx_inv_move_stock_created'),
            models.Index(fields=['reference_type', 'reference_id'], name='idx_inv_move_reference'),
            models.Index(fields=['movement_type'], name='idx_inv_move_type'),
        ]


class InventoryTransaction(models.Model):
    """Secondary, product-level audit table (sales and returns)"""
    TRANSACTION_TYPE_CHOICES = [
        ('sale', 'Sale'),
        ('return', 'Return'),
        ('adjustment', 'Adjustment'),
        ('transfer', 'Transfer'),
        ('recipe_usage', 'Recipe Usage'),
        ('conversion', 'Conversion'),
        ('restock', 'Restock'),
    ]

    store = models.ForeignKey(Store, on_delete=models.CASCADE, related_name='inventory_transactions')
    product = models.ForeignKey('catalog.ProductCatalog', on_delete=models.SET_NULL, null=True, blank=True, related_name='inventory_transactions')
    inventory_stock = models.ForeignKey(InventoryStock, on_delete=models.SET_NULL, null=True, blank=True, related_name='product_transactions')
    transaction_type = models.CharField(max_length=20, choices=TRANSACTION_TYPE_CHOICES)
    quantity = models.DecimalField(**QTY)
    previous_quantity = models.DecimalField(**QTY)
    new_quantity = models.DecimalField(**QTY)
    reference_id = models.CharField(max_length=100, blank=True)
    notes = models.TextField(blank=True)
    created_by = models.CharField(max_length=150, default='system')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.transaction_type} {self.quantity}"

    class Meta:
        db_table = 'inventory_transactions'
        ordering = ['-created_at', '-id']


class InventoryConversion(models.Model):
    """Commissary stock turned into store stock (direct or via a recipe)"""
    store = models.ForeignKey(Store, on_delete=models.CASCADE, related_name='inventory_conversions')
    commissary_item = models.ForeignKey(CommissaryItem, on_delete=models.SET_NULL, null=True, blank=True, related_name='conversions')
    inventory_stock = models.ForeignKey(InventoryStock, on_delete=models.CASCADE, related_name='conversions')
    recipe_template = models.ForeignKey('recipes.RecipeTemplate', on_delete=models.SET_NULL, null=True, blank=True, related_name='conversions')
    quantity_converted = models.DecimalField(**QTY)
    finished_goods_quantity = models.DecimalField(**QTY)
    converted_by = models.CharField(max_length=150, default='system')
    notes = models.TextField(blank=True)
    conversion_date = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"Conversion #{self.pk} -> {self.inventory_stock.item}"

    class Meta:
        db_table = 'inventory_conversions'
        ordering = ['-conversion_date', '-id']
