from decimal import Decimal
from django.db import models
from backend.locations.models import Store


class Category(models.Model):
    """Per-store menu category"""
    store = models.ForeignKey(Store, on_delete=models.CASCADE, related_name='categories')
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'categories'
        verbose_name_plural = 'categories'
        ordering = ['name']
        constraints = [
            models.UniqueConstraint(fields=['store', 'name'], name='unique_category_store_name'),
        ]


class ProductCatalog(models.Model):
    """What a store sells at the counter; recipe products draw ingredients from inventory"""
    store = models.ForeignKey(Store, on_delete=models.CASCADE, related_name='products')
    recipe = models.ForeignKey('recipes.Recipe', on_delete=models.SET_NULL, null=True, blank=True, related_name='products')
    product_name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    category = models.ForeignKey(Category, on_delete=models.SET_NULL, null=True, blank=True, related_name='products')
    is_available = models.BooleanField(default=True)
    display_order = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.product_name

    class Meta:
        db_table = 'product_catalog'
        ordering = ['display_order', 'product_name']
        indexes = [
            models.Index(fields=['store', 'is_available'], name='idx_catalog_store_available'),
        ]
