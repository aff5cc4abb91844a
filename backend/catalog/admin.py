from django.contrib import admin
from .models import Category, ProductCatalog


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'store', 'is_active', 'created_at']
    list_filter = ['is_active', 'store']
    search_fields = ['name']


@admin.register(ProductCatalog)
class ProductCatalogAdmin(admin.ModelAdmin):
    list_display = ['product_name', 'store', 'category', 'price', 'recipe', 'is_available', 'display_order']
    list_filter = ['is_available', 'store', 'category']
    search_fields = ['product_name', 'description']
    raw_id_fields = ['recipe']
    ordering = ['store', 'display_order', 'product_name']
