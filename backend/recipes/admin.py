from django.contrib import admin
from .models import RecipeTemplate, RecipeTemplateIngredient, Recipe, RecipeIngredient


class RecipeTemplateIngredientInline(admin.TabularInline):
    model = RecipeTemplateIngredient
    extra = 0


class RecipeIngredientInline(admin.TabularInline):
    model = RecipeIngredient
    extra = 0
    raw_id_fields = ['inventory_stock']


@admin.register(RecipeTemplate)
class RecipeTemplateAdmin(admin.ModelAdmin):
    list_display = ['name', 'category_name', 'suggested_price', 'total_cost', 'version', 'is_active']
    list_filter = ['is_active', 'category_name']
    search_fields = ['name', 'description']
    inlines = [RecipeTemplateIngredientInline]


@admin.register(Recipe)
class RecipeAdmin(admin.ModelAdmin):
    list_display = ['name', 'store', 'template', 'suggested_price', 'approval_status', 'is_active']
    list_filter = ['is_active', 'approval_status', 'store']
    search_fields = ['name', 'store__name']
    inlines = [RecipeIngredientInline]
