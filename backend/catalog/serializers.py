from rest_framework import serializers
from .models import Category, ProductCatalog


class CategorySerializer(serializers.ModelSerializer):
    product_count = serializers.SerializerMethodField()

    class Meta:
        model = Category
        fields = ['id', 'store', 'name', 'description', 'is_active', 'product_count', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def get_product_count(self, obj):
        return obj.products.count()

    def validate_name(self, value):
        return value.strip()

    def validate(self, attrs):
        store = attrs.get('store', getattr(self.instance, 'store', None))
        name = attrs.get('name', getattr(self.instance, 'name', None))
        duplicates = Category.objects.filter(store=store, name__iexact=name)
        if self.instance is not None:
            duplicates = duplicates.exclude(pk=self.instance.pk)
        if duplicates.exists():
            raise serializers.ValidationError({'name': 'This store already has a category with this name'})
        return attrs


class ProductCatalogSerializer(serializers.ModelSerializer):
    store_name = serializers.CharField(source='store.name', read_only=True)
    category_name = serializers.CharField(source='category.name', read_only=True, default=None)
    recipe_name = serializers.CharField(source='recipe.name', read_only=True, default=None)

    class Meta:
        model = ProductCatalog
        fields = ['id', 'store', 'store_name', 'recipe', 'recipe_name', 'product_name', 'description', 'price',
                  'category', 'category_name', 'is_available', 'display_order', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def validate_product_name(self, value):
        return value.strip()

    def validate_price(self, value):
        if value < 0:
            raise serializers.ValidationError('Price cannot be negative')
        return value

    def validate(self, attrs):
        store = attrs.get('store', getattr(self.instance, 'store', None))
        category = attrs.get('category')
        recipe = attrs.get('recipe')
        if category is not None and category.store_id != store.id:
            raise serializers.ValidationError({'category': 'Category belongs to another store'})
        if recipe is not None and recipe.store_id != store.id:
            raise serializers.ValidationError({'recipe': 'Recipe belongs to another store'})
        return attrs
