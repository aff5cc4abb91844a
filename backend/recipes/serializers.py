from decimal import Decimal
from django.db import transaction
from rest_framework import serializers
from .models import RecipeTemplate, RecipeTemplateIngredient, Recipe, RecipeIngredient


class RecipeTemplateIngredientSerializer(serializers.ModelSerializer):
    line_cost = serializers.SerializerMethodField()
    commissary_item_name = serializers.CharField(source='commissary_item.name', read_only=True, default=None)

    class Meta:
        model = RecipeTemplateIngredient
        fields = ['id', 'ingredient_name', 'quantity', 'unit', 'cost_per_unit', 'ingredient_category',
                  'combo_main', 'combo_add_on', 'commissary_item', 'commissary_item_name', 'line_cost']

    def get_line_cost(self, obj):
        return str(obj.line_cost.quantize(Decimal('0.01')))

    def validate_quantity(self, value):
        if value <= 0:
            raise serializers.ValidationError('Quantity must be greater than zero')
        return value


class RecipeTemplateSerializer(serializers.ModelSerializer):
    ingredients = RecipeTemplateIngredientSerializer(many=True, required=False)
    ingredient_count = serializers.SerializerMethodField()
    created_by_name = serializers.CharField(source='created_by.username', read_only=True, default=None)

    class Meta:
        model = RecipeTemplate
        fields = ['id', 'name', 'description', 'category_name', 'instructions', 'yield_quantity',
                  'serving_size', 'suggested_price', 'total_cost', 'version', 'is_active',
                  'ingredients', 'ingredient_count', 'created_by', 'created_by_name',
                  'created_at', 'updated_at']
        read_only_fields = ['total_cost', 'version', 'created_by', 'created_at', 'updated_at']

    def get_ingredient_count(self, obj):
        return len(obj.ingredients.all())

    def validate_name(self, value):
        value = value.strip()
        duplicates = RecipeTemplate.objects.filter(name=value, is_active=True)
        if self.instance is not None:
            duplicates = duplicates.exclude(pk=self.instance.pk)
        if duplicates.exists():
            raise serializers.ValidationError('An active template with this name already exists')
        return value

    def _write_ingredients(self, template, ingredients):
        RecipeTemplateIngredient.objects.bulk_create([
            RecipeTemplateIngredient(template=template, **ingredient) for ingredient in ingredients
        ])
        template.recalculate_cost()

    @transaction.atomic
    def create(self, validated_data):
        ingredients = validated_data.pop('ingredients', [])
        template = RecipeTemplate.objects.create(**validated_data)
        self._write_ingredients(template, ingredients)
        return template

    @transaction.atomic
    def update(self, instance, validated_data):
        ingredients = validated_data.pop('ingredients', None)
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        if ingredients is not None:
            instance.ingredients.all().delete()
            instance.version += 1
        instance.save()
        if ingredients is not None:
            self._write_ingredients(instance, ingredients)
        return instance


class RecipeIngredientSerializer(serializers.ModelSerializer):
    inventory_item = serializers.CharField(source='inventory_stock.item', read_only=True, default=None)
    inventory_unit = serializers.CharField(source='inventory_stock.unit', read_only=True, default=None)
    is_mapped = serializers.BooleanField(read_only=True)

    class Meta:
        model = RecipeIngredient
        fields = ['id', 'ingredient_name', 'quantity', 'unit', 'cost_per_unit', 'inventory_stock',
                  'inventory_item', 'inventory_unit', 'conversion_factor', 'combo_main', 'combo_add_on', 'is_mapped']
        read_only_fields = ['ingredient_name', 'quantity', 'unit', 'cost_per_unit']

    def validate(self, attrs):
        stock = attrs.get('inventory_stock')
        if stock is not None and stock.store_id != self.instance.recipe.store_id:
            raise serializers.ValidationError({'inventory_stock': 'Stock item belongs to another store'})
        factor = attrs.get('conversion_factor')
        if factor is not None and factor <= 0:
            raise serializers.ValidationError({'conversion_factor': 'Must be greater than zero'})
        return attrs


class RecipeSerializer(serializers.ModelSerializer):
    ingredients = RecipeIngredientSerializer(many=True, read_only=True)
    store_name = serializers.CharField(source='store.name', read_only=True)
    template_name = serializers.CharField(source='template.name', read_only=True, default=None)

    class Meta:
        model = Recipe
        fields = ['id', 'store', 'store_name', 'template', 'template_name', 'name', 'description',
                  'instructions', 'yield_quantity', 'serving_size', 'total_cost', 'suggested_price',
                  'is_active', 'approval_status', 'ingredients', 'created_at', 'updated_at']
        read_only_fields = ['store', 'template', 'total_cost', 'created_at', 'updated_at']


class DeploymentRequestSerializer(serializers.Serializer):
    template_ids = serializers.ListField(child=serializers.IntegerField(), required=False, allow_empty=True)
    store_ids = serializers.ListField(child=serializers.IntegerField(), required=False, allow_empty=True)
