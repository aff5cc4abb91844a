from decimal import Decimal
from django.conf import settings
from django.db import models
from backend.locations.models import Store

QTY = dict(max_digits=12, decimal_places=3)
MONEY = dict(max_digits=12, decimal_places=2)
UNIT_COST = dict(max_digits=12, decimal_places=4)


class RecipeTemplate(models.Model):
    """Reusable product definition deployable to any store"""
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    category_name = models.CharField(max_length=100, default='Other')
    instructions = models.TextField(blank=True)
    yield_quantity = models.DecimalField(default=Decimal('1'), **QTY)
    serving_size = models.DecimalField(default=Decimal('1'), **QTY)
    suggested_price = models.DecimalField(default=Decimal('0'), **MONEY)
    total_cost = models.DecimalField(default=Decimal('0'), **MONEY)
    version = models.PositiveIntegerField(default=1)
    is_active = models.BooleanField(default=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='recipe_templates')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    def calculate_total_cost(self):
        return sum((i.line_cost for i in self.ingredients.all()), Decimal('0'))

    def recalculate_cost(self, save=True):
        self.total_cost = self.calculate_total_cost().quantize(Decimal('0.01'))
        if save:
            self.save(update_fields=['total_cost', 'updated_at'])
        return self.total_cost

    class Meta:
        db_table = 'recipe_templates'
        ordering = ['category_name', 'name']


class RecipeTemplateIngredient(models.Model):
    template = models.ForeignKey(RecipeTemplate, on_delete=models.CASCADE, related_name='ingredients')
    ingredient_name = models.CharField(max_length=200)
    quantity = models.DecimalField(**QTY)
    unit = models.CharField(max_length=50)
    cost_per_unit = models.DecimalField(default=Decimal('0'), **UNIT_COST)
    ingredient_category = models.CharField(max_length=100, blank=True)
    combo_main = models.BooleanField(default=False)
    combo_add_on = models.BooleanField(default=False)
    # Set when the ingredient is produced from commissary stock
    commissary_item = models.ForeignKey('inventory.CommissaryItem', on_delete=models.SET_NULL, null=True, blank=True, related_name='template_ingredients')

    def __str__(self):
        return f"{self.quantity} {self.unit} {self.ingredient_name}"

    @property
    def line_cost(self):
        return (self.quantity or Decimal('0')) * (self.cost_per_unit or Decimal('0'))

    class Meta:
        db_table = 'recipe_template_ingredients'
        ordering = ['id']


class Recipe(models.Model):
    """A template deployed to one store"""
    APPROVAL_CHOICES = [
        ('draft', 'Draft'),
        ('pending_approval', 'Pending Approval'),
        ('approved', 'Approved'),
        ('rejected', 'Rejected'),
    ]

    store = models.ForeignKey(Store, on_delete=models.CASCADE, related_name='recipes')
    template = models.ForeignKey(RecipeTemplate, on_delete=models.SET_NULL, null=True, blank=True, related_name='recipes')
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    instructions = models.TextField(blank=True)
    yield_quantity = models.DecimalField(default=Decimal('1'), **QTY)
    serving_size = models.DecimalField(default=Decimal('1'), **QTY)
    total_cost = models.DecimalField(default=Decimal('0'), **MONEY)
    suggested_price = models.DecimalField(default=Decimal('0'), **MONEY)
    is_active = models.BooleanField(default=True)
    approval_status = models.CharField(max_length=20, choices=APPROVAL_CHOICES, default='approved')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} @ {self.store}"

    class Meta:
        db_table = 'recipes'
        ordering = ['name']
        constraints = [
            models.UniqueConstraint(fields=['template', 'store'], name='unique_recipe_template_store'),
        ]


class RecipeIngredient(models.Model):
    recipe = models.ForeignKey(Recipe, on_delete=models.CASCADE, related_name='ingredients')
    ingredient_name = models.CharField(max_length=200)
    quantity = models.DecimalField(**QTY)
    unit = models.CharField(max_length=50)
    cost_per_unit = models.DecimalField(default=Decimal('0'), **UNIT_COST)
    inventory_stock = models.ForeignKey('inventory.InventoryStock', on_delete=models.SET_NULL, null=True, blank=True, related_name='recipe_ingredients')
    # recipe unit -> stock unit
    conversion_factor = models.DecimalField(max_digits=12, decimal_places=6, default=Decimal('1'))
    combo_main = models.BooleanField(default=False)
    # Only deducted when the sale line selects it
    combo_add_on = models.BooleanField(default=False)

    def __str__(self):
        return f"{self.quantity} {self.unit} {self.ingredient_name}"

    @property
    def is_mapped(self):
        return self.inventory_stock_id is not None

    def stock_quantity_required(self, servings=1):
        return self.quantity * self.conversion_factor * Decimal(str(servings))

    class Meta:
        db_table = 'recipe_ingredients'
        ordering = ['id']
