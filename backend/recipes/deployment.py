"""
Deploying recipe templates to stores, and the soft "clear recipe data" reset.
"""
import logging

from django.db import transaction

from backend.catalog.models import Category, ProductCatalog
from backend.core.cache_signals import suspend_cache_signals
from backend.inventory.models import InventoryStock
from backend.locations.models import Store
from .matching import best_stock_match, unit_conversion_factor, units_compatible
from .models import Recipe, RecipeIngredient, RecipeTemplate

logger = logging.getLogger('backend.recipes')


def map_ingredient_to_stock(ingredient_name, unit, stock_items):
    """Exact (case-insensitive) item name first, then the best fuzzy match"""
    name = ingredient_name.strip().lower()
    exact = [item for item in stock_items if item.item.strip().lower() == name]
    if exact:
        for item in exact:
            if units_compatible(unit, item.unit):
                return item
        return exact[0]
    match, _ = best_stock_match(ingredient_name, unit, stock_items)
    return match


def deploy_template_to_store(template, store):
    """
    Create the store recipe, its ingredient mappings and catalog product.
    Returns a dict with status 'deployed' or 'skipped'.
    """
    existing = Recipe.objects.filter(template=template, store=store).first()
    if existing is not None:
        if existing.is_active:
            return {'status': 'skipped', 'reason': 'already deployed', 'recipe_id': existing.id}
        # Soft-cleared leftovers are replaced by a fresh deployment
        existing.delete()

    category = Category.objects.filter(store=store, name__iexact=template.category_name.strip()).first()
    if category is None:
        category = Category.objects.create(
            store=store, name=template.category_name.strip(),
            description=f'{template.category_name.strip()} items',
        )

    recipe = Recipe.objects.create(
        store=store,
        template=template,
        name=template.name,
        description=template.description,
        instructions=template.instructions,
        yield_quantity=template.yield_quantity,
        serving_size=template.serving_size,
        total_cost=template.total_cost,
        suggested_price=template.suggested_price,
        approval_status='approved',
    )

    stock_items = list(InventoryStock.objects.filter(store=store, is_active=True))
    unmapped = []
    for ingredient in template.ingredients.all():
        stock = map_ingredient_to_stock(ingredient.ingredient_name, ingredient.unit, stock_items)
        factor = None
        if stock is not None:
            factor = unit_conversion_factor(ingredient.unit, stock.unit)
        else:
            unmapped.append(ingredient.ingredient_name)
        RecipeIngredient.objects.create(
            recipe=recipe,
            ingredient_name=ingredient.ingredient_name,
            quantity=ingredient.quantity,
            unit=ingredient.unit,
            cost_per_unit=ingredient.cost_per_unit,
            inventory_stock=stock,
            conversion_factor=factor if factor is not None else 1,
            combo_main=ingredient.combo_main,
            combo_add_on=ingredient.combo_add_on,
        )

    product = ProductCatalog.objects.filter(store=store, product_name__iexact=template.name.strip()).first()
    if product is None:
        product = ProductCatalog.objects.create(
            store=store,
            recipe=recipe,
            product_name=template.name,
            description=template.description,
            price=template.suggested_price,
            category=category,
            is_available=True,
        )
    else:
        product.recipe = recipe
        product.category = product.category or category
        product.save(update_fields=['recipe', 'category', 'updated_at'])

    if unmapped:
        logger.warning(
            f"Deployed '{template.name}' to {store.name} with unmapped ingredients: {', '.join(unmapped)}"
        )
    return {
        'status': 'deployed',
        'recipe_id': recipe.id,
        'product_id': product.id,
        'unmapped_ingredients': unmapped,
    }


def deploy_templates(template_ids=None, store_ids=None):
    """Deploy active templates to active stores (all of either when ids are omitted)"""
    templates = RecipeTemplate.objects.filter(is_active=True).prefetch_related('ingredients')
    if template_ids:
        templates = templates.filter(id__in=template_ids)
    stores = Store.objects.filter(is_active=True)
    if store_ids:
        stores = stores.filter(id__in=store_ids)
    stores = list(stores)

    result = {'deployed': 0, 'skipped': 0, 'errors': [], 'details': []}
    logger.info(f"Deploying {templates.count()} templates to {len(stores)} stores")

    with suspend_cache_signals():
        for template in templates:
            for store in stores:
                try:
                    with transaction.atomic():
                        outcome = deploy_template_to_store(template, store)
                except Exception as e:
                    logger.error(f"Deployment of '{template.name}' to {store.name} failed: {str(e)}", exc_info=True)
                    result['errors'].append({
                        'template_id': template.id,
                        'template': template.name,
                        'store_id': store.id,
                        'store': store.name,
                        'error': str(e),
                    })
                    continue
                result[outcome['status']] += 1
                result['details'].append({
                    'template_id': template.id,
                    'store_id': store.id,
                    **outcome,
                })

    logger.info(
        f"Deployment finished: {result['deployed']} deployed, {result['skipped']} skipped, "
        f"{len(result['errors'])} errors"
    )
    result['success'] = not result['errors']
    return result


@transaction.atomic
def clear_recipe_data():
    """Unlink catalog products from recipes and deactivate every recipe and template"""
    unlinked = ProductCatalog.objects.filter(recipe__isnull=False).update(recipe=None)
    recipes = Recipe.objects.filter(is_active=True).update(is_active=False)
    templates = RecipeTemplate.objects.filter(is_active=True).update(is_active=False)
    logger.info(f"Cleared recipe data: {unlinked} products unlinked, {recipes} recipes and {templates} templates deactivated")
    return {'products_unlinked': unlinked, 'recipes_deactivated': recipes, 'templates_deactivated': templates}
