"""
How many servings of a catalog product the store can make right now.
"""
import math
from django.conf import settings
from backend.inventory.deduction import find_direct_inventory, ingredients_for_sale, recipe_ingredients_for

OUT_OF_STOCK = 'out_of_stock'
LOW_STOCK = 'low_stock'
IN_STOCK = 'in_stock'
UNMAPPED = 'unmapped'


def _status_for(servings):
    if servings <= 0:
        return OUT_OF_STOCK
    if servings < settings.LOW_STOCK_SERVINGS:
        return LOW_STOCK
    return IN_STOCK


def product_availability(product):
    """
    Returns {product_id, product_name, source, servings, status, limiting_ingredient, unmapped_ingredients}.
    source is 'recipe', 'direct' or None.
    """
    result = {
        'product_id': product.pk,
        'product_name': product.product_name,
        'source': None,
        'servings': 0,
        'status': UNMAPPED,
        'limiting_ingredient': None,
        'unmapped_ingredients': [],
    }

    ingredients = recipe_ingredients_for(product)
    if ingredients is None:
        stock = find_direct_inventory(product.store, product.product_name)
        if stock is None:
            return result
        servings = max(math.floor(stock.current_quantity), 0)
        result.update(source='direct', servings=servings, status=_status_for(servings), limiting_ingredient=stock.item)
        return result

    result['source'] = 'recipe'
    # Base servings; optional add-ons do not limit the product
    ingredients, _ = ingredients_for_sale(ingredients)
    unmapped = [i.ingredient_name for i in ingredients if i.inventory_stock is None]
    if unmapped or not ingredients:
        result['unmapped_ingredients'] = unmapped
        return result

    servings, limiting = None, None
    for ingredient in ingredients:
        required = ingredient.stock_quantity_required(1)
        if required <= 0:
            continue
        possible = max(math.floor(ingredient.inventory_stock.current_quantity / required), 0)
        if servings is None or possible < servings:
            servings, limiting = possible, ingredient.ingredient_name
    servings = servings or 0
    result.update(servings=servings, status=_status_for(servings), limiting_ingredient=limiting)
    return result


def store_availability(products):
    return [product_availability(product) for product in products]
