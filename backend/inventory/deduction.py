"""
Inventory deduction for POS sales and its reversal on void.
"""
import logging
from decimal import Decimal

from django.db import transaction

from backend.catalog.models import ProductCatalog
from .audit import to_quantity, update_stock_with_audit
from .models import InventoryMovement, InventoryStock, InventoryTransaction

logger = logging.getLogger('backend.inventory')


def resolve_catalog_product(store, product_id=None, product_name=None):
    """The store's available catalog product, by id first and then by name"""
    products = ProductCatalog.objects.filter(store=store, is_available=True).select_related('recipe')
    if product_id:
        product = products.filter(pk=product_id).first()
        if product is not None:
            return product
    if product_name:
        return products.filter(product_name__iexact=product_name.strip()).first()
    return None


def find_direct_inventory(store, name):
    """Stock item sold as-is under the product's own name"""
    return InventoryStock.objects.filter(store=store, is_active=True, item__iexact=(name or '').strip()).first()


def recipe_ingredients_for(product):
    """Ingredients of an active recipe product, else None"""
    recipe = product.recipe
    if recipe is None or not recipe.is_active:
        return None
    return list(recipe.ingredients.select_related('inventory_stock'))


def _add_on_selected(ingredient_name, add_ons):
    name = ingredient_name.strip().lower()
    for choice in add_ons:
        choice = str(choice).strip().lower()
        if choice and (choice == name or choice in name or name in choice):
            return True
    return False


def ingredients_for_sale(ingredients, add_ons=None):
    """
    Split recipe ingredients into (deducted, not_selected). Mix-and-match
    add-ons are deducted only when named in add_ons; base ingredients and
    packaging always are.
    """
    add_ons = add_ons or []
    deducted, not_selected = [], []
    for ingredient in ingredients:
        if ingredient.combo_add_on and not _add_on_selected(ingredient.ingredient_name, add_ons):
            not_selected.append(ingredient)
        else:
            deducted.append(ingredient)
    return deducted, not_selected


def expected_deductions(product, quantity, add_ons=None):
    """
    Stock quantities a sale of `quantity` units should take, as
    {stock_id: (stock, required)}; unmapped ingredient names are returned separately.
    """
    quantity = Decimal(str(quantity))
    required, unmapped = {}, []
    ingredients = recipe_ingredients_for(product)
    if ingredients is None:
        stock = find_direct_inventory(product.store, product.product_name)
        if stock is not None:
            required[stock.pk] = (stock, to_quantity(quantity))
        return required, unmapped, False

    ingredients, _ = ingredients_for_sale(ingredients, add_ons)
    for ingredient in ingredients:
        if ingredient.inventory_stock is None:
            unmapped.append(ingredient.ingredient_name)
            continue
        amount = to_quantity(ingredient.stock_quantity_required(quantity))
        stock, current = required.get(ingredient.inventory_stock_id, (ingredient.inventory_stock, Decimal('0')))
        required[ingredient.inventory_stock_id] = (stock, current + amount)
    return required, unmapped, True


def _deduct(stock_id, amount, label, result, reference_id, user, store, product, notes):
    stock = InventoryStock.objects.select_for_update().get(pk=stock_id)
    available = stock.current_quantity
    if available < amount:
        message = f"Insufficient {stock.item}: need {amount}, have {available}"
        logger.warning(f"{message} (product {label})")
        result['errors'].append(message)
        return
    update = update_stock_with_audit(
        stock, available - amount, 'sale',
        reference_type='transaction', reference_id=reference_id,
        notes=notes, user=user, store=store, product=product,
    )
    if not update['success']:
        result['errors'].append(f"Failed to deduct {stock.item}: {update['error']}")
        return
    result['deducted_items'].append({
        'stock_id': stock.pk,
        'item': stock.item,
        'product_name': label,
        'quantity': amount,
        'new_stock': update['new_quantity'],
    })


def deduct_inventory_for_transaction(store, items, reference_id, user=None):
    """
    items: iterable of dicts with product_id and/or product_name, quantity and
    optional add_ons (selected mix-and-match ingredient names).
    Returns {success, deducted_items, skipped_items, errors, warnings}.
    """
    result = {'success': True, 'deducted_items': [], 'skipped_items': [], 'errors': [], 'warnings': []}
    logger.info(f"Deducting inventory for transaction {reference_id} ({len(items)} items)")

    with transaction.atomic():
        for item in items:
            sold = Decimal(str(item.get('quantity', 0)))
            name = item.get('product_name') or ''
            product = resolve_catalog_product(store, item.get('product_id'), name)
            if product is None:
                result['errors'].append(f"Product not found in store catalog: {name or item.get('product_id')}")
                continue
            if sold <= 0:
                result['skipped_items'].append(product.product_name)
                continue

            required, unmapped, is_recipe = expected_deductions(product, sold, item.get('add_ons'))
            for ingredient_name in unmapped:
                message = f"Ingredient '{ingredient_name}' of {product.product_name} has no inventory mapping"
                logger.warning(message)
                result['warnings'].append(message)
            if not required and not unmapped:
                logger.info(f"No recipe or direct inventory for {product.product_name}; skipped")
                result['skipped_items'].append(product.product_name)
                continue

            notes = f"Sale: {product.product_name} x{sold}"
            for stock_id, (_, amount) in required.items():
                _deduct(stock_id, amount, product.product_name, result, reference_id, user, store, product, notes)

    result['success'] = not result['errors']
    logger.info(
        f"Deduction for {reference_id}: {len(result['deducted_items'])} deducted, "
        f"{len(result['errors'])} errors"
    )
    return result


def reverse_inventory_for_transaction(reference_id, user=None, notes='Transaction voided'):
    """Restore every sale deduction made under reference_id with a return movement"""
    result = {'success': True, 'restored_items': [], 'errors': []}
    sales = list(InventoryMovement.objects.filter(
        reference_type='transaction', reference_id=str(reference_id), movement_type='sale',
    ).order_by('id'))
    already_returned = set(InventoryMovement.objects.filter(
        reference_type='transaction', reference_id=str(reference_id), movement_type='return',
    ).values_list('notes', flat=True))

    with transaction.atomic():
        for movement in sales:
            marker = f"{notes} (movement {movement.pk})"
            if marker in already_returned:
                continue
            stock = InventoryStock.objects.select_for_update().get(pk=movement.inventory_stock_id)
            amount = abs(movement.quantity_change)
            sale_row = InventoryTransaction.objects.filter(
                reference_id=str(reference_id), inventory_stock=stock, transaction_type='sale',
            ).select_related('product').first()
            update = update_stock_with_audit(
                stock, stock.current_quantity + amount, 'return',
                reference_type='transaction', reference_id=reference_id,
                notes=marker, user=user,
                store=stock.store if sale_row else None,
                product=sale_row.product if sale_row else None,
            )
            if update['success']:
                result['restored_items'].append({
                    'stock_id': stock.pk, 'item': stock.item,
                    'quantity': amount, 'new_stock': update['new_quantity'],
                })
            else:
                result['errors'].append(f"Failed to restore {stock.item}: {update['error']}")

    result['success'] = not result['errors']
    logger.info(f"Reversed {len(result['restored_items'])} deductions for transaction {reference_id}")
    return result
