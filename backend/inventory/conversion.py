"""
Commissary to store conversion: direct (one commissary item into a store
item at a fixed ratio) and recipe production (template ingredients drawn
from commissary stock into "<name> (Produced)").
"""
import logging
import math
from decimal import Decimal

from django.db import transaction

from backend.core.utils import actor_name, create_audit_log
from backend.recipes.matching import extract_pack_quantity
from backend.recipes.models import RecipeTemplate
from .audit import to_quantity, update_stock_with_audit
from .models import CommissaryItem, InventoryConversion, InventoryStock

logger = logging.getLogger('backend.inventory')

PRODUCED_SUFFIX = ' (Produced)'
PRODUCED_UNIT = 'pieces'


def _failure(error):
    return {'success': False, 'error': error}


def _get_or_create_store_item(store, name, unit):
    stock = InventoryStock.objects.select_for_update().filter(store=store, item=name, unit=unit).first()
    if stock is None:
        stock = InventoryStock.objects.create(store=store, item=name, unit=unit, stock_quantity=Decimal('0'))
        logger.info(f"Created store inventory item '{name}' ({unit}) for store {store.id}")
    return stock


def _add_to_store_stock(stock, quantity, conversion, notes, user):
    # Adds to the quantity sales draw from (serving-ready when in use)
    update = update_stock_with_audit(
        stock, stock.current_quantity + quantity, 'conversion',
        reference_type='conversion', reference_id=conversion.pk,
        notes=notes, user=user,
    )
    if not update['success']:
        raise RuntimeError(update['error'])
    return update


def process_direct_conversion(store, commissary_item_id, quantity, store_item_name, store_item_unit,
                              conversion_ratio=1, notes='', user=None):
    """
    Take `quantity` of a commissary item and add quantity x conversion_ratio
    to the store item (created when missing).
    """
    quantity = to_quantity(quantity)
    ratio = Decimal(str(conversion_ratio))
    if quantity <= 0:
        return _failure('Quantity to convert must be greater than zero')
    if ratio <= 0:
        return _failure('Conversion ratio must be greater than zero')

    with transaction.atomic():
        commissary = CommissaryItem.objects.select_for_update().filter(pk=commissary_item_id, is_active=True).first()
        if commissary is None:
            return _failure('Commissary item not found')
        if commissary.current_stock < quantity:
            return _failure(
                f"Insufficient commissary stock for {commissary.name}: "
                f"need {quantity}, have {commissary.current_stock}"
            )

        commissary.current_stock -= quantity
        commissary.save(update_fields=['current_stock', 'updated_at'])

        converted = to_quantity(quantity * ratio)
        stock = _get_or_create_store_item(store, store_item_name.strip(), store_item_unit.strip())
        notes = notes or (
            f"Direct conversion: {quantity} {commissary.unit} -> {converted} {stock.unit}"
        )
        conversion = InventoryConversion.objects.create(
            store=store,
            commissary_item=commissary,
            inventory_stock=stock,
            quantity_converted=quantity,
            finished_goods_quantity=converted,
            converted_by=actor_name(user),
            notes=notes,
        )
        update = _add_to_store_stock(stock, converted, conversion, notes, user)

    logger.info(f"Converted {quantity} {commissary.name} into {converted} {stock.item} for store {store.id}")
    create_audit_log(action='conversion', model_name='InventoryConversion', object_id=conversion.pk,
                     user=user, object_name=stock.item,
                     changes={'commissary_item': commissary.name, 'quantity_converted': str(quantity),
                              'finished_goods_quantity': str(converted)})
    return {
        'success': True,
        'conversion_id': conversion.pk,
        'inventory_stock_id': stock.pk,
        'finished_goods_quantity': converted,
        'new_stock': update['new_quantity'],
        'commissary_remaining': commissary.current_stock,
    }


def check_commissary_stock_for_recipe(template, batches=1):
    """
    Whether `batches` of a template can be produced from commissary stock.
    Returns {can_produce, max_quantity, missing_ingredients}.
    """
    if not isinstance(template, RecipeTemplate):
        template = RecipeTemplate.objects.filter(pk=template).first()
    if template is None:
        return {'can_produce': False, 'max_quantity': 0, 'missing_ingredients': ['Recipe not found']}

    ingredients = list(template.ingredients.select_related('commissary_item'))
    if not ingredients:
        return {'can_produce': False, 'max_quantity': 0, 'missing_ingredients': ['No ingredients defined']}

    max_quantity = None
    missing = []
    for ingredient in ingredients:
        commissary = ingredient.commissary_item
        available = commissary.current_stock if commissary is not None else Decimal('0')
        if available <= 0 or ingredient.quantity <= 0:
            missing.append(ingredient.ingredient_name)
            max_quantity = 0
            continue
        possible = math.floor(available / ingredient.quantity)
        max_quantity = possible if max_quantity is None else min(max_quantity, possible)

    max_quantity = max_quantity or 0
    return {
        'can_produce': not missing and max_quantity >= Decimal(str(batches)),
        'max_quantity': max_quantity,
        'missing_ingredients': missing,
    }


def process_recipe_production(store, template_id, batches, notes='', user=None):
    """
    Produce `batches` of a template: every ingredient's commissary item must
    hold quantity x batches; yield x batches is added to "<name> (Produced)".
    """
    batches = to_quantity(batches)
    if batches <= 0:
        return _failure('Quantity to produce must be greater than zero')

    template = RecipeTemplate.objects.filter(pk=template_id, is_active=True).first()
    if template is None:
        return _failure('Recipe template not found')
    ingredients = list(template.ingredients.all())
    if not ingredients:
        return _failure('Recipe has no ingredients defined')
    unlinked = [i.ingredient_name for i in ingredients if i.commissary_item_id is None]
    if unlinked:
        return _failure(f"Ingredients without a commissary item: {', '.join(unlinked)}")

    with transaction.atomic():
        locked = {
            item.pk: item
            for item in CommissaryItem.objects.select_for_update().filter(
                pk__in=[i.commissary_item_id for i in ingredients]
            )
        }
        required = {}
        for ingredient in ingredients:
            required[ingredient.commissary_item_id] = (
                required.get(ingredient.commissary_item_id, Decimal('0')) + ingredient.quantity * batches
            )
        insufficient = [
            locked[item_id].name for item_id, amount in required.items()
            if locked[item_id].current_stock < amount
        ]
        if insufficient:
            return _failure(f"Insufficient stock for: {', '.join(insufficient)}")

        for item_id, amount in required.items():
            item = locked[item_id]
            item.current_stock = to_quantity(item.current_stock - amount)
            item.save(update_fields=['current_stock', 'updated_at'])

        produced = to_quantity(template.yield_quantity * batches)
        stock = _get_or_create_store_item(store, f"{template.name}{PRODUCED_SUFFIX}", PRODUCED_UNIT)
        notes = notes or f"Recipe production: {template.name} x{batches}"
        conversion = InventoryConversion.objects.create(
            store=store,
            inventory_stock=stock,
            recipe_template=template,
            quantity_converted=batches,
            finished_goods_quantity=produced,
            converted_by=actor_name(user),
            notes=notes,
        )
        update = _add_to_store_stock(stock, produced, conversion, notes, user)

    logger.info(f"Produced {produced} {stock.item} for store {store.id}")
    create_audit_log(action='conversion', model_name='InventoryConversion', object_id=conversion.pk,
                     user=user, object_name=stock.item,
                     changes={'recipe_template': template.name, 'batches': str(batches),
                              'finished_goods_quantity': str(produced)})
    return {
        'success': True,
        'conversion_id': conversion.pk,
        'inventory_stock_id': stock.pk,
        'finished_goods_quantity': produced,
        'new_stock': update['new_quantity'],
    }


def get_conversion_history(store=None, limit=200):
    queryset = InventoryConversion.objects.select_related(
        'store', 'inventory_stock', 'commissary_item', 'recipe_template'
    )
    if store is not None:
        queryset = queryset.filter(store=store)
    return queryset[:limit]


def normalize_order_units():
    """Fill order_quantity from the pack size written in order_unit ('pack of 12' -> 12)"""
    updated = {'inventory_stock': 0, 'commissary': 0}
    for model, key in ((InventoryStock, 'inventory_stock'), (CommissaryItem, 'commissary')):
        for item in model.objects.exclude(order_unit=''):
            pack = Decimal(extract_pack_quantity(item.order_unit))
            if item.order_quantity != pack:
                item.order_quantity = pack
                item.save(update_fields=['order_quantity', 'updated_at'])
                updated[key] += 1
    logger.info(f"Normalized order units: {updated}")
    return updated
