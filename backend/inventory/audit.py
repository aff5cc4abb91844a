"""
Unified inventory audit: every stock change writes a row to the primary
movement table (InventoryMovement); sales and returns of catalog products
also write the product-level InventoryTransaction row.
"""
import logging
import uuid
from decimal import Decimal

from django.db import transaction

from backend.core.utils import actor_name
from .models import InventoryMovement, InventoryStock, InventoryTransaction

logger = logging.getLogger('backend.inventory')

QTY = Decimal('0.001')
INTEGRITY_TOLERANCE = Decimal('0.001')
PRODUCT_LEVEL_TYPES = ('sale', 'return')


def to_quantity(value):
    return Decimal(str(value)).quantize(QTY)


def is_uuid(value):
    try:
        uuid.UUID(str(value))
    except (TypeError, ValueError):
        return False
    return True


def log_inventory_movement(inventory_stock, movement_type, quantity_change, previous_quantity,
                           new_quantity, reference_type='manual', reference_id='', notes='',
                           user=None, created_by=None):
    """Insert a movement row; returns it, or None when the insert failed"""
    try:
        with transaction.atomic():
            return InventoryMovement.objects.create(
                inventory_stock=inventory_stock,
                movement_type=movement_type,
                quantity_change=to_quantity(quantity_change),
                previous_quantity=to_quantity(previous_quantity),
                new_quantity=to_quantity(new_quantity),
                reference_type=reference_type,
                reference_id=str(reference_id or ''),
                notes=notes or '',
                created_by=created_by or actor_name(user),
            )
    except Exception as e:
        logger.warning(f"Failed to log inventory movement for stock {inventory_stock.pk}: {str(e)}")
        return None


def log_inventory_transaction(store, product, transaction_type, quantity, previous_quantity,
                              new_quantity, reference_id='', notes='', user=None,
                              inventory_stock=None, created_by=None):
    """Insert a product-level audit row; returns it, or None when the insert failed"""
    if reference_id and not is_uuid(reference_id):
        logger.warning(f"Inventory transaction reference '{reference_id}' is not a UUID; storing as-is")
    try:
        with transaction.atomic():
            return InventoryTransaction.objects.create(
                store=store,
                product=product,
                inventory_stock=inventory_stock,
                transaction_type=transaction_type,
                quantity=to_quantity(quantity),
                previous_quantity=to_quantity(previous_quantity),
                new_quantity=to_quantity(new_quantity),
                reference_id=str(reference_id or ''),
                notes=notes or '',
                created_by=created_by or actor_name(user),
            )
    except Exception as e:
        logger.warning(f"Failed to log inventory transaction for store {store.pk}: {str(e)}")
        return None


def update_stock_with_audit(stock, new_quantity, movement_type, reference_type='manual',
                            reference_id='', notes='', user=None, use_serving_ready=None,
                            store=None, product=None):
    """
    Set a stock item's quantity and record the change.

    serving_ready_quantity is updated when it is in use (or use_serving_ready is
    True), stock_quantity otherwise. The stock row is locked for the update.
    Returns a result dict; logging failures do not undo the stock change.
    """
    stock_id = stock.pk if isinstance(stock, InventoryStock) else stock
    try:
        with transaction.atomic():
            locked = InventoryStock.objects.select_for_update().get(pk=stock_id)
            if use_serving_ready is None:
                use_serving_ready = locked.serving_ready_quantity is not None
            field = 'serving_ready_quantity' if use_serving_ready else 'stock_quantity'

            previous = to_quantity(getattr(locked, field) or 0)
            new = to_quantity(new_quantity)
            change = new - previous

            setattr(locked, field, new)
            locked.save(update_fields=[field, 'updated_at'])

            movement = log_inventory_movement(
                locked, movement_type, change, previous, new,
                reference_type=reference_type, reference_id=reference_id,
                notes=notes, user=user,
            )

            product_row = None
            if movement_type in PRODUCT_LEVEL_TYPES and store is not None and product is not None:
                product_row = log_inventory_transaction(
                    store, product, movement_type, abs(change), previous, new,
                    reference_id=reference_id, notes=notes, user=user, inventory_stock=locked,
                )
    except InventoryStock.DoesNotExist:
        return {'success': False, 'stock_id': stock_id, 'error': 'Inventory item not found'}
    except Exception as e:
        logger.error(f"Stock update failed for stock {stock_id}: {str(e)}", exc_info=True)
        return {'success': False, 'stock_id': stock_id, 'error': str(e)}

    if isinstance(stock, InventoryStock):
        setattr(stock, field, new)

    return {
        'success': True,
        'stock_id': locked.pk,
        'item': locked.item,
        'field': field,
        'previous_quantity': previous,
        'new_quantity': new,
        'quantity_change': change,
        'movement_id': movement.pk if movement else None,
        'transaction_id': product_row.pk if product_row else None,
        'audit_logged': movement is not None,
    }


def batch_update_with_audit(updates, reference_id='', user=None):
    """
    Apply several updates. Each entry is a dict with stock (or stock_id),
    new_quantity, movement_type and optional reference_type/notes.
    """
    results = []
    for update in updates:
        stock = update.get('stock') or update.get('stock_id')
        result = update_stock_with_audit(
            stock,
            update['new_quantity'],
            update.get('movement_type', 'adjustment'),
            reference_type=update.get('reference_type', 'manual'),
            reference_id=update.get('reference_id', reference_id),
            notes=update.get('notes', ''),
            user=user,
        )
        results.append(result)

    failed = [r for r in results if not r['success']]
    if failed:
        logger.warning(f"Batch stock update: {len(failed)} of {len(results)} updates failed")
    return {'success': not failed, 'results': results, 'failed_count': len(failed)}


def get_audit_trail(stock, start=None, end=None, movement_types=None, limit=100):
    """Movements for a stock item (newest first) and its product-level rows"""
    movements = InventoryMovement.objects.filter(inventory_stock=stock)
    transactions = InventoryTransaction.objects.filter(inventory_stock=stock).select_related('product')
    if start:
        movements = movements.filter(created_at__gte=start)
        transactions = transactions.filter(created_at__gte=start)
    if end:
        movements = movements.filter(created_at__lte=end)
        transactions = transactions.filter(created_at__lte=end)
    if movement_types:
        movements = movements.filter(movement_type__in=movement_types)
        transactions = transactions.filter(transaction_type__in=movement_types)
    return {
        'movements': list(movements.order_by('-created_at', '-id')[:limit]),
        'transactions': list(transactions.order_by('-created_at', '-id')[:limit]),
    }


def verify_audit_trail_integrity(stock):
    """
    Replay movements oldest first: each row must satisfy previous + change = new
    against the running value, and the final value must match current stock.
    """
    stock = InventoryStock.objects.get(pk=stock.pk if isinstance(stock, InventoryStock) else stock)
    actual = stock.current_quantity
    movements = list(InventoryMovement.objects.filter(inventory_stock=stock).order_by('created_at', 'id'))

    if not movements:
        return {
            'is_valid': True,
            'issues': ['No movements found - cannot verify'],
            'current_stock': actual,
            'calculated_stock': actual,
            'movement_count': 0,
        }

    issues = []
    calculated = movements[0].previous_quantity
    for movement in movements:
        expected = calculated + movement.quantity_change
        if abs(expected - movement.new_quantity) > INTEGRITY_TOLERANCE:
            issues.append(
                f"Movement inconsistency at {movement.created_at.isoformat()}: "
                f"expected {expected}, recorded {movement.new_quantity}"
            )
        calculated = movement.new_quantity

    if abs(calculated - actual) > INTEGRITY_TOLERANCE:
        issues.append(f"Final stock mismatch: calculated {calculated}, actual {actual}")

    return {
        'is_valid': not issues,
        'issues': issues,
        'current_stock': actual,
        'calculated_stock': calculated,
        'movement_count': len(movements),
    }
