"""
Consistency checks between what POS transactions should have taken from
inventory and the movements actually recorded.
"""
import logging
from decimal import Decimal


from .audit import INTEGRITY_TOLERANCE, verify_audit_trail_integrity
from .deduction import (
    expected_deductions, find_direct_inventory, ingredients_for_sale, recipe_ingredients_for, resolve_catalog_product,
)
from .models import InventoryMovement, InventoryStock

logger = logging.getLogger('backend.inventory')


class InventorySyncMonitor:
    """Compares expected and recorded inventory movements"""

    def expected_for_transaction(self, pos_transaction):
        expected = {}
        for item in pos_transaction.items.select_related('product', 'product__recipe'):
            product = item.product or resolve_catalog_product(pos_transaction.store, product_name=item.product_name)
            if product is None:
                continue
            required, _, _ = expected_deductions(product, item.quantity, item.add_ons)
            for stock_id, (stock, amount) in required.items():
                name, total = expected.get(stock_id, (stock.item, Decimal('0')))
                expected[stock_id] = (name, total + amount)
        return expected

    def actual_for_transaction(self, pos_transaction):
        actual = {}
        movements = InventoryMovement.objects.filter(
            reference_type='transaction', reference_id=str(pos_transaction.reference), movement_type='sale',
        ).select_related('inventory_stock')
        for movement in movements:
            name, total = actual.get(movement.inventory_stock_id, (movement.inventory_stock.item, Decimal('0')))
            actual[movement.inventory_stock_id] = (name, total + abs(movement.quantity_change))
        return actual

    def validate_transaction_sync(self, pos_transaction):
        """Errors for missing/mismatched deductions, warnings for unexpected movements"""
        errors, warnings = [], []
        expected = self.expected_for_transaction(pos_transaction)
        actual = self.actual_for_transaction(pos_transaction)

        for stock_id, (item, amount) in expected.items():
            if stock_id not in actual:
                errors.append(f"Missing deduction for {item}: expected {amount}")
                continue
            recorded = actual[stock_id][1]
            if abs(recorded - amount) > INTEGRITY_TOLERANCE:
                errors.append(f"Deduction mismatch for {item}: expected {amount}, recorded {recorded}")

        for stock_id, (item, amount) in actual.items():
            if stock_id not in expected:
                warnings.append(f"Unexpected movement for {item}: {amount}")

        if errors:
            logger.warning(f"Transaction {pos_transaction.receipt_number} out of sync: {errors}")
        return {
            'is_valid': not errors,
            'errors': errors,
            'warnings': warnings,
            'expected_count': len(expected),
            'actual_count': len(actual),
        }

    def check_store_health(self, store):
        """Audit-trail integrity for every active stock item, plus negative and low stock"""
        stock_items = list(InventoryStock.objects.filter(store=store, is_active=True))
        integrity_issues, negative, low = [], [], []
        for stock in stock_items:
            check = verify_audit_trail_integrity(stock)
            if not check['is_valid']:
                integrity_issues.append({'stock_id': stock.pk, 'item': stock.item, 'issues': check['issues']})
            quantity = stock.current_quantity
            if quantity < 0:
                negative.append({'stock_id': stock.pk, 'item': stock.item, 'quantity': str(quantity)})
            elif quantity <= stock.minimum_threshold:
                low.append({'stock_id': stock.pk, 'item': stock.item, 'quantity': str(quantity),
                            'minimum_threshold': str(stock.minimum_threshold)})

        healthy = not integrity_issues and not negative
        if not healthy:
            logger.warning(
                f"Store {store.id} health check: {len(integrity_issues)} integrity issues, "
                f"{len(negative)} negative stock items"
            )
        return {
            'store': store.id,
            'store_name': store.name,
            'healthy': healthy,
            'checked_items': len(stock_items),
            'integrity_issues': integrity_issues,
            'negative_stock': negative,
            'low_stock': low,
        }


class TransactionValidator:
    """Checks run before a sale is completed and after inventory is deducted"""

    def __init__(self, monitor=None):
        self.monitor = monitor or InventorySyncMonitor()

    def pre_validate_transaction(self, store, items):
        """
        items: dicts with product_id and/or product_name, quantity and optional add_ons.
        Returns {is_valid, issues, missing_ingredients}.
        """
        issues, missing = [], []
        for item in items:
            label = item.get('product_name') or item.get('product_id')
            quantity = Decimal(str(item.get('quantity', 0)))
            product = resolve_catalog_product(store, item.get('product_id'), item.get('product_name'))
            if product is None:
                issues.append(f"Product {label} not found in catalog")
                continue

            ingredients = recipe_ingredients_for(product)
            if ingredients is None:
                direct = find_direct_inventory(store, product.product_name)
                if direct is None:
                    issues.append(f'Product "{product.product_name}" has no recipe or direct inventory mapping')
                elif direct.current_quantity < quantity:
                    missing.append({
                        'product_name': product.product_name,
                        'ingredient_name': direct.item,
                        'required': str(quantity),
                        'available': str(direct.current_quantity),
                    })
                continue

            ingredients, _ = ingredients_for_sale(ingredients, item.get('add_ons'))
            for ingredient in ingredients:
                stock = ingredient.inventory_stock
                if stock is None:
                    issues.append(
                        f'Ingredient "{ingredient.ingredient_name}" for product "{product.product_name}" '
                        f'has no inventory mapping'
                    )
                    continue
                required = ingredient.stock_quantity_required(quantity)
                if stock.current_quantity < required:
                    missing.append({
                        'product_name': product.product_name,
                        'ingredient_name': ingredient.ingredient_name,
                        'required': str(required.quantize(Decimal('0.001'))),
                        'available': str(stock.current_quantity),
                    })

        return {'is_valid': not issues and not missing, 'issues': issues, 'missing_ingredients': missing}

    def validate_transaction_completion(self, pos_transaction):
        """Returns {can_complete, errors, warnings, sync_status, recommended_actions}"""
        errors, warnings, actions = [], [], []
        if pos_transaction is None:
            return {'can_complete': False, 'errors': ['Transaction not found'], 'warnings': [],
                    'sync_status': None, 'recommended_actions': []}

        if pos_transaction.status == 'completed':
            warnings.append('Transaction is already completed')

        items = list(pos_transaction.items.select_related('product', 'product__recipe'))
        if not items:
            return {'can_complete': False, 'errors': ['Transaction has no items'], 'warnings': warnings,
                    'sync_status': None, 'recommended_actions': actions}

        sync = self.monitor.validate_transaction_sync(pos_transaction)
        if not sync['is_valid']:
            errors.extend(sync['errors'])
            actions.append('Review inventory sync issues before completing transaction')
        warnings.extend(sync['warnings'])

        movement_count = InventoryMovement.objects.filter(
            reference_type='transaction', reference_id=str(pos_transaction.reference),
        ).count()
        has_direct_products = any(
            item.product is not None and recipe_ingredients_for(item.product) is None
            and find_direct_inventory(pos_transaction.store, item.product.product_name) is not None
            for item in items
        )
        if has_direct_products and movement_count == 0:
            errors.append('No inventory movements found for direct products')
            actions.append('Check inventory deduction service and product mappings')

        negative_count = InventoryStock.objects.filter(
            store=pos_transaction.store, is_active=True, stock_quantity__lt=0,
        ).count() + InventoryStock.objects.filter(
            store=pos_transaction.store, is_active=True, serving_ready_quantity__lt=0,
        ).exclude(stock_quantity__lt=0).count()
        if negative_count:
            warnings.append(f"{negative_count} items have negative stock levels")
            actions.append('Review negative stock items and adjust inventory')

        return {
            'can_complete': not errors,
            'errors': errors,
            'warnings': warnings,
            'sync_status': 'valid' if sync['is_valid'] else 'invalid',
            'recommended_actions': actions,
        }
