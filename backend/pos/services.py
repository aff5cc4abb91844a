"""
Sale workflow: pricing a new transaction, completing it against inventory,
and voiding it.
"""
import logging
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from django.db import transaction
from django.db.models import Max
from django.utils import timezone

from backend.catalog.models import ProductCatalog
from backend.compliance.services import get_compliance_config, validate_discount, vat_breakdown
from backend.core.utils import create_audit_log
from backend.inventory.deduction import deduct_inventory_for_transaction, reverse_inventory_for_transaction
from backend.inventory.sync_monitor import TransactionValidator
from backend.locations.models import Store
from .models import Transaction, TransactionItem

logger = logging.getLogger('backend.pos')

MONEY = Decimal('0.01')
EXEMPT_DISCOUNT_TYPES = ('senior', 'pwd')


class TransactionError(Exception):
    """A sale that cannot be created or changed; carries a client-facing message"""

    def __init__(self, message, details=None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


def money(value):
    return Decimal(str(value)).quantize(MONEY, ROUND_HALF_UP)


def compute_totals(subtotal, discount_type='none', discount_amount=None, config=None):
    """
    Discount, VAT breakdown and total for a VAT-inclusive subtotal.

    Senior/PWD discounts default to SENIOR_PWD_DISCOUNT_RATE percent and the
    discounted amount is recorded as VAT-exempt sales.
    """
    subtotal = money(subtotal)
    if discount_type == 'none':
        discount = Decimal('0.00')
    elif discount_amount is None and discount_type in EXEMPT_DISCOUNT_TYPES:
        discount = money(subtotal * settings.SENIOR_PWD_DISCOUNT_RATE / Decimal('100'))
    else:
        discount = money(discount_amount or 0)

    error = validate_discount(subtotal, discount, config)
    if error:
        raise TransactionError(error)

    net = subtotal - discount
    if config is None or config.get('enforce_vat_calculation', True):
        breakdown = vat_breakdown(net, (config or {}).get('vat_rate', 12))
    else:
        breakdown = {'vatable_sales': net, 'vat_amount': Decimal('0.00')}

    return {
        'subtotal': subtotal,
        'discount_amount': discount,
        'vatable_sales': breakdown['vatable_sales'],
        'vat_amount': breakdown['vat_amount'],
        'vat_exempt_sales': discount if discount_type in EXEMPT_DISCOUNT_TYPES else Decimal('0.00'),
        'total': net,
    }


def _next_sequence(store):
    # lock the store row so two tills cannot take the same number
    Store.objects.select_for_update().get(pk=store.pk)
    last = Transaction.objects.filter(store=store).aggregate(last=Max('sequence_number'))['last']
    return (last or 0) + 1


@transaction.atomic
def create_transaction(store, items, user=None, discount_type='none', discount_amount=None,
                       discount_id_number='', payment_method='cash', amount_tendered=None, notes=''):
    """
    items: dicts with product_id (or product_name), quantity, optional unit_price
    and optional add_ons (selected mix-and-match ingredient names).
    Prices default to the catalog price. Raises TransactionError on bad input.
    """
    if not items:
        raise TransactionError('Transaction must have at least one item')

    lines = []
    for item in items:
        products = ProductCatalog.objects.filter(store=store)
        if item.get('product_id'):
            product = products.filter(pk=item['product_id']).first()
        else:
            product = products.filter(product_name__iexact=(item.get('product_name') or '').strip()).first()
        if product is None:
            raise TransactionError(f"Product {item.get('product_name') or item.get('product_id')} not found in store catalog")
        if not product.is_available:
            raise TransactionError(f"{product.product_name} is not available")
        quantity = Decimal(str(item['quantity']))
        unit_price = money(item['unit_price']) if item.get('unit_price') is not None else product.price
        add_ons = [str(name).strip() for name in item.get('add_ons') or [] if str(name).strip()]
        lines.append((product, quantity, unit_price, money(unit_price * quantity), add_ons))

    config = get_compliance_config(store)
    totals = compute_totals(sum((line[3] for line in lines), Decimal('0')), discount_type, discount_amount, config)
    if totals['total'] <= 0:
        raise TransactionError('Transaction total must be greater than zero')

    if amount_tendered is None:
        if payment_method == 'cash':
            raise TransactionError('amount_tendered is required for cash payments')
        amount_tendered = totals['total']
    amount_tendered = money(amount_tendered)
    if amount_tendered < totals['total']:
        raise TransactionError(
            f"Amount tendered {amount_tendered} is less than the total {totals['total']}"
        )

    sequence = _next_sequence(store)
    sale = Transaction.objects.create(
        store=store,
        sequence_number=sequence,
        receipt_number=f"{store.code}-{sequence:08d}",
        discount_type=discount_type,
        discount_id_number=discount_id_number or '',
        payment_method=payment_method,
        amount_tendered=amount_tendered,
        change_amount=amount_tendered - totals['total'],
        notes=notes or '',
        created_by=user if user is not None and user.is_authenticated else None,
        **totals,
    )
    TransactionItem.objects.bulk_create([
        TransactionItem(transaction=sale, product=product, product_name=product.product_name,
                        quantity=quantity, unit_price=unit_price, total_price=line_total, add_ons=add_ons)
        for product, quantity, unit_price, line_total, add_ons in lines
    ])
    logger.info(f"Transaction {sale.receipt_number} created: {len(lines)} items, total {sale.total}")
    return sale


def complete_transaction(sale, user=None, request=None):
    """
    Pre-validate, deduct inventory and mark completed.
    Returns (ok, payload); nothing is deducted when pre-validation fails.
    """
    if sale.status != 'pending':
        return False, {'error': f"Only pending transactions can be completed (status: {sale.status})"}

    validator = TransactionValidator()
    items = sale.inventory_items
    pre_validation = validator.pre_validate_transaction(sale.store, items)
    if not pre_validation['is_valid']:
        logger.warning(f"Transaction {sale.receipt_number} failed pre-validation: {pre_validation}")
        return False, {'error': 'Transaction failed inventory validation', 'validation': pre_validation}

    with transaction.atomic():
        locked = Transaction.objects.select_for_update().get(pk=sale.pk)
        if locked.status != 'pending':
            return False, {'error': f"Only pending transactions can be completed (status: {locked.status})"}
        deduction = deduct_inventory_for_transaction(sale.store, items, str(sale.reference), user=user)
        if not deduction['success']:
            transaction.set_rollback(True)
            logger.error(f"Inventory deduction failed for {sale.receipt_number}: {deduction['errors']}")
            return False, {'error': 'Inventory deduction failed', 'deduction': deduction}
        completion = validator.validate_transaction_completion(locked)
        locked.status = 'completed'
        locked.completed_at = timezone.now()
        locked.save(update_fields=['status', 'completed_at', 'updated_at'])

    sale.refresh_from_db()
    if not completion['can_complete']:
        logger.warning(f"Transaction {sale.receipt_number} completed with sync errors: {completion['errors']}")

    create_audit_log(request=request, user=user, action='transaction_complete', model_name='Transaction',
                     object_id=sale.id, object_name=f"Receipt {sale.receipt_number}",
                     object_reference=sale.receipt_number,
                     changes={'total': str(sale.total), 'items': len(items),
                              'deducted': len(deduction['deducted_items'])})
    return True, {'deduction': deduction, 'validation': completion, 'pre_validation': pre_validation}


def void_transaction(sale, user=None, reason='', request=None):
    """Restore inventory for a completed sale and mark it voided"""
    if sale.status == 'voided':
        return False, {'error': 'Transaction is already voided'}

    with transaction.atomic():
        restored = {'success': True, 'restored_items': [], 'errors': []}
        if sale.status == 'completed':
            restored = reverse_inventory_for_transaction(
                str(sale.reference), user=user, notes=f"Void {sale.receipt_number}",
            )
            if not restored['success']:
                transaction.set_rollback(True)
                return False, {'error': 'Inventory could not be restored', 'reversal': restored}
        sale.status = 'voided'
        sale.voided_at = timezone.now()
        sale.voided_by = user if user is not None and user.is_authenticated else None
        sale.void_reason = reason or ''
        sale.save(update_fields=['status', 'voided_at', 'voided_by', 'void_reason', 'updated_at'])

    logger.info(f"Transaction {sale.receipt_number} voided: {len(restored['restored_items'])} items restored")
    create_audit_log(request=request, user=user, action='transaction_void', model_name='Transaction',
                     object_id=sale.id, object_name=f"Receipt {sale.receipt_number}",
                     object_reference=sale.receipt_number,
                     changes={'total': str(sale.total), 'reason': reason or ''})
    return True, {'reversal': restored}
