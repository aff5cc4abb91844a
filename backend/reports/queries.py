"""
Report queries. Arguments are plain values (ids, ISO dates) so results can
be cached under a stable key; invalidated when sales or stock change.
"""
from decimal import Decimal

from django.db.models import Avg, Count, DecimalField, F, Q, Sum
from django.db.models.functions import TruncDate

from backend.core.cache_utils import REPORTS_CACHE_TTL, REPORTS_PREFIX, cached_query
from backend.inventory.models import InventoryMovement, InventoryStock
from backend.pos.models import Transaction, TransactionItem


def _completed_sales(store_id, date_from, date_to):
    sales = Transaction.objects.filter(
        status='completed',
        created_at__date__gte=date_from,
        created_at__date__lte=date_to,
    )
    if store_id:
        sales = sales.filter(store_id=store_id)
    return sales


@cached_query(cache_ttl=REPORTS_CACHE_TTL, key_prefix=REPORTS_PREFIX)
def sales_summary(store_id, date_from, date_to):
    sales = _completed_sales(store_id, date_from, date_to)
    totals = sales.aggregate(
        total_sales=Sum('total', output_field=DecimalField()),
        transactions=Count('id'),
        avg_ticket=Avg('total', output_field=DecimalField()),
        vat=Sum('vat_amount', output_field=DecimalField()),
        vatable=Sum('vatable_sales', output_field=DecimalField()),
        vat_exempt=Sum('vat_exempt_sales', output_field=DecimalField()),
        discounts=Sum('discount_amount', output_field=DecimalField()),
    )
    items_sold = TransactionItem.objects.filter(transaction__in=sales).aggregate(
        total=Sum('quantity', output_field=DecimalField())
    )['total'] or Decimal('0')

    daily = sales.annotate(date=TruncDate('created_at')).values('date').annotate(
        total=Sum('total', output_field=DecimalField()),
        count=Count('id'),
    ).order_by('date')

    by_payment = sales.values('payment_method').annotate(
        total=Sum('total', output_field=DecimalField()),
        count=Count('id'),
    ).order_by('payment_method')

    voided = Transaction.objects.filter(
        status='voided', created_at__date__gte=date_from, created_at__date__lte=date_to,
    )
    if store_id:
        voided = voided.filter(store_id=store_id)

    return {
        'period': {'from': date_from, 'to': date_to},
        'summary': {
            'total_sales': float(totals['total_sales'] or 0),
            'transaction_count': totals['transactions'],
            'items_sold': float(items_sold),
            'average_ticket': float(totals['avg_ticket'] or 0),
            'vat_amount': float(totals['vat'] or 0),
            'vatable_sales': float(totals['vatable'] or 0),
            'vat_exempt_sales': float(totals['vat_exempt'] or 0),
            'total_discounts': float(totals['discounts'] or 0),
            'voided_count': voided.count(),
        },
        'daily_breakdown': [
            {'date': row['date'].isoformat(), 'total': float(row['total'] or 0), 'count': row['count']}
            for row in daily
        ],
        'by_payment_method': [
            {'payment_method': row['payment_method'], 'total': float(row['total'] or 0), 'count': row['count']}
            for row in by_payment
        ],
    }


@cached_query(cache_ttl=REPORTS_CACHE_TTL, key_prefix=REPORTS_PREFIX)
def top_products(store_id, date_from, date_to, order_by='quantity', limit=10):
    items = TransactionItem.objects.filter(transaction__in=_completed_sales(store_id, date_from, date_to))
    rows = items.values('product_name').annotate(
        quantity=Sum('quantity', output_field=DecimalField()),
        revenue=Sum('total_price', output_field=DecimalField()),
        transactions=Count('transaction', distinct=True),
    ).order_by('-revenue' if order_by == 'revenue' else '-quantity', 'product_name')[:limit]
    return [
        {
            'product_name': row['product_name'],
            'quantity': float(row['quantity'] or 0),
            'revenue': float(row['revenue'] or 0),
            'transactions': row['transactions'],
        }
        for row in rows
    ]


@cached_query(cache_ttl=REPORTS_CACHE_TTL, key_prefix=REPORTS_PREFIX)
def inventory_summary(store_id):
    """Counts per stock status, total stock value and the low/out list"""
    stock = InventoryStock.objects.filter(is_active=True).select_related('store')
    if store_id:
        stock = stock.filter(store_id=store_id)

    counts = {'good': 0, 'low': 0, 'out': 0}
    total_value = Decimal('0')
    attention = []
    for item in stock:
        status = item.stock_status
        counts[status] += 1
        total_value += max(item.current_quantity, Decimal('0')) * item.cost
        if status != 'good':
            attention.append({
                'id': item.id,
                'store': item.store.name,
                'item': item.item,
                'unit': item.unit,
                'quantity': float(item.current_quantity),
                'minimum_threshold': float(item.minimum_threshold),
                'status': status,
            })

    attention.sort(key=lambda row: (row['status'] != 'out', row['item']))
    return {
        'summary': {
            'total_items': sum(counts.values()),
            'in_stock': counts['good'],
            'low_stock': counts['low'],
            'out_of_stock': counts['out'],
            'total_stock_value': float(total_value),
        },
        'low_stock_items': attention,
    }


@cached_query(cache_ttl=REPORTS_CACHE_TTL, key_prefix=REPORTS_PREFIX)
def movement_summary(store_id, date_from, date_to):
    movements = InventoryMovement.objects.filter(
        created_at__date__gte=date_from, created_at__date__lte=date_to,
    )
    if store_id:
        movements = movements.filter(inventory_stock__store_id=store_id)

    by_type = movements.values('movement_type').annotate(
        count=Count('id'),
        total_in=Sum('quantity_change', filter=Q(quantity_change__gt=0), output_field=DecimalField()),
        total_out=Sum('quantity_change', filter=Q(quantity_change__lt=0), output_field=DecimalField()),
    ).order_by('movement_type')

    busiest = movements.values(item=F('inventory_stock__item')).annotate(
        count=Count('id'),
    ).order_by('-count', 'item')[:10]

    return {
        'period': {'from': date_from, 'to': date_to},
        'total_movements': movements.count(),
        'by_type': [
            {
                'movement_type': row['movement_type'],
                'count': row['count'],
                'total_in': float(row['total_in'] or 0),
                'total_out': float(abs(row['total_out'] or 0)),
            }
            for row in by_type
        ],
        'most_active_items': list(busiest),
    }
