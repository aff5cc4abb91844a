import logging
from datetime import datetime
from decimal import Decimal
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from backend.core.utils import create_audit_log, is_admin_user, is_commissary_user, is_manager_user
from backend.locations.models import Store
from backend.recipes.models import RecipeTemplate
from . import audit, conversion
from .filters import CommissaryItemFilter, InventoryMovementFilter, InventoryStockFilter
from .models import CommissaryItem, InventoryConversion, InventoryMovement, InventoryStock, InventoryTransaction
from .serializers import (
    BatchStockUpdateSerializer, CommissaryItemSerializer, DirectConversionSerializer, InventoryConversionSerializer,
    InventoryMovementSerializer, InventoryStockSerializer, InventoryTransactionSerializer,
    PreValidationSerializer, RecipeProductionSerializer, StockAdjustmentSerializer,
)
from .sync_monitor import InventorySyncMonitor, TransactionValidator

logger = logging.getLogger('backend.inventory')

MAX_ROWS = 500


def _forbidden(message='Only managers can change inventory'):
    return Response({'error': message}, status=status.HTTP_403_FORBIDDEN)


def _parse_date(value):
    if not value:
        return None
    return timezone.make_aware(datetime.strptime(value, '%Y-%m-%d'))


def _decimal_strings(result):
    return {k: str(v) if isinstance(v, Decimal) else v for k, v in result.items()}


# Store inventory
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def stock_list_create(request):
    """List store inventory (filter by store, category, search, status) or add an item"""
    if request.method == 'GET':
        queryset = InventoryStock.objects.select_related('store')
        if 'is_active' not in request.query_params:
            queryset = queryset.filter(is_active=True)
        filterset = InventoryStockFilter(request.query_params, queryset=queryset)
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
        return Response(InventoryStockSerializer(filterset.qs, many=True).data)

    if not is_manager_user(request.user):
        return _forbidden()
    serializer = InventoryStockSerializer(data=request.data)
    if serializer.is_valid():
        stock = serializer.save()
        opening = stock.current_quantity
        if opening:
            audit.log_inventory_movement(stock, 'restock', opening, 0, opening,
                                         notes='Opening stock', user=request.user)
        create_audit_log(request=request, action='create', model_name='InventoryStock',
                         object_id=stock.id, object_name=stock.item)
        return Response(InventoryStockSerializer(stock).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def stock_detail(request, pk):
    """Retrieve or update an inventory item; DELETE deactivates it"""
    stock = get_object_or_404(InventoryStock, pk=pk)

    if request.method == 'GET':
        return Response(InventoryStockSerializer(stock).data)

    if not is_manager_user(request.user):
        return _forbidden()

    if request.method in ('PUT', 'PATCH'):
        serializer = InventoryStockSerializer(stock, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            stock = serializer.save()
            create_audit_log(request=request, action='update', model_name='InventoryStock',
                             object_id=stock.id, object_name=stock.item)
            return Response(InventoryStockSerializer(stock).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    stock.is_active = False
    stock.save(update_fields=['is_active', 'updated_at'])
    create_audit_log(request=request, action='delete', model_name='InventoryStock',
                     object_id=stock.id, object_name=stock.item)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def stock_adjust(request, pk):
    """Set (new_quantity) or shift (quantity_change) a stock level, with a movement row"""
    if not is_manager_user(request.user):
        return _forbidden()
    stock = get_object_or_404(InventoryStock, pk=pk)
    serializer = StockAdjustmentSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data

    use_serving_ready = data['use_serving_ready']
    if data.get('new_quantity') is not None:
        new_quantity = data['new_quantity']
    else:
        serving_ready = use_serving_ready or (use_serving_ready is None and stock.serving_ready_quantity is not None)
        base = (stock.serving_ready_quantity or Decimal('0')) if serving_ready else stock.stock_quantity
        new_quantity = base + data['quantity_change']
        if new_quantity < 0:
            return Response({'error': f"Adjustment would make {stock.item} negative"},
                            status=status.HTTP_400_BAD_REQUEST)

    result = audit.update_stock_with_audit(
        stock, new_quantity, data['movement_type'], reference_type='manual',
        reference_id=data['reference_id'], notes=data['notes'], user=request.user,
        use_serving_ready=use_serving_ready,
    )
    if not result['success']:
        return Response({'error': result['error']}, status=status.HTTP_400_BAD_REQUEST)

    create_audit_log(request=request, action='stock_adjust', model_name='InventoryStock',
                     object_id=stock.id, object_name=stock.item,
                     changes={'previous': str(result['previous_quantity']), 'new': str(result['new_quantity']),
                              'movement_type': data['movement_type']})
    return Response(_decimal_strings(result))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def stock_batch_adjust(request):
    """Body: {"reference_id": "...", "updates": [{"stock_id", "new_quantity", "movement_type", "notes"}]}"""
    if not is_manager_user(request.user):
        return _forbidden()
    updates = request.data.get('updates') or []
    if not isinstance(updates, list) or not updates:
        return Response({'error': 'updates must be a non-empty list'}, status=status.HTTP_400_BAD_REQUEST)
    serializer = BatchStockUpdateSerializer(data=updates, many=True)
    if not serializer.is_valid():
        return Response({'updates': serializer.errors}, status=status.HTTP_400_BAD_REQUEST)

    result = audit.batch_update_with_audit(serializer.validated_data,
                                           reference_id=request.data.get('reference_id', ''),
                                           user=request.user)
    result['results'] = [_decimal_strings(r) for r in result['results']]
    return Response(result, status=status.HTTP_200_OK if result['success'] else status.HTTP_207_MULTI_STATUS)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def stock_audit_trail(request, pk):
    """Movements and product-level rows for one item (?date_from, ?date_to, ?movement_type=a,b, ?limit)"""
    stock = get_object_or_404(InventoryStock, pk=pk)
    try:
        start = _parse_date(request.query_params.get('date_from'))
        end = _parse_date(request.query_params.get('date_to'))
        limit = int(request.query_params.get('limit', 100))
        if limit < 1:
            raise ValueError('limit must be positive')
        limit = min(limit, MAX_ROWS)
    except ValueError:
        return Response({'error': 'Invalid date or limit'}, status=status.HTTP_400_BAD_REQUEST)
    if end is not None:
        end = end.replace(hour=23, minute=59, second=59)
    types = [t for t in request.query_params.get('movement_type', '').split(',') if t]

    trail = audit.get_audit_trail(stock, start=start, end=end, movement_types=types or None, limit=limit)
    return Response({
        'stock': InventoryStockSerializer(stock).data,
        'movements': InventoryMovementSerializer(trail['movements'], many=True).data,
        'transactions': InventoryTransactionSerializer(trail['transactions'], many=True).data,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def stock_integrity(request, pk):
    stock = get_object_or_404(InventoryStock, pk=pk)
    return Response(_decimal_strings(audit.verify_audit_trail_integrity(stock)))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def movement_list(request):
    queryset = InventoryMovement.objects.select_related('inventory_stock')
    filterset = InventoryMovementFilter(request.query_params, queryset=queryset)
    if not filterset.is_valid():
        return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
    return Response(InventoryMovementSerializer(filterset.qs[:MAX_ROWS], many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def inventory_transaction_list(request):
    queryset = InventoryTransaction.objects.select_related('product')
    store_id = request.query_params.get('store')
    reference_id = request.query_params.get('reference_id')
    if store_id:
        queryset = queryset.filter(store_id=store_id)
    if reference_id:
        queryset = queryset.filter(reference_id=reference_id)
    return Response(InventoryTransactionSerializer(queryset[:MAX_ROWS], many=True).data)


# Commissary
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def commissary_list_create(request):
    if request.method == 'GET':
        queryset = CommissaryItem.objects.all()
        if 'is_active' not in request.query_params:
            queryset = queryset.filter(is_active=True)
        filterset = CommissaryItemFilter(request.query_params, queryset=queryset)
        return Response(CommissaryItemSerializer(filterset.qs, many=True).data)

    if not is_commissary_user(request.user):
        return _forbidden('Commissary access required')
    serializer = CommissaryItemSerializer(data=request.data)
    if serializer.is_valid():
        item = serializer.save()
        create_audit_log(request=request, action='create', model_name='CommissaryItem',
                         object_id=item.id, object_name=item.name)
        return Response(CommissaryItemSerializer(item).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def commissary_detail(request, pk):
    item = get_object_or_404(CommissaryItem, pk=pk)

    if request.method == 'GET':
        return Response(CommissaryItemSerializer(item).data)

    if not is_commissary_user(request.user):
        return _forbidden('Commissary access required')

    if request.method in ('PUT', 'PATCH'):
        previous = item.current_stock
        serializer = CommissaryItemSerializer(item, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            item = serializer.save()
            changes = {}
            if item.current_stock != previous:
                changes = {'current_stock': {'old': str(previous), 'new': str(item.current_stock)}}
            create_audit_log(request=request, action='update', model_name='CommissaryItem',
                             object_id=item.id, object_name=item.name, changes=changes)
            return Response(CommissaryItemSerializer(item).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    item.is_active = False
    item.save(update_fields=['is_active', 'updated_at'])
    create_audit_log(request=request, action='delete', model_name='CommissaryItem',
                     object_id=item.id, object_name=item.name)
    return Response(status=status.HTTP_204_NO_CONTENT)


# Conversions
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def conversion_list(request):
    store = None
    if request.query_params.get('store'):
        store = get_object_or_404(Store, pk=request.query_params['store'])
    return Response(InventoryConversionSerializer(conversion.get_conversion_history(store), many=True).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def conversion_direct(request):
    if not is_commissary_user(request.user):
        return _forbidden('Commissary access required')
    serializer = DirectConversionSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data
    store = get_object_or_404(Store, pk=data['store'], is_active=True)

    try:
        result = conversion.process_direct_conversion(
            store, data['commissary_item'], data['quantity'], data['store_item_name'],
            data['store_item_unit'], conversion_ratio=data['conversion_ratio'],
            notes=data['notes'], user=request.user,
        )
    except Exception as e:
        logger.error(f"Direct conversion failed: {str(e)}", exc_info=True)
        return Response({'error': 'Conversion failed'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    if not result['success']:
        return Response(result, status=status.HTTP_400_BAD_REQUEST)
    return Response(_decimal_strings(result), status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def conversion_recipe_production(request):
    if not is_commissary_user(request.user):
        return _forbidden('Commissary access required')
    serializer = RecipeProductionSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data
    store = get_object_or_404(Store, pk=data['store'], is_active=True)

    try:
        result = conversion.process_recipe_production(
            store, data['recipe_template'], data['batches'], notes=data['notes'], user=request.user,
        )
    except Exception as e:
        logger.error(f"Recipe production failed: {str(e)}", exc_info=True)
        return Response({'error': 'Recipe production failed'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    if not result['success']:
        return Response(result, status=status.HTTP_400_BAD_REQUEST)
    return Response(_decimal_strings(result), status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def conversion_recipe_check(request, template_id):
    """Can ?batches of the template be produced from commissary stock"""
    template = get_object_or_404(RecipeTemplate, pk=template_id)
    try:
        batches = Decimal(request.query_params.get('batches', '1'))
    except ArithmeticError:
        return Response({'error': 'batches must be a number'}, status=status.HTTP_400_BAD_REQUEST)
    return Response(conversion.check_commissary_stock_for_recipe(template, batches))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def normalize_order_units(request):
    if not is_admin_user(request.user):
        return _forbidden('Only administrators can normalize order units')
    return Response({'updated': conversion.normalize_order_units()})


# Monitoring
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def store_inventory_health(request, store_id):
    if not is_manager_user(request.user):
        return _forbidden('Only managers can view inventory health')
    store = get_object_or_404(Store, pk=store_id)
    return Response(InventorySyncMonitor().check_store_health(store))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def pre_validate_sale(request):
    """Check a prospective sale against catalog mappings and stock without changing anything"""
    serializer = PreValidationSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    store = get_object_or_404(Store, pk=serializer.validated_data['store'])
    return Response(TransactionValidator().pre_validate_transaction(store, serializer.validated_data['items']))
