import logging
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from backend.core.utils import create_audit_log, is_cashier_user, is_manager_user
from backend.inventory.sync_monitor import InventorySyncMonitor, TransactionValidator
from backend.locations.models import Store
from . import services
from .filters import TransactionFilter
from .models import Transaction
from .serializers import TransactionCreateSerializer, TransactionSerializer

logger = logging.getLogger('backend.pos')

MAX_ROWS = 500


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def transaction_list_create(request):
    """
    List sales (filters: store, status, payment_method, discount_type, receipt_number, date_from, date_to)
    or ring up a new one. With "complete": true the sale is completed in the same request.
    """
    if request.method == 'GET':
        queryset = Transaction.objects.select_related('store', 'created_by', 'voided_by').prefetch_related('items')
        filterset = TransactionFilter(request.query_params, queryset=queryset)
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
        return Response(TransactionSerializer(filterset.qs[:MAX_ROWS], many=True).data)

    if not is_cashier_user(request.user):
        return Response({'error': 'POS access required'}, status=status.HTTP_403_FORBIDDEN)
    serializer = TransactionCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data
    store = get_object_or_404(Store, pk=data['store'], is_active=True)

    try:
        sale = services.create_transaction(
            store, data['items'], user=request.user,
            discount_type=data['discount_type'], discount_amount=data.get('discount_amount'),
            discount_id_number=data['discount_id_number'], payment_method=data['payment_method'],
            amount_tendered=data.get('amount_tendered'), notes=data['notes'],
        )
    except services.TransactionError as e:
        return Response({'error': e.message}, status=status.HTTP_400_BAD_REQUEST)

    create_audit_log(request=request, action='create', model_name='Transaction', object_id=sale.id,
                     object_name=f"Receipt {sale.receipt_number}", object_reference=sale.receipt_number,
                     changes={'total': str(sale.total), 'items': sale.items.count()})

    if not data['complete']:
        return Response(TransactionSerializer(sale).data, status=status.HTTP_201_CREATED)

    ok, payload = services.complete_transaction(sale, user=request.user, request=request)
    sale.refresh_from_db()
    payload['transaction'] = TransactionSerializer(sale).data
    return Response(payload, status=status.HTTP_201_CREATED if ok else status.HTTP_400_BAD_REQUEST)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def transaction_detail(request, pk):
    sale = get_object_or_404(Transaction.objects.select_related('store').prefetch_related('items'), pk=pk)
    return Response(TransactionSerializer(sale).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def transaction_complete(request, pk):
    """Deduct inventory and mark the sale completed; 400 with the validation result when stock is short"""
    if not is_cashier_user(request.user):
        return Response({'error': 'POS access required'}, status=status.HTTP_403_FORBIDDEN)
    sale = get_object_or_404(Transaction, pk=pk)
    try:
        ok, payload = services.complete_transaction(sale, user=request.user, request=request)
    except Exception as e:
        logger.error(f"Completing transaction {pk} failed: {str(e)}", exc_info=True)
        return Response({'error': 'Failed to complete transaction'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
    sale.refresh_from_db()
    payload['transaction'] = TransactionSerializer(sale).data
    return Response(payload, status=status.HTTP_200_OK if ok else status.HTTP_400_BAD_REQUEST)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def transaction_void(request, pk):
    """Void a sale (managers only); completed sales get their inventory back"""
    if not is_manager_user(request.user):
        return Response({'error': 'Only managers can void transactions'}, status=status.HTTP_403_FORBIDDEN)
    sale = get_object_or_404(Transaction, pk=pk)
    ok, payload = services.void_transaction(sale, user=request.user, reason=request.data.get('reason', ''),
                                            request=request)
    sale.refresh_from_db()
    payload['transaction'] = TransactionSerializer(sale).data
    return Response(payload, status=status.HTTP_200_OK if ok else status.HTTP_400_BAD_REQUEST)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def transaction_sync_status(request, pk):
    """Compare what the sale should have deducted with the recorded movements"""
    sale = get_object_or_404(Transaction, pk=pk)
    return Response({
        'sync': InventorySyncMonitor().validate_transaction_sync(sale),
        'completion': TransactionValidator().validate_transaction_completion(sale),
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def transaction_totals_preview(request):
    """?subtotal=&discount_type=&discount_amount=&store= : totals without saving anything"""
    try:
        subtotal = request.query_params['subtotal']
        config = None
        if request.query_params.get('store'):
            store = get_object_or_404(Store, pk=request.query_params['store'])
            config = services.get_compliance_config(store)
        totals = services.compute_totals(
            subtotal, request.query_params.get('discount_type', 'none'),
            request.query_params.get('discount_amount'), config,
        )
    except KeyError:
        return Response({'error': 'subtotal is required'}, status=status.HTTP_400_BAD_REQUEST)
    except ArithmeticError:
        return Response({'error': 'Amounts must be numbers'}, status=status.HTTP_400_BAD_REQUEST)
    except services.TransactionError as e:
        return Response({'error': e.message}, status=status.HTTP_400_BAD_REQUEST)
    return Response({key: str(value) for key, value in totals.items()})
