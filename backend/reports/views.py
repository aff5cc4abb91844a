import logging
from datetime import datetime, timedelta
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from backend.core.utils import is_manager_user
from . import queries

logger = logging.getLogger('backend.reports')


def _forbidden():
    return Response({'error': 'Only managers can view reports'}, status=status.HTTP_403_FORBIDDEN)


def _period(request):
    """ISO date_from/date_to from query params; defaults to the last 30 days"""
    date_from = request.query_params.get('date_from', None)
    date_to = request.query_params.get('date_to', None)

    if not date_from:
        date_from = (timezone.now() - timedelta(days=30)).date()
    else:
        date_from = datetime.strptime(date_from, '%Y-%m-%d').date()

    if not date_to:
        date_to = timezone.now().date()
    else:
        date_to = datetime.strptime(date_to, '%Y-%m-%d').date()

    if date_from > date_to:
        raise ValueError('date_from is after date_to')
    return date_from.isoformat(), date_to.isoformat()


def _store_id(request):
    store_id = request.query_params.get('store', None)
    return int(store_id) if store_id else None


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def sales_summary(request):
    """Sales summary report"""
    if not is_manager_user(request.user):
        return _forbidden()
    try:
        date_from, date_to = _period(request)
        store_id = _store_id(request)
    except ValueError as e:
        return Response({'error': f"Invalid parameters: {str(e)}"}, status=status.HTTP_400_BAD_REQUEST)
    logger.info(f"User {request.user.username} requested sales summary (store={store_id}, {date_from}..{date_to})")
    return Response(queries.sales_summary(store_id, date_from, date_to))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def top_products(request):
    """Top selling products by quantity (default) or ?order_by=revenue"""
    if not is_manager_user(request.user):
        return _forbidden()
    try:
        date_from, date_to = _period(request)
        store_id = _store_id(request)
        limit = min(int(request.query_params.get('limit', 10)), 100)
    except ValueError as e:
        return Response({'error': f"Invalid parameters: {str(e)}"}, status=status.HTTP_400_BAD_REQUEST)
    order_by = 'revenue' if request.query_params.get('order_by') == 'revenue' else 'quantity'
    return Response({
        'period': {'from': date_from, 'to': date_to},
        'order_by': order_by,
        'products': queries.top_products(store_id, date_from, date_to, order_by=order_by, limit=limit),
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def inventory_summary(request):
    """Inventory summary report"""
    if not is_manager_user(request.user):
        return _forbidden()
    try:
        store_id = _store_id(request)
    except ValueError:
        return Response({'error': 'store must be an id'}, status=status.HTTP_400_BAD_REQUEST)
    try:
        return Response(queries.inventory_summary(store_id))
    except Exception as e:
        logger.error(f"Error generating inventory summary: {str(e)}", exc_info=True)
        return Response({'error': 'Failed to generate inventory summary'},
                        status=status.HTTP_500_INTERNAL_SERVER_ERROR)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def movement_summary(request):
    """Inventory movement totals per movement type"""
    if not is_manager_user(request.user):
        return _forbidden()
    try:
        date_from, date_to = _period(request)
        store_id = _store_id(request)
    except ValueError as e:
        return Response({'error': f"Invalid parameters: {str(e)}"}, status=status.HTTP_400_BAD_REQUEST)
    return Response(queries.movement_summary(store_id, date_from, date_to))
