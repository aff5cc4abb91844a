import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from django.db import IntegrityError, transaction
from django.core.cache import cache
from backend.core.cache_utils import get_store_list_cache_key, STORE_LIST_CACHE_TTL
from backend.core.utils import create_audit_log, is_admin_user
from .models import Store
from .serializers import StoreSerializer

logger = logging.getLogger('backend.locations')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def store_list_create(request):
    """List active stores (cached) or create a new store (admin only)"""
    try:
        if request.method == 'GET':
            include_inactive = request.query_params.get('include_inactive', '').lower() == 'true'
            scope = 'all' if include_inactive else 'active'

            cache_key = get_store_list_cache_key(scope)
            cached_data = cache.get(cache_key)
            if cached_data is not None:
                logger.debug(f"Cache hit for store list ({scope})")
                return Response(cached_data)

            stores = Store.objects.all()
            if not include_inactive:
                stores = stores.filter(is_active=True)
            response_data = StoreSerializer(stores, many=True).data
            cache.set(cache_key, response_data, STORE_LIST_CACHE_TTL)
            return Response(response_data)

        if not is_admin_user(request.user):
            logger.warning(f"User {request.user.username} attempted to create store without admin privileges")
            return Response({'error': 'Only administrators can create stores'}, status=status.HTTP_403_FORBIDDEN)

        serializer = StoreSerializer(data=request.data)
        if not serializer.is_valid():
            logger.warning(f"Store creation validation failed: {serializer.errors}")
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            with transaction.atomic():
                store = serializer.save()
        except IntegrityError as e:
            logger.error(f"IntegrityError creating store: {str(e)}", exc_info=True)
            return Response({'error': 'A store with this code already exists'}, status=status.HTTP_400_BAD_REQUEST)

        logger.info(f"Store '{store.name}' created by {request.user.username}")
        create_audit_log(request=request, action='create', model_name='Store',
                         object_id=store.id, object_name=store.name, object_reference=store.code)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    except Exception as e:
        logger.error(f"Unexpected error in store_list_create: {str(e)}", exc_info=True)
        return Response({'error': 'An unexpected error occurred'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def store_detail(request, pk):
    """Retrieve, update or deactivate a store (update/delete requires admin)"""
    store = get_object_or_404(Store, pk=pk)

    if request.method == 'GET':
        return Response(StoreSerializer(store).data)

    if not is_admin_user(request.user):
        logger.warning(f"User {request.user.username} attempted to modify store {pk} without admin privileges")
        return Response({'error': 'Only administrators can modify stores'}, status=status.HTTP_403_FORBIDDEN)

    if request.method in ('PUT', 'PATCH'):
        serializer = StoreSerializer(store, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            logger.info(f"Store {pk} updated by {request.user.username}")
            create_audit_log(request=request, action='update', model_name='Store',
                             object_id=store.id, object_name=store.name,
                             changes=dict(request.data))
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    # Stores own sales and stock history, so delete only deactivates
    store.is_active = False
    store.save(update_fields=['is_active', 'updated_at'])
    logger.info(f"Store {pk} ({store.name}) deactivated by {request.user.username}")
    create_audit_log(request=request, action='delete', model_name='Store',
                     object_id=store.id, object_name=store.name)
    return Response(status=status.HTTP_204_NO_CONTENT)
