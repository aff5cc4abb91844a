import logging
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from backend.core.utils import create_audit_log, is_manager_user
from backend.locations.models import Store
from .availability import product_availability, store_availability
from .filters import CategoryFilter, ProductCatalogFilter
from .models import Category, ProductCatalog
from .serializers import CategorySerializer, ProductCatalogSerializer

logger = logging.getLogger('backend.catalog')


def _forbidden():
    return Response({'error': 'Only managers can change the catalog'}, status=status.HTTP_403_FORBIDDEN)


# Category views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def category_list_create(request):
    """List categories (?store, ?is_active) or create a new category"""
    if request.method == 'GET':
        filterset = CategoryFilter(request.query_params, queryset=Category.objects.select_related('store'))
        return Response(CategorySerializer(filterset.qs, many=True).data)

    if not is_manager_user(request.user):
        return _forbidden()
    serializer = CategorySerializer(data=request.data)
    if serializer.is_valid():
        category = serializer.save()
        create_audit_log(request=request, action='create', model_name='Category',
                         object_id=category.id, object_name=category.name)
        return Response(CategorySerializer(category).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def category_detail(request, pk):
    """Retrieve, update or delete a category"""
    category = get_object_or_404(Category, pk=pk)

    if request.method == 'GET':
        return Response(CategorySerializer(category).data)

    if not is_manager_user(request.user):
        return _forbidden()

    if request.method in ('PUT', 'PATCH'):
        serializer = CategorySerializer(category, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    # products keep existing without a category
    create_audit_log(request=request, action='delete', model_name='Category',
                     object_id=category.id, object_name=category.name)
    category.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


# Product catalog views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def product_list_create(request):
    """
    List catalog products or create one.

    Filters: ?store, ?category, ?is_available, ?has_recipe, ?search.
    With ?with_availability=true each product carries its current servings and status.
    """
    if request.method == 'GET':
        queryset = ProductCatalog.objects.select_related('store', 'category', 'recipe')
        filterset = ProductCatalogFilter(request.query_params, queryset=queryset)
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
        products = list(filterset.qs)
        data = ProductCatalogSerializer(products, many=True).data
        if request.query_params.get('with_availability', '').lower() == 'true':
            for row, availability in zip(data, store_availability(products)):
                row['availability'] = availability
        return Response(data)

    if not is_manager_user(request.user):
        return _forbidden()
    serializer = ProductCatalogSerializer(data=request.data)
    if serializer.is_valid():
        product = serializer.save()
        logger.info(f"Catalog product '{product.product_name}' added to store {product.store_id}")
        create_audit_log(request=request, action='create', model_name='ProductCatalog',
                         object_id=product.id, object_name=product.product_name)
        return Response(ProductCatalogSerializer(product).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def product_detail(request, pk):
    """Retrieve, update or delete a catalog product"""
    product = get_object_or_404(ProductCatalog, pk=pk)

    if request.method == 'GET':
        return Response(ProductCatalogSerializer(product).data)

    if not is_manager_user(request.user):
        return _forbidden()

    if request.method in ('PUT', 'PATCH'):
        old_price = product.price
        serializer = ProductCatalogSerializer(product, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            product = serializer.save()
            changes = {}
            if product.price != old_price:
                changes['price'] = {'old': str(old_price), 'new': str(product.price)}
            create_audit_log(request=request, action='update', model_name='ProductCatalog',
                             object_id=product.id, object_name=product.product_name, changes=changes)
            return Response(ProductCatalogSerializer(product).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    create_audit_log(request=request, action='delete', model_name='ProductCatalog',
                     object_id=product.id, object_name=product.product_name)
    product.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def product_availability_detail(request, pk):
    product = get_object_or_404(ProductCatalog.objects.select_related('store', 'recipe'), pk=pk)
    return Response(product_availability(product))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def store_product_availability(request, store_id):
    """Availability for every available product of a store (?status to filter)"""
    store = get_object_or_404(Store, pk=store_id)
    products = ProductCatalog.objects.filter(store=store, is_available=True).select_related('store', 'recipe')
    rows = store_availability(products)
    wanted = request.query_params.get('status')
    if wanted:
        rows = [row for row in rows if row['status'] == wanted]
    summary = {}
    for row in rows:
        summary[row['status']] = summary.get(row['status'], 0) + 1
    return Response({'store': store.id, 'summary': summary, 'products': rows})
