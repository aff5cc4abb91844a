import logging
from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from backend.core.utils import create_audit_log, is_admin_user, is_manager_user
from backend.locations.models import Store
from . import csv_io
from .deployment import clear_recipe_data, deploy_templates
from .filters import RecipeFilter, RecipeTemplateFilter
from .matching import find_ingredient_matches
from .models import Recipe, RecipeIngredient, RecipeTemplate
from .serializers import (
    DeploymentRequestSerializer, RecipeIngredientSerializer,
    RecipeSerializer, RecipeTemplateSerializer,
)

logger = logging.getLogger('backend.recipes')


def _forbidden(message='Only managers can change recipe data'):
    return Response({'error': message}, status=status.HTTP_403_FORBIDDEN)


# Recipe template views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def template_list_create(request):
    """List recipe templates (filterable) or create one with nested ingredients"""
    if request.method == 'GET':
        queryset = RecipeTemplate.objects.select_related('created_by').prefetch_related(
            'ingredients', 'ingredients__commissary_item'
        )
        if 'is_active' not in request.query_params:
            queryset = queryset.filter(is_active=True)
        filterset = RecipeTemplateFilter(request.query_params, queryset=queryset)
        return Response(RecipeTemplateSerializer(filterset.qs, many=True).data)

    if not is_manager_user(request.user):
        return _forbidden()
    serializer = RecipeTemplateSerializer(data=request.data)
    if serializer.is_valid():
        template = serializer.save(created_by=request.user)
        logger.info(f"Recipe template '{template.name}' created by {request.user.username}")
        create_audit_log(request=request, action='create', model_name='RecipeTemplate',
                         object_id=template.id, object_name=template.name)
        return Response(RecipeTemplateSerializer(template).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def template_detail(request, pk):
    """Retrieve, update or deactivate a recipe template"""
    template = get_object_or_404(RecipeTemplate, pk=pk)

    if request.method == 'GET':
        return Response(RecipeTemplateSerializer(template).data)

    if not is_manager_user(request.user):
        return _forbidden()

    if request.method in ('PUT', 'PATCH'):
        serializer = RecipeTemplateSerializer(template, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            template = serializer.save()
            create_audit_log(request=request, action='update', model_name='RecipeTemplate',
                             object_id=template.id, object_name=template.name,
                             changes={'version': template.version})
            return Response(RecipeTemplateSerializer(template).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    template.is_active = False
    template.save(update_fields=['is_active', 'updated_at'])
    logger.info(f"Recipe template {pk} deactivated by {request.user.username}")
    create_audit_log(request=request, action='delete', model_name='RecipeTemplate',
                     object_id=template.id, object_name=template.name)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def template_import(request):
    """
    Import templates from CSV. Accepts a multipart 'file' upload or a 'csv'
    text field. With ?dry_run=true the parsed preview is returned and nothing is saved.
    """
    if not is_manager_user(request.user):
        return _forbidden()

    upload = request.FILES.get('file')
    if upload is not None:
        content = upload.read()
    else:
        content = request.data.get('csv', '')
    if not content:
        return Response({'error': 'Provide a CSV file or csv text'}, status=status.HTTP_400_BAD_REQUEST)

    try:
        parsed = csv_io.parse_recipe_csv(content)
    except UnicodeDecodeError:
        return Response({'error': 'CSV file must be UTF-8 encoded'}, status=status.HTTP_400_BAD_REQUEST)

    if not parsed.is_valid:
        return Response(parsed.as_dict(), status=status.HTTP_400_BAD_REQUEST)
    if request.query_params.get('dry_run', '').lower() == 'true':
        return Response(parsed.as_dict())

    summary = csv_io.import_recipe_templates(parsed.recipes, user=request.user)
    summary['warnings'] = parsed.warnings
    summary['success'] = not summary['errors']
    create_audit_log(request=request, action='recipe_import', model_name='RecipeTemplate',
                     object_id='bulk', object_name=f"{len(parsed.recipes)} recipes",
                     changes={'created': summary['created'], 'updated': summary['updated'],
                              'errors': len(summary['errors'])})
    return Response(summary, status=status.HTTP_200_OK if summary['success'] else status.HTTP_207_MULTI_STATUS)


def _csv_response(content, filename):
    response = HttpResponse(content, content_type='text/csv')
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    return response


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def template_export(request):
    """Export templates (same filters as the list) as CSV"""
    queryset = RecipeTemplate.objects.all()
    if 'is_active' not in request.query_params:
        queryset = queryset.filter(is_active=True)
    filterset = RecipeTemplateFilter(request.query_params, queryset=queryset)
    content = csv_io.export_recipe_templates(filterset.qs)
    return _csv_response(content, f"recipe_templates_{timezone.localdate():%Y%m%d}.csv")


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def template_csv_example(request):
    return _csv_response(csv_io.example_csv(), 'recipe_templates_example.csv')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def template_categories(request):
    categories = (RecipeTemplate.objects.filter(is_active=True)
                  .order_by('category_name').values_list('category_name', flat=True).distinct())
    return Response(list(categories))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def template_deploy(request):
    """Deploy templates to stores; omitted ids mean all active ones"""
    if not is_manager_user(request.user):
        return _forbidden()
    serializer = DeploymentRequestSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        result = deploy_templates(
            template_ids=serializer.validated_data.get('template_ids'),
            store_ids=serializer.validated_data.get('store_ids'),
        )
    except Exception as e:
        logger.error(f"Recipe deployment failed: {str(e)}", exc_info=True)
        return Response({'error': 'Recipe deployment failed'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    create_audit_log(request=request, action='recipe_deploy', model_name='RecipeTemplate',
                     object_id='bulk', changes={'deployed': result['deployed'],
                                                'skipped': result['skipped'],
                                                'errors': len(result['errors'])})
    return Response(result)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def template_ingredient_matches(request, pk):
    """Preview how a template's ingredients map onto a store's inventory"""
    template = get_object_or_404(RecipeTemplate, pk=pk)
    store_id = request.query_params.get('store')
    if not store_id:
        return Response({'error': 'store query parameter is required'}, status=status.HTTP_400_BAD_REQUEST)
    store = get_object_or_404(Store, pk=store_id)
    matches = find_ingredient_matches(template.ingredients.all(), store)
    return Response({
        'template': template.id,
        'store': store.id,
        'matches': matches,
        'unmatched_count': sum(1 for m in matches if m['matched_item'] is None),
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def recipes_clear(request):
    """Soft reset: unlink catalog products and deactivate all recipes and templates"""
    if not is_admin_user(request.user):
        return _forbidden('Only administrators can clear recipe data')
    if request.data.get('confirm') is not True:
        return Response({'error': 'Send {"confirm": true} to clear recipe data'}, status=status.HTTP_400_BAD_REQUEST)
    result = clear_recipe_data()
    logger.warning(f"Recipe data cleared by {request.user.username}")
    create_audit_log(request=request, action='delete', model_name='Recipe',
                     object_id='all', changes=result)
    return Response(result)


# Deployed recipe views
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def recipe_list(request):
    queryset = Recipe.objects.select_related('store', 'template').prefetch_related(
        'ingredients', 'ingredients__inventory_stock'
    )
    filterset = RecipeFilter(request.query_params, queryset=queryset)
    return Response(RecipeSerializer(filterset.qs, many=True).data)


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def recipe_detail(request, pk):
    recipe = get_object_or_404(Recipe, pk=pk)
    if request.method == 'GET':
        return Response(RecipeSerializer(recipe).data)
    if not is_manager_user(request.user):
        return _forbidden()
    serializer = RecipeSerializer(recipe, data=request.data, partial=True)
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def recipe_ingredient_mapping(request, pk, ingredient_id):
    """Map (or unmap) a recipe ingredient to a store stock item"""
    if not is_manager_user(request.user):
        return _forbidden()
    ingredient = get_object_or_404(RecipeIngredient, pk=ingredient_id, recipe_id=pk)
    serializer = RecipeIngredientSerializer(ingredient, data=request.data, partial=True)
    if serializer.is_valid():
        serializer.save()
        logger.info(f"Recipe ingredient {ingredient_id} mapped to stock {ingredient.inventory_stock_id}")
        return Response(serializer.data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
