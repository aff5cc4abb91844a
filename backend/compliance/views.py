import logging
from decimal import Decimal, InvalidOperation
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from backend.core.utils import create_audit_log, is_admin_user
from backend.locations.models import Store
from . import services
from .models import StoreComplianceSettings

logger = logging.getLogger('backend.compliance')


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def store_compliance(request, store_id):
    """
    GET: effective BIR config for the store plus its compliance status.
    PUT/PATCH: merge the given keys into the stored config (admin only).
    DELETE: reset the store to the defaults (admin only).
    """
    store = get_object_or_404(Store, pk=store_id)

    if request.method == 'GET':
        config = services.get_compliance_config(store)
        return Response({
            'store': store.id,
            'store_name': store.name,
            'config': config,
            'compliance': services.get_compliance_status(store, config),
        })

    if not is_admin_user(request.user):
        return Response({'error': 'Only administrators can change compliance settings'},
                        status=status.HTTP_403_FORBIDDEN)

    if request.method == 'DELETE':
        StoreComplianceSettings.objects.filter(store=store).delete()
        logger.info(f"Compliance settings for store {store.id} reset to defaults by {request.user.username}")
        create_audit_log(request=request, action='compliance_update', model_name='StoreComplianceSettings',
                         object_id=store.id, object_name=store.name, changes={'reset': True})
        return Response({'store': store.id, 'config': services.merge_with_defaults(None)})

    values = request.data.get('config', request.data)
    if not isinstance(values, dict):
        return Response({'error': 'Expected an object of compliance settings'}, status=status.HTTP_400_BAD_REQUEST)
    values = dict(values)
    errors = services.validate_config(values)
    if errors:
        return Response(errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        config = services.save_compliance_config(store, values, user=request.user)
    except Exception as e:
        logger.error(f"Error saving compliance settings for store {store.id}: {str(e)}", exc_info=True)
        return Response({'error': 'Failed to save compliance settings'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    create_audit_log(request=request, action='compliance_update', model_name='StoreComplianceSettings',
                     object_id=store.id, object_name=store.name, changes=values)
    return Response({
        'store': store.id,
        'config': config,
        'compliance': services.get_compliance_status(store, config),
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def compliance_overview(request):
    """Compliance status for every active store"""
    results = []
    for store in Store.objects.filter(is_active=True):
        result = services.get_compliance_status(store)
        result.update({'store': store.id, 'store_name': store.name})
        results.append(result)
    summary = {
        key: sum(1 for r in results if r['status'] == key)
        for key in ('compliant', 'warning', 'error')
    }
    return Response({'stores': results, 'summary': summary})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def compliance_defaults(request):
    return Response(services.DEFAULT_BIR_CONFIG)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def vat_calculator(request):
    """VAT-inclusive breakdown and optional discount check for an amount"""
    try:
        amount = Decimal(str(request.data.get('amount', '0')))
        discount = Decimal(str(request.data.get('discount_amount', '0')))
    except (InvalidOperation, ValueError):
        return Response({'error': 'amount and discount_amount must be numbers'}, status=status.HTTP_400_BAD_REQUEST)

    config = services.DEFAULT_BIR_CONFIG
    store_id = request.data.get('store')
    if store_id:
        config = services.get_compliance_config(get_object_or_404(Store, pk=store_id))

    breakdown = services.vat_breakdown(amount - discount, config['vat_rate'])
    return Response({
        'amount': str(amount),
        'discount_amount': str(discount),
        'vat_rate': config['vat_rate'],
        'vatable_sales': str(breakdown['vatable_sales']),
        'vat_amount': str(breakdown['vat_amount']),
        'discount_error': services.validate_discount(amount, discount, config),
    })
