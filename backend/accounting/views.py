import logging
from datetime import datetime
from django.db.models.deletion import ProtectedError
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from backend.core.utils import create_audit_log, is_admin_user
from backend.locations.models import Store
from . import ledger
from .filters import ChartOfAccountFilter, JournalEntryFilter
from .models import ChartOfAccount, FiscalPeriod, JournalEntry
from .serializers import ChartOfAccountSerializer, FiscalPeriodSerializer, JournalEntrySerializer

logger = logging.getLogger('backend.accounting')


def _forbidden():
    return Response({'error': 'Only Admin users can access accounting'}, status=status.HTTP_403_FORBIDDEN)


def _parse_date(value):
    return datetime.strptime(value, '%Y-%m-%d').date() if value else None


def _date_range(request):
    """(date_from, date_to, store) from query params; raises ValueError on bad dates"""
    store = None
    if request.query_params.get('store'):
        store = get_object_or_404(Store, pk=request.query_params['store'])
    return _parse_date(request.query_params.get('date_from')), _parse_date(request.query_params.get('date_to')), store


# Chart of accounts
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def account_list_create(request):
    if not is_admin_user(request.user):
        return _forbidden()
    if request.method == 'GET':
        filterset = ChartOfAccountFilter(request.query_params, queryset=ChartOfAccount.objects.all())
        return Response(ChartOfAccountSerializer(filterset.qs, many=True).data)

    serializer = ChartOfAccountSerializer(data=request.data)
    if serializer.is_valid():
        account = serializer.save()
        create_audit_log(request=request, action='create', model_name='ChartOfAccount',
                         object_id=account.id, object_name=str(account))
        return Response(ChartOfAccountSerializer(account).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def account_detail(request, pk):
    """Retrieve or update an account; DELETE removes unused accounts and deactivates used ones"""
    if not is_admin_user(request.user):
        return _forbidden()
    account = get_object_or_404(ChartOfAccount, pk=pk)

    if request.method == 'GET':
        return Response(ChartOfAccountSerializer(account).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = ChartOfAccountSerializer(account, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        account.delete()
    except ProtectedError:
        account.is_active = False
        account.save(update_fields=['is_active', 'updated_at'])
        return Response({'status': 'deactivated', 'detail': 'Account has journal lines and was deactivated'})
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def account_ledger(request, pk):
    """General ledger for one account (?date_from, ?date_to, ?store)"""
    if not is_admin_user(request.user):
        return _forbidden()
    account = get_object_or_404(ChartOfAccount, pk=pk)
    try:
        date_from, date_to, store = _date_range(request)
    except ValueError:
        return Response({'error': 'Dates must be YYYY-MM-DD'}, status=status.HTTP_400_BAD_REQUEST)
    return Response(ledger.general_ledger(account, date_from, date_to, store))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def trial_balance(request):
    if not is_admin_user(request.user):
        return _forbidden()
    try:
        date_from, date_to, store = _date_range(request)
    except ValueError:
        return Response({'error': 'Dates must be YYYY-MM-DD'}, status=status.HTTP_400_BAD_REQUEST)
    return Response(ledger.trial_balance(date_from, date_to, store))


# Journal entries
def _entry_fields(data):
    return {
        name: data[name]
        for name in ('entry_date', 'reference_number', 'description', 'store', 'notes', 'is_adjusting_entry')
        if name in data
    }


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def journal_entry_list_create(request):
    """
    List journal entries or create a draft. Body carries nested "lines";
    with "post": true the entry is posted straight away.
    """
    if not is_admin_user(request.user):
        return _forbidden()
    if request.method == 'GET':
        queryset = JournalEntry.objects.select_related('store', 'created_by').prefetch_related('lines__account')
        filterset = JournalEntryFilter(request.query_params, queryset=queryset)
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
        return Response(JournalEntrySerializer(filterset.qs, many=True).data)

    serializer = JournalEntrySerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data
    try:
        entry = ledger.save_journal_entry(data['lines'], user=request.user, **_entry_fields(data))
        if request.data.get('post') is True:
            entry = ledger.post_entry(entry, user=request.user)
    except ledger.LedgerError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    create_audit_log(request=request, action='create', model_name='JournalEntry', object_id=entry.id,
                     object_name=entry.journal_number, object_reference=entry.reference_number or None,
                     changes={'total': str(entry.total_debit), 'status': entry.status})
    return Response(JournalEntrySerializer(entry).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def journal_entry_detail(request, pk):
    """Retrieve an entry; drafts can be replaced or deleted, posted entries cannot"""
    if not is_admin_user(request.user):
        return _forbidden()
    entry = get_object_or_404(JournalEntry, pk=pk)

    if request.method == 'GET':
        return Response(JournalEntrySerializer(entry).data)

    if entry.status != 'draft':
        return Response({'error': f"{entry.status.capitalize()} entries cannot be changed"},
                        status=status.HTTP_400_BAD_REQUEST)

    if request.method == 'DELETE':
        create_audit_log(request=request, action='delete', model_name='JournalEntry', object_id=entry.id,
                         object_name=entry.journal_number)
        entry.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)

    serializer = JournalEntrySerializer(entry, data=request.data, partial=request.method == 'PATCH')
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data
    lines = data.get('lines')
    if lines is None:
        lines = [
            {'account': line.account, 'description': line.description,
             'debit_amount': line.debit_amount, 'credit_amount': line.credit_amount}
            for line in entry.lines.select_related('account')
        ]
    try:
        entry = ledger.save_journal_entry(lines, user=request.user, entry=entry, **_entry_fields(data))
    except ledger.LedgerError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    create_audit_log(request=request, action='update', model_name='JournalEntry', object_id=entry.id,
                     object_name=entry.journal_number)
    return Response(JournalEntrySerializer(entry).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def journal_entry_post(request, pk):
    if not is_admin_user(request.user):
        return _forbidden()
    entry = get_object_or_404(JournalEntry, pk=pk)
    try:
        entry = ledger.post_entry(entry, user=request.user)
    except ledger.LedgerError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    create_audit_log(request=request, action='journal_post', model_name='JournalEntry', object_id=entry.id,
                     object_name=entry.journal_number, changes={'total': str(entry.total_debit)})
    return Response(JournalEntrySerializer(entry).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def journal_entry_void(request, pk):
    if not is_admin_user(request.user):
        return _forbidden()
    entry = get_object_or_404(JournalEntry, pk=pk)
    reason = request.data.get('reason', '')
    try:
        entry = ledger.void_entry(entry, reason=reason)
    except ledger.LedgerError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    create_audit_log(request=request, action='update', model_name='JournalEntry', object_id=entry.id,
                     object_name=entry.journal_number, changes={'status': 'void', 'reason': reason})
    return Response(JournalEntrySerializer(entry).data)


# Fiscal periods
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def period_list_create(request):
    if not is_admin_user(request.user):
        return _forbidden()
    if request.method == 'GET':
        periods = FiscalPeriod.objects.select_related('closed_by')
        if request.query_params.get('year'):
            periods = periods.filter(period_year=request.query_params['year'])
        return Response(FiscalPeriodSerializer(periods, many=True).data)

    serializer = FiscalPeriodSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    try:
        period = ledger.create_period(serializer.validated_data['period_year'],
                                      serializer.validated_data['period_month'])
    except ledger.LedgerError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    return Response(FiscalPeriodSerializer(period).data, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def period_close(request, pk):
    if not is_admin_user(request.user):
        return _forbidden()
    period = get_object_or_404(FiscalPeriod, pk=pk)
    try:
        period = ledger.close_period(period, user=request.user)
    except ledger.LedgerError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    create_audit_log(request=request, action='period_close', model_name='FiscalPeriod', object_id=period.id,
                     object_name=period.period_name)
    return Response(FiscalPeriodSerializer(period).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def period_reopen(request, pk):
    if not is_admin_user(request.user):
        return _forbidden()
    period = get_object_or_404(FiscalPeriod, pk=pk)
    try:
        period = ledger.reopen_period(period)
    except ledger.LedgerError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    create_audit_log(request=request, action='update', model_name='FiscalPeriod', object_id=period.id,
                     object_name=period.period_name, changes={'is_closed': False})
    return Response(FiscalPeriodSerializer(period).data)
