from rest_framework import serializers
from .models import ChartOfAccount, FiscalPeriod, JournalEntry, JournalEntryLine


class ChartOfAccountSerializer(serializers.ModelSerializer):
    class Meta:
        model = ChartOfAccount
        fields = ['id', 'account_code', 'account_name', 'account_type', 'account_subtype', 'description',
                  'is_active', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def validate_account_code(self, value):
        return value.strip()


class JournalEntryLineSerializer(serializers.ModelSerializer):
    account_code = serializers.CharField(source='account.account_code', read_only=True)
    account_name = serializers.CharField(source='account.account_name', read_only=True)

    class Meta:
        model = JournalEntryLine
        fields = ['id', 'line_number', 'account', 'account_code', 'account_name', 'description',
                  'debit_amount', 'credit_amount']
        read_only_fields = ['line_number']


class JournalEntrySerializer(serializers.ModelSerializer):
    lines = JournalEntryLineSerializer(many=True)
    store_name = serializers.CharField(source='store.name', read_only=True, default=None)
    created_by_name = serializers.CharField(source='created_by.username', read_only=True, default=None)

    class Meta:
        model = JournalEntry
        fields = ['id', 'journal_number', 'entry_date', 'reference_number', 'description', 'total_debit',
                  'total_credit', 'store', 'store_name', 'status', 'notes', 'is_adjusting_entry',
                  'fiscal_period', 'lines', 'created_by', 'created_by_name', 'created_at', 'updated_at',
                  'posted_at', 'posted_by']
        read_only_fields = ['journal_number', 'total_debit', 'total_credit', 'status', 'fiscal_period',
                            'created_by', 'created_at', 'updated_at', 'posted_at', 'posted_by']


class FiscalPeriodSerializer(serializers.ModelSerializer):
    period_key = serializers.CharField(read_only=True)
    closed_by_name = serializers.CharField(source='closed_by.username', read_only=True, default=None)

    class Meta:
        model = FiscalPeriod
        fields = ['id', 'period_year', 'period_month', 'period_key', 'period_name', 'start_date', 'end_date',
                  'is_closed', 'closed_at', 'closed_by', 'closed_by_name', 'created_at']
        read_only_fields = ['period_name', 'start_date', 'end_date', 'is_closed', 'closed_at', 'closed_by',
                            'created_at']
