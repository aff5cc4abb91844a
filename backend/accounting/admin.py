from django.contrib import admin
from .models import ChartOfAccount, FiscalPeriod, JournalEntry, JournalEntryLine


@admin.register(ChartOfAccount)
class ChartOfAccountAdmin(admin.ModelAdmin):
    list_display = ['account_code', 'account_name', 'account_type', 'account_subtype', 'is_active']
    list_filter = ['account_type', 'is_active']
    search_fields = ['account_code', 'account_name']


class JournalEntryLineInline(admin.TabularInline):
    model = JournalEntryLine
    extra = 0


@admin.register(JournalEntry)
class JournalEntryAdmin(admin.ModelAdmin):
    list_display = ['journal_number', 'entry_date', 'description', 'total_debit', 'total_credit', 'status', 'store']
    list_filter = ['status', 'fiscal_period', 'store', 'is_adjusting_entry']
    search_fields = ['journal_number', 'description', 'reference_number']
    ordering = ['-entry_date']
    inlines = [JournalEntryLineInline]
    readonly_fields = ['journal_number', 'created_at', 'updated_at', 'posted_at']


@admin.register(FiscalPeriod)
class FiscalPeriodAdmin(admin.ModelAdmin):
    list_display = ['period_name', 'start_date', 'end_date', 'is_closed', 'closed_at', 'closed_by']
    list_filter = ['is_closed', 'period_year']
