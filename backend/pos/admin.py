from django.contrib import admin
from .models import Transaction, TransactionItem


class TransactionItemInline(admin.TabularInline):
    model = TransactionItem
    extra = 0
    raw_id_fields = ['product']


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ['receipt_number', 'store', 'status', 'discount_type', 'total', 'payment_method',
                    'created_by', 'created_at']
    list_filter = ['status', 'discount_type', 'payment_method', 'store', 'created_at']
    search_fields = ['receipt_number', 'reference']
    ordering = ['-created_at']
    inlines = [TransactionItemInline]
    readonly_fields = ['reference', 'created_at', 'updated_at', 'completed_at', 'voided_at']
