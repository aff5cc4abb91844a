import django_filters
from .models import Transaction


class TransactionFilter(django_filters.FilterSet):
    store = django_filters.NumberFilter(field_name='store_id')
    status = django_filters.CharFilter(field_name='status')
    payment_method = django_filters.CharFilter(field_name='payment_method')
    discount_type = django_filters.CharFilter(field_name='discount_type')
    receipt_number = django_filters.CharFilter(field_name='receipt_number', lookup_expr='icontains')
    date_from = django_filters.DateFilter(field_name='created_at', lookup_expr='date__gte')
    date_to = django_filters.DateFilter(field_name='created_at', lookup_expr='date__lte')

    class Meta:
        model = Transaction
        fields = ['store', 'status', 'payment_method', 'discount_type', 'receipt_number', 'date_from', 'date_to']
