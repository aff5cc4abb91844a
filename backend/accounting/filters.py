import django_filters
from django.db.models import Q
from .models import ChartOfAccount, JournalEntry


class ChartOfAccountFilter(django_filters.FilterSet):
    account_type = django_filters.CharFilter(field_name='account_type')
    is_active = django_filters.BooleanFilter(field_name='is_active')
    search = django_filters.CharFilter(method='filter_search')

    class Meta:
        model = ChartOfAccount
        fields = ['account_type', 'is_active', 'search']

    def filter_search(self, queryset, name, value):
        return queryset.filter(Q(account_code__icontains=value) | Q(account_name__icontains=value))


class JournalEntryFilter(django_filters.FilterSet):
    status = django_filters.CharFilter(field_name='status')
    store = django_filters.NumberFilter(field_name='store_id')
    fiscal_period = django_filters.CharFilter(field_name='fiscal_period')
    account = django_filters.NumberFilter(field_name='lines__account_id', distinct=True)
    date_from = django_filters.DateFilter(field_name='entry_date', lookup_expr='gte')
    date_to = django_filters.DateFilter(field_name='entry_date', lookup_expr='lte')
    search = django_filters.CharFilter(method='filter_search')

    class Meta:
        model = JournalEntry
        fields = ['status', 'store', 'fiscal_period', 'account', 'date_from', 'date_to', 'search']

    def filter_search(self, queryset, name, value):
        return queryset.filter(
            Q(journal_number__icontains=value) |
            Q(description__icontains=value) |
            Q(reference_number__icontains=value)
        )
