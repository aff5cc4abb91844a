import django_filters
from django.db.models import F, Q
from .models import InventoryStock, CommissaryItem, InventoryMovement


class InventoryStockFilter(django_filters.FilterSet):
    store = django_filters.NumberFilter(field_name='store_id')
    category = django_filters.CharFilter(field_name='item_category', lookup_expr='iexact')
    search = django_filters.CharFilter(field_name='item', lookup_expr='icontains')
    is_active = django_filters.BooleanFilter(field_name='is_active')
    status = django_filters.ChoiceFilter(
        choices=[('out', 'Out'), ('low', 'Low'), ('good', 'Good')], method='filter_status'
    )

    class Meta:
        model = InventoryStock
        fields = ['store', 'category', 'search', 'is_active', 'status']

    def filter_status(self, queryset, name, value):
        # matches InventoryStock.stock_status
        serving_ready = Q(serving_ready_quantity__isnull=False)
        plain = Q(serving_ready_quantity__isnull=True)
        out = (serving_ready & Q(serving_ready_quantity__lte=0)) | (plain & Q(stock_quantity__lte=0))
        at_or_below = (
            (serving_ready & Q(serving_ready_quantity__lte=F('minimum_threshold'))) |
            (plain & Q(stock_quantity__lte=F('minimum_threshold')))
        )
        if value == 'out':
            return queryset.filter(out)
        if value == 'low':
            return queryset.filter(at_or_below).exclude(out)
        return queryset.exclude(at_or_below).exclude(out)


class CommissaryItemFilter(django_filters.FilterSet):
    category = django_filters.CharFilter(field_name='category')
    search = django_filters.CharFilter(field_name='name', lookup_expr='icontains')
    is_active = django_filters.BooleanFilter(field_name='is_active')
    low_stock = django_filters.BooleanFilter(method='filter_low_stock')

    class Meta:
        model = CommissaryItem
        fields = ['category', 'search', 'is_active', 'low_stock']

    def filter_low_stock(self, queryset, name, value):
        if value:
            return queryset.filter(current_stock__lte=F('minimum_threshold'))
        return queryset


class InventoryMovementFilter(django_filters.FilterSet):
    store = django_filters.NumberFilter(field_name='inventory_stock__store_id')
    stock = django_filters.NumberFilter(field_name='inventory_stock_id')
    movement_type = django_filters.CharFilter(field_name='movement_type')
    reference_type = django_filters.CharFilter(field_name='reference_type')
    reference_id = django_filters.CharFilter(field_name='reference_id')
    date_from = django_filters.DateFilter(field_name='created_at', lookup_expr='date__gte')
    date_to = django_filters.DateFilter(field_name='created_at', lookup_expr='date__lte')

    class Meta:
        model = InventoryMovement
        fields = ['store', 'stock', 'movement_type', 'reference_type', 'reference_id', 'date_from', 'date_to']
