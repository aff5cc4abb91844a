import django_filters
from django.db.models import Q
from .models import Category, ProductCatalog


class CategoryFilter(django_filters.FilterSet):
    store = django_filters.NumberFilter(field_name='store_id')
    is_active = django_filters.BooleanFilter(field_name='is_active')

    class Meta:
        model = Category
        fields = ['store', 'is_active']


class ProductCatalogFilter(django_filters.FilterSet):
    """Filter catalog products by store, category, availability and name search"""
    store = django_filters.NumberFilter(field_name='store_id')
    category = django_filters.NumberFilter(field_name='category_id')
    is_available = django_filters.BooleanFilter(field_name='is_available')
    has_recipe = django_filters.BooleanFilter(field_name='recipe', lookup_expr='isnull', exclude=True)
    search = django_filters.CharFilter(method='filter_search', label='Search')

    class Meta:
        model = ProductCatalog
        fields = ['store', 'category', 'is_available', 'has_recipe', 'search']

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        # every word must appear somewhere in the name or description
        for word in value.split():
            queryset = queryset.filter(Q(product_name__icontains=word) | Q(description__icontains=word))
        return queryset
