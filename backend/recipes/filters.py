import django_filters
from django.db.models import Q
from .models import RecipeTemplate, Recipe


class RecipeTemplateFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method='filter_search', label='Search')
    category = django_filters.CharFilter(field_name='category_name', lookup_expr='iexact')
    is_active = django_filters.BooleanFilter(field_name='is_active')

    class Meta:
        model = RecipeTemplate
        fields = ['search', 'category', 'is_active']

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(name__icontains=value) |
            Q(description__icontains=value) |
            Q(ingredients__ingredient_name__icontains=value)
        ).distinct()


class RecipeFilter(django_filters.FilterSet):
    store = django_filters.NumberFilter(field_name='store_id')
    template = django_filters.NumberFilter(field_name='template_id')
    is_active = django_filters.BooleanFilter(field_name='is_active')
    search = django_filters.CharFilter(field_name='name', lookup_expr='icontains')
    unmapped = django_filters.BooleanFilter(method='filter_unmapped', label='Has unmapped ingredients')

    class Meta:
        model = Recipe
        fields = ['store', 'template', 'is_active', 'search', 'unmapped']

    def filter_unmapped(self, queryset, name, value):
        if value is None:
            return queryset
        unmapped_ids = queryset.filter(
            ingredients__isnull=False, ingredients__inventory_stock__isnull=True
        ).values('id')
        if value:
            return queryset.filter(id__in=unmapped_ids)
        return queryset.exclude(id__in=unmapped_ids)
