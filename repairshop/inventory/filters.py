import django_filters
from django.db.models import F, Q

from .models import Part


class PartFilter(django_filters.FilterSet):
    """Filters for the parts list: search, category and low stock"""
    search = django_filters.CharFilter(method='filter_search')
    category = django_filters.CharFilter(method='filter_category')
    low_stock = django_filters.BooleanFilter(method='filter_low_stock')

    class Meta:
        model = Part
        fields = ['search', 'category', 'low_stock']

    def filter_search(self, queryset, name, value):
        value = (value or '').strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(name__icontains=value) |
            Q(sku__icontains=value) |
            Q(compatibility__icontains=value)
        )

    def filter_category(self, queryset, name, value):
        if not value:
            return queryset
        return queryset.filter(Q(category=value) | Q(custom_category=value))

    def filter_low_stock(self, queryset, name, value):
        if value is None:
            return queryset
        if value:
            return queryset.filter(quantity__lte=F('minimum_stock'))
        return queryset.filter(quantity__gt=F('minimum_stock'))
