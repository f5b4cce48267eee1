import django_filters
from django.db.models import Q
from .models import Product


class ProductFilter(django_filters.FilterSet):
    """Filter for Product list using django-filter"""

    # Searches across name, SKU, barcode, description and category
    search = django_filters.CharFilter(method='filter_search', label='Search')

    category = django_filters.NumberFilter(field_name='category_id', lookup_expr='exact')
    unit = django_filters.CharFilter(field_name='unit_of_measure', lookup_expr='iexact')
    active = django_filters.CharFilter(method='filter_active', label='Active')

    # Stock status filters
    low_stock = django_filters.CharFilter(method='filter_low_stock', label='Low Stock')
    out_of_stock = django_filters.CharFilter(method='filter_out_of_stock', label='Out of Stock')

    class Meta:
        model = Product
        fields = ['search', 'category', 'unit', 'active', 'low_stock', 'out_of_stock']

    @staticmethod
    def _is_true(value):
        return str(value).lower() in ('true', '1', 'yes')

    def filter_search(self, queryset, name, value):
        search = (value or '').strip()
        if not search:
            return queryset
        return queryset.filter(
            Q(name__icontains=search) |
            Q(sku__icontains=search) |
            Q(barcode__icontains=search) |
            Q(description__icontains=search) |
            Q(category__name__icontains=search)
        )

    def filter_active(self, queryset, name, value):
        if value in (None, ''):
            return queryset
        return queryset.filter(is_active=self._is_true(value))

    def filter_low_stock(self, queryset, name, value):
        if self._is_true(value):
            return queryset.low_stock()
        return queryset

    def filter_out_of_stock(self, queryset, name, value):
        if self._is_true(value):
            return queryset.out_of_stock()
        return queryset
