import django_filters
from django.db.models import Q

from modules.pricing.dtos import normalize_region
from modules.products.models import Product


class ProductFilter(django_filters.FilterSet):
    name = django_filters.CharFilter(field_name="name", lookup_expr="icontains")
    sku = django_filters.CharFilter(field_name="sku", lookup_expr="iexact")
    category = django_filters.CharFilter(field_name="category", lookup_expr="iexact")
    subcategory = django_filters.CharFilter(
        field_name="subcategory", lookup_expr="iexact"
    )
    seller = django_filters.UUIDFilter(field_name="seller_id")
    first_party = django_filters.BooleanFilter(field_name="is_admin_product")
    min_price = django_filters.NumberFilter(field_name="price", lookup_expr="gte")
    max_price = django_filters.NumberFilter(field_name="price", lookup_expr="lte")
    in_stock = django_filters.BooleanFilter(method="filter_in_stock")
    ships_to = django_filters.CharFilter(method="filter_ships_to")

    class Meta:
        model = Product
        fields = [
            "name",
            "sku",
            "category",
            "subcategory",
            "seller",
            "first_party",
            "min_price",
            "max_price",
            "in_stock",
            "ships_to",
        ]

    def filter_in_stock(self, queryset, name, value):
        if value is None:
            return queryset
        if value:
            return queryset.filter(stock_quantity__gt=0)
        return queryset.filter(stock_quantity=0)

    def filter_ships_to(self, queryset, name, value):
        # Same rule as modules.pricing.eligibility, expressed as a query.
        state = normalize_region(value)
        if not state:
            return queryset
        return queryset.filter(
            Q(is_admin_product=True)
            | (Q(seller__isnull=False) & ~Q(seller__gstin=""))
            | Q(seller__state=state)
        )
