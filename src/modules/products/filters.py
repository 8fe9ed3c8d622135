import django_filters

from modules.products.models import Product


class ProductFilter(django_filters.FilterSet):
    name = django_filters.CharFilter(field_name="name", lookup_expr="icontains")
    store = django_filters.UUIDFilter(field_name="store_id")
    category = django_filters.CharFilter(field_name="category", lookup_expr="iexact")
    min_price = django_filters.NumberFilter(field_name="price", lookup_expr="gte")
    max_price = django_filters.NumberFilter(field_name="price", lookup_expr="lte")
    visible = django_filters.BooleanFilter(field_name="is_visible")

    class Meta:
        model = Product
        fields = ["name", "store", "category", "min_price", "max_price", "visible"]
