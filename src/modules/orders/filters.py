import django_filters

from modules.orders.constants import OrderOrigin
from modules.orders.models import Order


class OrderFilter(django_filters.FilterSet):
    status = django_filters.CharFilter(field_name="status", lookup_expr="iexact")
    brand = django_filters.UUIDFilter(field_name="brand_id")
    supplier = django_filters.UUIDFilter(field_name="supplier_id")
    origin = django_filters.ChoiceFilter(field_name="origin", choices=OrderOrigin.choices)
    start_date = django_filters.DateFilter(field_name="created_at", lookup_expr="gte")
    end_date = django_filters.DateFilter(field_name="created_at", lookup_expr="lte")
    deadline_before = django_filters.DateFilter(
        field_name="delivery_deadline", lookup_expr="lte"
    )
    min_total = django_filters.NumberFilter(field_name="total_value", lookup_expr="gte")
    max_total = django_filters.NumberFilter(field_name="total_value", lookup_expr="lte")

    class Meta:
        model = Order
        fields = [
            "status",
            "brand",
            "supplier",
            "origin",
            "start_date",
            "end_date",
            "deadline_before",
            "min_total",
            "max_total",
        ]
