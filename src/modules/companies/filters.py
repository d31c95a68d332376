import django_filters
from django.db.models import Q

from modules.companies.models import Company, CompanyType


class CompanyFilter(django_filters.FilterSet):
    type = django_filters.ChoiceFilter(field_name="type", choices=CompanyType.choices)
    active = django_filters.BooleanFilter(field_name="is_active")
    name = django_filters.CharFilter(method="filter_name")
    state = django_filters.CharFilter(field_name="state", lookup_expr="iexact")

    class Meta:
        model = Company
        fields = ["type", "active", "name", "state"]

    def filter_name(self, queryset, name, value):
        return queryset.filter(
            Q(legal_name__icontains=value) | Q(trade_name__icontains=value)
        )
