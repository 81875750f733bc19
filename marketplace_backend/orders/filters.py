import django_filters

from orders.models import Order


class OrderFilter(django_filters.FilterSet):
    status = django_filters.MultipleChoiceFilter(choices=Order.Status.choices)
    created_after = django_filters.IsoDateTimeFilter(field_name="created_at", lookup_expr="gte")
    created_before = django_filters.IsoDateTimeFilter(field_name="created_at", lookup_expr="lte")
    order_number = django_filters.CharFilter(lookup_expr="iexact")

    class Meta:
        model = Order
        fields = ["status", "created_after", "created_before", "order_number"]
