import django_filters
from django.db.models import Q
from .models import Shipment


class ShipmentFilter(django_filters.FilterSet):
    # Comma-separated IN lookups, e.g. ?status=pending,booked
    class CharInFilter(django_filters.BaseInFilter, django_filters.CharFilter):
        pass

    status = CharInFilter(lookup_expr='in')
    payment_status = CharInFilter(lookup_expr='in')
    kind = django_filters.ChoiceFilter(choices=Shipment.Kind.choices)
    created_after = django_filters.IsoDateTimeFilter(field_name='created_at', lookup_expr='gte')
    created_before = django_filters.IsoDateTimeFilter(field_name='created_at', lookup_expr='lte')
    search = django_filters.CharFilter(method='filter_search')

    class Meta:
        model = Shipment
        fields = ['status', 'payment_status', 'kind', 'driver', 'container']

    def filter_search(self, queryset, name, value):
        if not value:
            return queryset
        return queryset.filter(
            Q(tracking_number__icontains=value) |
            Q(receiver_name__icontains=value) |
            Q(owner__email__icontains=value)
        )
