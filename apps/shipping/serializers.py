from rest_framework import serializers
from apps.fleet.serializers import ContainerSerializer, DriverSerializer
from .models import PriceGuide, Shipment
from .services import Dimensions, PriceGuideRef


class AddressPayloadSerializer(serializers.Serializer):
    """Address stored inline on a shipment."""
    street = serializers.CharField(max_length=255)
    unit = serializers.CharField(max_length=50, required=False, allow_blank=True, allow_null=True)
    city = serializers.CharField(max_length=100)
    state = serializers.CharField(max_length=100, required=False, allow_blank=True)
    zip_code = serializers.CharField(max_length=20, required=False, allow_blank=True)
    country = serializers.CharField(max_length=100)
    latitude = serializers.FloatField(min_value=-90, max_value=90, required=False, allow_null=True)
    longitude = serializers.FloatField(min_value=-180, max_value=180, required=False, allow_null=True)


class SizePayloadSerializer(serializers.Serializer):
    length = serializers.FloatField(min_value=0, required=False)
    width = serializers.FloatField(min_value=0, required=False)
    height = serializers.FloatField(min_value=0, required=False)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError('Provide at least one of length, width or height.')
        return attrs


class CustomerInfoSerializer(serializers.Serializer):
    first_name = serializers.CharField(max_length=150)
    last_name = serializers.CharField(max_length=150, required=False, allow_blank=True)
    email = serializers.EmailField(required=False, allow_blank=True)
    phone = serializers.CharField(max_length=30, required=False, allow_blank=True)


class CustomerInfoUpdateSerializer(CustomerInfoSerializer):
    first_name = serializers.CharField(max_length=150, required=False)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError('Provide at least one customer field.')
        return attrs


class PriceGuideSerializer(serializers.ModelSerializer):
    class Meta:
        model = PriceGuide
        fields = ('id', 'guide_number', 'guide_name', 'price', 'created_at')
        read_only_fields = ('id', 'guide_number', 'created_at')

    def validate_price(self, value):
        if value < 0:
            raise serializers.ValidationError('Price cannot be negative')
        return value


class ShipmentSerializer(serializers.ModelSerializer):
    owner = serializers.EmailField(source='owner.email', read_only=True)
    driver = DriverSerializer(read_only=True)
    container = ContainerSerializer(read_only=True)
    price_guide = PriceGuideSerializer(read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = Shipment
        fields = (
            'id', 'tracking_number', 'kind', 'status', 'status_display', 'payment_status',
            'payment_method', 'price', 'owner', 'driver', 'container', 'price_guide',
            'customer_info', 'pickup_address', 'delivery_address',
            'receiver_name', 'receiver_phone_number', 'receiver_email', 'delivery_type',
            'dimensions', 'weight', 'package_type', 'service_type', 'package_description',
            'fragile', 'notes', 'images', 'scheduled_pickup_time', 'estimated_delivery_time',
            'created_at', 'updated_at',
        )
        read_only_fields = fields


class ShipmentTrackingSerializer(serializers.ModelSerializer):
    """Public view of a shipment by tracking number."""
    status_display = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = Shipment
        fields = ('tracking_number', 'status', 'status_display', 'estimated_delivery_time',
                  'pickup_address', 'delivery_address')
        read_only_fields = fields


class ShipmentCreateSerializer(serializers.ModelSerializer):
    pickup_address = AddressPayloadSerializer()
    delivery_address = AddressPayloadSerializer()
    dimensions = SizePayloadSerializer(required=False, allow_null=True)
    weight = serializers.FloatField(min_value=0, required=False, allow_null=True)
    price_guide = serializers.PrimaryKeyRelatedField(
        queryset=PriceGuide.objects.all(), required=False, allow_null=True
    )

    class Meta:
        model = Shipment
        fields = (
            'pickup_address', 'delivery_address', 'receiver_name', 'receiver_phone_number',
            'receiver_email', 'delivery_type', 'dimensions', 'weight', 'package_type',
            'service_type', 'package_description', 'fragile', 'notes',
            'scheduled_pickup_time', 'price_guide',
        )
        extra_kwargs = {
            'package_type': {'required': True, 'allow_blank': False},
        }


class BookingCreateSerializer(ShipmentCreateSerializer):
    customer_info = CustomerInfoSerializer()

    class Meta(ShipmentCreateSerializer.Meta):
        fields = ShipmentCreateSerializer.Meta.fields + ('customer_info',)


class StatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Shipment.Status.choices)


class PaymentStatusUpdateSerializer(serializers.Serializer):
    payment_status = serializers.ChoiceField(choices=Shipment.PaymentStatus.choices)
    amount = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False)
    method = serializers.ChoiceField(choices=Shipment.PaymentMethod.choices, required=False)


class PackageDimensionsSerializer(serializers.Serializer):
    """
    Either measurements (``dimensions`` and/or ``weight``) or a ``price_guide``.

    The validated data is ``{'package': Dimensions | PriceGuideRef}``.
    """
    dimensions = SizePayloadSerializer(required=False)
    weight = serializers.FloatField(min_value=0, required=False)
    price_guide = serializers.UUIDField(required=False)

    def validate(self, attrs):
        measured = 'dimensions' in attrs or 'weight' in attrs
        guided = 'price_guide' in attrs

        if measured and guided:
            raise serializers.ValidationError(
                'Provide either dimensions/weight or price_guide, not both.'
            )
        if not measured and not guided:
            raise serializers.ValidationError(
                'Provide dimensions/weight or a price_guide.'
            )

        if guided:
            return {'package': PriceGuideRef(id=attrs['price_guide'])}

        size = attrs.get('dimensions') or {}
        return {'package': Dimensions(
            length=size.get('length'),
            width=size.get('width'),
            height=size.get('height'),
            weight=attrs.get('weight'),
        )}


class DeliveryAddressUpdateSerializer(serializers.Serializer):
    """Partial update: omitted keys are left alone, explicit nulls clear the field."""
    delivery_address = AddressPayloadSerializer(required=False, allow_null=True)
    pickup_address = AddressPayloadSerializer(required=False, allow_null=True)
    receiver_name = serializers.CharField(max_length=200, required=False, allow_null=True, allow_blank=True)
    receiver_phone_number = serializers.CharField(max_length=30, required=False, allow_null=True, allow_blank=True)
    receiver_email = serializers.EmailField(required=False, allow_null=True, allow_blank=True)
    delivery_type = serializers.ChoiceField(
        choices=Shipment.DeliveryType.choices, required=False, allow_null=True
    )

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError('No address fields supplied.')
        return attrs


class PickupTimeSerializer(serializers.Serializer):
    scheduled_pickup_time = serializers.DateTimeField()


class AssignDriverSerializer(serializers.Serializer):
    shipment_id = serializers.UUIDField()
    driver_id = serializers.UUIDField()


class AssignContainerSerializer(serializers.Serializer):
    shipment_id = serializers.UUIDField()
    container_id = serializers.UUIDField()


class DashboardStatsSerializer(serializers.Serializer):
    total_users = serializers.IntegerField()
    total_shipments = serializers.IntegerField()
    pending_shipments = serializers.IntegerField()
    delivered_shipments = serializers.IntegerField()
    total_revenue = serializers.DecimalField(max_digits=14, decimal_places=2)
    by_status = serializers.DictField(child=serializers.IntegerField())
