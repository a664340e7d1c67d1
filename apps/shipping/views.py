from drf_spectacular.utils import extend_schema
from rest_framework import generics, permissions, status
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle
from rest_framework.views import APIView

from apps.utils.permissions import IsAdminRole
from apps.utils.security import SecurityAuditLogger
from .filters import ShipmentFilter
from .models import PriceGuide, Shipment
from .serializers import (
    AssignContainerSerializer, AssignDriverSerializer, BookingCreateSerializer, CustomerInfoUpdateSerializer,
    DashboardStatsSerializer, DeliveryAddressUpdateSerializer, PackageDimensionsSerializer,
    PaymentStatusUpdateSerializer, PickupTimeSerializer, PriceGuideSerializer, ShipmentCreateSerializer,
    ShipmentSerializer, ShipmentTrackingSerializer, StatusUpdateSerializer,
)
from .services import ShipmentService


def shipment_response(shipment, message, status_code=status.HTTP_200_OK):
    return Response(
        {'success': True, 'message': message, 'data': ShipmentSerializer(shipment).data},
        status=status_code,
    )


class TrackingThrottle(AnonRateThrottle):
    scope = 'tracking'


class ShipmentListCreateView(generics.ListCreateAPIView):
    """List the caller's shipments (newest first) or create a new one."""
    permission_classes = (permissions.IsAuthenticated,)

    def get_queryset(self):
        return (
            Shipment.objects.filter(owner=self.request.user)
            .select_related('owner', 'driver__user', 'container', 'price_guide')
            .order_by('-created_at')
        )

    def get_serializer_class(self):
        if self.request.method == 'POST':
            return ShipmentCreateSerializer
        return ShipmentSerializer

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        shipment = ShipmentService.create_shipment(request.user, serializer.validated_data)
        return shipment_response(shipment, 'Shipment created successfully', status.HTTP_201_CREATED)


class ShipmentDetailView(APIView):
    """Shipment detail for its owner, its assigned driver or an admin."""

    @extend_schema(responses=ShipmentSerializer)
    def get(self, request, pk):
        shipment = ShipmentService.get_readable(request.user, pk)
        return Response({'success': True, 'data': ShipmentSerializer(shipment).data})


class ShipmentStatusView(APIView):

    @extend_schema(request=StatusUpdateSerializer, responses=ShipmentSerializer)
    def patch(self, request, pk):
        serializer = StatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        shipment = ShipmentService.update_status(request.user, pk, serializer.validated_data['status'])
        return shipment_response(shipment, 'Shipment status updated successfully')

    put = patch


class ShipmentPaymentStatusView(APIView):

    @extend_schema(request=PaymentStatusUpdateSerializer, responses=ShipmentSerializer)
    def patch(self, request, pk):
        serializer = PaymentStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        shipment = ShipmentService.update_payment_status(
            request.user, pk,
            payment_status=data['payment_status'],
            amount=data.get('amount'),
            method=data.get('method'),
        )
        return shipment_response(shipment, 'Payment status updated successfully')

    put = patch


class ShipmentPackageDimensionsView(APIView):

    @extend_schema(request=PackageDimensionsSerializer, responses=ShipmentSerializer)
    def patch(self, request, pk):
        serializer = PackageDimensionsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        shipment = ShipmentService.update_package_dimensions(request.user, pk, serializer.validated_data['package'])
        return shipment_response(shipment, 'Package dimensions updated successfully')

    put = patch


class ShipmentDeliveryAddressView(APIView):

    @extend_schema(request=DeliveryAddressUpdateSerializer, responses=ShipmentSerializer)
    def patch(self, request, pk):
        serializer = DeliveryAddressUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        shipment = ShipmentService.update_delivery_address(request.user, pk, dict(serializer.validated_data))
        return shipment_response(shipment, 'Delivery address updated successfully')

    put = patch


class ShipmentCustomerInfoView(APIView):

    @extend_schema(request=CustomerInfoUpdateSerializer, responses=ShipmentSerializer)
    def patch(self, request, pk):
        serializer = CustomerInfoUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        shipment = ShipmentService.update_customer_info(request.user, pk, dict(serializer.validated_data))
        return shipment_response(shipment, 'Customer information updated successfully')

    put = patch


class ShipmentPickupTimeView(APIView):

    @extend_schema(request=PickupTimeSerializer, responses=ShipmentSerializer)
    def patch(self, request, pk):
        serializer = PickupTimeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        shipment = ShipmentService.update_pickup_time(
            request.user, pk, serializer.validated_data['scheduled_pickup_time']
        )
        return shipment_response(shipment, 'Pickup date and time updated successfully')

    put = patch


class ShipmentPhotosView(APIView):
    """Append a batch of photos (multipart field ``files``)."""
    parser_classes = (MultiPartParser, FormParser)

    @extend_schema(responses=ShipmentSerializer)
    def patch(self, request, pk):
        shipment = ShipmentService.upload_photos(request.user, pk, request.FILES.getlist('files'))
        return shipment_response(shipment, 'Shipment photos updated successfully')

    post = patch
    put = patch


class ShipmentCancelView(APIView):

    @extend_schema(request=None, responses=ShipmentSerializer)
    def post(self, request, pk):
        shipment = ShipmentService.cancel(request.user, pk)
        return shipment_response(shipment, 'Shipment cancelled successfully')

    put = post


class ShipmentTrackView(APIView):
    """Public tracking by tracking number."""
    permission_classes = (permissions.AllowAny,)
    authentication_classes = ()
    throttle_classes = (TrackingThrottle,)

    @extend_schema(responses=ShipmentTrackingSerializer)
    def get(self, request, tracking_number):
        shipment = ShipmentService.track(tracking_number)
        return Response({'success': True, 'data': ShipmentTrackingSerializer(shipment).data})


# ==================== Admin Views ====================

class AssignDriverView(APIView):
    permission_classes = (IsAdminRole,)

    @extend_schema(request=AssignDriverSerializer, responses=ShipmentSerializer)
    def post(self, request):
        serializer = AssignDriverSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        shipment = ShipmentService.assign_driver(
            serializer.validated_data['shipment_id'], serializer.validated_data['driver_id']
        )
        SecurityAuditLogger().log_admin_action('assign_driver', str(request.user.id), {
            'shipment': str(shipment.id), 'driver': str(shipment.driver_id)
        })
        return shipment_response(shipment, 'Driver assigned successfully')


class AssignContainerView(APIView):
    permission_classes = (IsAdminRole,)

    @extend_schema(request=AssignContainerSerializer, responses=ShipmentSerializer)
    def post(self, request):
        serializer = AssignContainerSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        shipment = ShipmentService.assign_container(
            serializer.validated_data['shipment_id'], serializer.validated_data['container_id']
        )
        SecurityAuditLogger().log_admin_action('assign_container', str(request.user.id), {
            'shipment': str(shipment.id), 'container': str(shipment.container_id)
        })
        return shipment_response(shipment, 'Container assigned successfully')


class BookingCreateView(generics.CreateAPIView):
    """Admin: book a shipment on a customer's behalf."""
    serializer_class = BookingCreateSerializer
    permission_classes = (IsAdminRole,)

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        shipment = ShipmentService.create_booking(request.user, serializer.validated_data)
        SecurityAuditLogger().log_admin_action('create_booking', str(request.user.id), {
            'shipment': str(shipment.id)
        })
        return shipment_response(shipment, 'Booking created successfully', status.HTTP_201_CREATED)


class ShipmentAdminListView(generics.ListAPIView):
    """Admin: all shipments, filterable by status, payment_status and kind."""
    serializer_class = ShipmentSerializer
    permission_classes = (IsAdminRole,)
    filterset_class = ShipmentFilter
    queryset = (
        Shipment.objects.select_related('owner', 'driver__user', 'container', 'price_guide')
        .order_by('-created_at')
    )


class DashboardStatsView(APIView):
    permission_classes = (IsAdminRole,)

    @extend_schema(responses=DashboardStatsSerializer)
    def get(self, request):
        stats = DashboardStatsSerializer(ShipmentService.dashboard_stats())
        return Response({'success': True, 'data': stats.data})


class PriceGuideListCreateView(generics.ListCreateAPIView):
    """List price guides; admins may create new ones."""
    queryset = PriceGuide.objects.all()
    serializer_class = PriceGuideSerializer
    pagination_class = None

    def get_permissions(self):
        if self.request.method == 'POST':
            return [IsAdminRole()]
        return [permissions.IsAuthenticated()]

    def list(self, request, *args, **kwargs):
        serializer = self.get_serializer(self.get_queryset(), many=True)
        return Response({'success': True, 'data': serializer.data})

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response({'success': True, 'message': 'Price guide created', 'data': serializer.data},
                        status=status.HTTP_201_CREATED)
