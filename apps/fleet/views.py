from rest_framework import generics, status, viewsets
from rest_framework.response import Response
from rest_framework.views import APIView
from apps.shipping.models import Shipment
from apps.shipping.serializers import ShipmentSerializer
from apps.utils.exceptions import NotFoundError
from apps.utils.permissions import IsAdminRole, IsDriver
from apps.utils.security import SecurityAuditLogger
from .models import Container, Driver
from .serializers import (
    ContainerSerializer, DriverCreateSerializer, DriverProfileUpdateSerializer, DriverSerializer,
)
from .services import DriverService


# ==================== Admin ====================

class DriverListCreateAdminView(generics.ListCreateAPIView):
    """Admin: list drivers or onboard a new one (creates the login account too)."""
    queryset = Driver.objects.select_related('user').order_by('-created_at')
    permission_classes = (IsAdminRole,)
    filterset_fields = ('is_verified', 'country')

    def get_serializer_class(self):
        if self.request.method == 'POST':
            return DriverCreateSerializer
        return DriverSerializer

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        driver = DriverService.create_driver(**serializer.validated_data)
        SecurityAuditLogger().log_admin_action('create_driver', str(request.user.id), {'driver': str(driver.id)})
        return Response({'success': True, 'message': 'Driver created', 'data': DriverSerializer(driver).data},
                        status=status.HTTP_201_CREATED)


class ContainerViewSet(viewsets.ModelViewSet):
    """Admin: container CRUD."""
    queryset = Container.objects.all()
    serializer_class = ContainerSerializer
    permission_classes = [IsAdminRole]
    filterset_fields = ('status', 'type')

    def retrieve(self, request, *args, **kwargs):
        return Response({'success': True, 'data': self.get_serializer(self.get_object()).data})

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response({'success': True, 'message': 'Container created', 'data': serializer.data},
                        status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        serializer = self.get_serializer(self.get_object(), data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response({'success': True, 'message': 'Container updated', 'data': serializer.data})

    def destroy(self, request, *args, **kwargs):
        container = self.get_object()
        if container.shipments.exclude(status__in=Shipment.TERMINAL_STATUSES).exists():
            return Response(
                {'success': False, 'message': 'Container still holds active shipments', 'error': 'container_in_use'},
                status=status.HTTP_400_BAD_REQUEST,
            )
        container.delete()
        return Response({'success': True, 'message': 'Container deleted'})


# ==================== Driver self-service ====================

def _driver_for(user) -> Driver:
    try:
        return user.driver_profile
    except Driver.DoesNotExist:
        raise NotFoundError('Driver profile not found')


class DriverProfileView(APIView):
    permission_classes = (IsDriver,)

    def get(self, request):
        return Response({'success': True, 'data': DriverSerializer(_driver_for(request.user)).data})

    def patch(self, request):
        serializer = DriverProfileUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        driver = DriverService.update_profile(_driver_for(request.user), serializer.validated_data)
        return Response({'success': True, 'message': 'Profile updated successfully',
                         'data': DriverSerializer(driver).data})

    put = patch


class DriverShipmentListView(generics.ListAPIView):
    """Shipments assigned to the calling driver, newest first."""
    serializer_class = ShipmentSerializer
    permission_classes = (IsDriver,)

    def get_queryset(self):
        return (
            Shipment.objects.filter(driver__user=self.request.user)
            .select_related('owner', 'driver__user', 'container', 'price_guide')
            .order_by('-created_at')
        )


class DriverShipmentDetailView(APIView):
    permission_classes = (IsDriver,)

    def get(self, request, pk):
        try:
            shipment = Shipment.objects.get(pk=pk, driver__user=request.user)
        except Shipment.DoesNotExist:
            raise NotFoundError('Shipment not found')
        return Response({'success': True, 'data': ShipmentSerializer(shipment).data})
