from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'fleet'

router = DefaultRouter()
router.register(r'containers', views.ContainerViewSet, basename='container')

urlpatterns = [
    path('drivers/', views.DriverListCreateAdminView.as_view(), name='driver_list'),
    path('driver/profile/', views.DriverProfileView.as_view(), name='driver_profile'),
    path('driver/shipments/', views.DriverShipmentListView.as_view(), name='driver_shipments'),
    path('driver/shipments/<uuid:pk>/', views.DriverShipmentDetailView.as_view(), name='driver_shipment_detail'),
    path('', include(router.urls)),
]
