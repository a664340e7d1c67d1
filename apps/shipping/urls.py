from django.urls import path
from . import views

app_name = 'shipping'

urlpatterns = [
    # Shipments
    path('shipments/', views.ShipmentListCreateView.as_view(), name='shipment_list'),
    path('shipments/track/<str:tracking_number>/', views.ShipmentTrackView.as_view(), name='track'),
    path('shipments/<uuid:pk>/', views.ShipmentDetailView.as_view(), name='shipment_detail'),
    path('shipments/<uuid:pk>/status/', views.ShipmentStatusView.as_view(), name='shipment_status'),
    path('shipments/<uuid:pk>/payment-status/', views.ShipmentPaymentStatusView.as_view(), name='shipment_payment'),
    path('shipments/<uuid:pk>/package-dimensions/', views.ShipmentPackageDimensionsView.as_view(),
         name='shipment_dimensions'),
    path('shipments/<uuid:pk>/delivery-address/', views.ShipmentDeliveryAddressView.as_view(),
         name='shipment_address'),
    path('shipments/<uuid:pk>/customer-info/', views.ShipmentCustomerInfoView.as_view(),
         name='shipment_customer_info'),
    path('shipments/<uuid:pk>/pickup-date-time/', views.ShipmentPickupTimeView.as_view(), name='shipment_pickup'),
    path('shipments/<uuid:pk>/photos/', views.ShipmentPhotosView.as_view(), name='shipment_photos'),
    path('shipments/<uuid:pk>/cancel/', views.ShipmentCancelView.as_view(), name='shipment_cancel'),

    # Admin
    path('shipments/assign-driver/', views.AssignDriverView.as_view(), name='assign_driver'),
    path('shipments/assign-container/', views.AssignContainerView.as_view(), name='assign_container'),
    path('shipments/bookings/', views.BookingCreateView.as_view(), name='booking_create'),
    path('shipments/admin/', views.ShipmentAdminListView.as_view(), name='admin_shipment_list'),
    path('shipments/admin/stats/', views.DashboardStatsView.as_view(), name='admin_stats'),

    # Price guides
    path('price-guides/', views.PriceGuideListCreateView.as_view(), name='price_guide_list'),
]
