from django.contrib import admin
from .models import NotificationOutbox, PriceGuide, Shipment


@admin.register(Shipment)
class ShipmentAdmin(admin.ModelAdmin):
    list_display = ('tracking_number', 'kind', 'status', 'payment_status', 'price', 'owner', 'driver', 'created_at')
    list_filter = ('kind', 'status', 'payment_status', 'delivery_type')
    search_fields = ('tracking_number', 'owner__email', 'receiver_name', 'receiver_email')
    readonly_fields = ('tracking_number', 'estimated_delivery_time', 'created_at', 'updated_at')
    raw_id_fields = ('owner', 'driver', 'container', 'price_guide')


@admin.register(PriceGuide)
class PriceGuideAdmin(admin.ModelAdmin):
    list_display = ('guide_number', 'guide_name', 'price')
    search_fields = ('guide_number', 'guide_name')
    readonly_fields = ('guide_number',)


@admin.register(NotificationOutbox)
class NotificationOutboxAdmin(admin.ModelAdmin):
    list_display = ('kind', 'shipment', 'status', 'attempts', 'next_attempt_at', 'sent_at')
    list_filter = ('kind', 'status')
    search_fields = ('shipment__tracking_number',)
    readonly_fields = ('recipient', 'payload', 'last_error', 'created_at', 'updated_at')
