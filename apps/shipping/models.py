"""Shipping app models - Shipments, price guides and the notification outbox."""
import random
import time
import uuid
from datetime import timedelta
from django.conf import settings
from django.db import models
from django.utils import timezone


def generate_reference(prefix: str) -> str:
    """``prefix`` + epoch milliseconds + a random number in [0, 999]."""
    millis = int(time.time() * 1000)
    return f"{prefix}{millis}{random.randint(0, 999)}"


class ShipmentQuerySet(models.QuerySet):

    def visible_to(self, user):
        """Shipments the user owns, or all of them for admins."""
        if user.is_staff:
            return self
        return self.filter(owner=user)

    def readable_by(self, user):
        """Like ``visible_to`` but also includes shipments assigned to the user as driver."""
        if user.is_staff:
            return self
        return self.filter(models.Q(owner=user) | models.Q(driver__user=user))


class Shipment(models.Model):
    """A package moving from pickup to delivery, self-service or admin-booked."""

    class Kind(models.TextChoices):
        SELF_SERVICE = 'self_service', 'Self-service'
        BOOKING = 'booking', 'Booking'

    class Status(models.TextChoices):
        PENDING = 'pending', 'Pending'
        BOOKED = 'booked', 'Booked'
        PICKED_UP = 'picked_up', 'Picked up'
        IN_TRANSIT = 'in_transit', 'In transit'
        DELIVERED = 'delivered', 'Delivered'
        CANCELLED = 'cancelled', 'Cancelled'

    class PaymentStatus(models.TextChoices):
        UNPAID = 'unpaid', 'Unpaid'
        PENDING = 'pending', 'Pending'
        PAID = 'paid', 'Paid'
        FAILED = 'failed', 'Failed'

    class PaymentMethod(models.TextChoices):
        PAYPAL = 'paypal', 'PayPal'
        BANK_TRANSFER = 'bank_transfer', 'Bank transfer'
        CASH = 'cash', 'Cash'
        PART_PAYMENT = 'part_payment', 'Part payment'

    class DeliveryType(models.TextChoices):
        PARK = 'park', 'Park'
        HOME = 'home', 'Home'

    TERMINAL_STATUSES = (Status.DELIVERED, Status.CANCELLED)

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tracking_number = models.CharField(max_length=32, unique=True, editable=False)
    kind = models.CharField(max_length=20, choices=Kind.choices, default=Kind.SELF_SERVICE, db_index=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING, db_index=True)
    payment_status = models.CharField(
        max_length=20, choices=PaymentStatus.choices, default=PaymentStatus.UNPAID, db_index=True
    )
    payment_method = models.CharField(max_length=20, choices=PaymentMethod.choices, null=True, blank=True)
    price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)

    owner = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='shipments')
    driver = models.ForeignKey(
        'fleet.Driver', on_delete=models.SET_NULL, null=True, blank=True, related_name='shipments'
    )
    container = models.ForeignKey(
        'fleet.Container', on_delete=models.SET_NULL, null=True, blank=True, related_name='shipments'
    )
    price_guide = models.ForeignKey(
        'PriceGuide', on_delete=models.SET_NULL, null=True, blank=True, related_name='shipments'
    )

    customer_info = models.JSONField(null=True, blank=True)
    pickup_address = models.JSONField(null=True, blank=True)
    delivery_address = models.JSONField(null=True, blank=True)
    receiver_name = models.CharField(max_length=200, blank=True, null=True)
    receiver_phone_number = models.CharField(max_length=30, blank=True, null=True)
    receiver_email = models.EmailField(blank=True, null=True)
    delivery_type = models.CharField(max_length=10, choices=DeliveryType.choices, default=DeliveryType.HOME)

    # Package
    dimensions = models.JSONField(null=True, blank=True)
    weight = models.FloatField(null=True, blank=True)
    package_type = models.CharField(max_length=50, blank=True)
    service_type = models.CharField(max_length=50, blank=True)
    package_description = models.TextField(blank=True, null=True)
    fragile = models.BooleanField(default=False)
    notes = models.TextField(blank=True, null=True)
    images = models.JSONField(default=list, blank=True)

    # Schedule
    scheduled_pickup_time = models.DateTimeField(null=True, blank=True)
    estimated_delivery_time = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ShipmentQuerySet.as_manager()

    class Meta:
        verbose_name = 'Shipment'
        verbose_name_plural = 'Shipments'
        ordering = ['-created_at']

    def __str__(self):
        return self.tracking_number

    def save(self, *args, **kwargs):
        if not self.tracking_number:
            self.tracking_number = generate_reference('TRK')
        super().save(*args, **kwargs)

    @property
    def is_terminal(self):
        return self.status in self.TERMINAL_STATUSES

    def allowed_statuses(self):
        """Status values valid for this shipment's kind."""
        if self.kind == self.Kind.BOOKING:
            return list(self.Status.values)
        return [s for s in self.Status.values if s != self.Status.BOOKED]

    def set_pickup_time(self, pickup_time):
        """Write the pickup time and derive the estimated delivery from it."""
        self.scheduled_pickup_time = pickup_time
        self.estimated_delivery_time = pickup_time + timedelta(days=settings.ESTIMATED_DELIVERY_DAYS)


class PriceGuide(models.Model):
    """Named pre-set shipping price tier."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    guide_number = models.CharField(max_length=32, unique=True, editable=False)
    guide_name = models.CharField(max_length=200)
    price = models.DecimalField(max_digits=10, decimal_places=2)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Price guide'
        verbose_name_plural = 'Price guides'
        ordering = ['price']

    def __str__(self):
        return f"{self.guide_name} ({self.price})"

    def save(self, *args, **kwargs):
        if not self.guide_number:
            self.guide_number = generate_reference('JLP')
        super().save(*args, **kwargs)


class NotificationOutbox(models.Model):
    """One queued transactional email, committed together with the change that caused it."""

    class Kind(models.TextChoices):
        BOOKING_CONFIRMATION = 'booking_confirmation', 'Booking confirmation'
        PAYMENT_CONFIRMATION = 'payment_confirmation', 'Payment confirmation'
        ADMIN_BOOKING = 'admin_booking', 'Admin booking notice'
        STATUS_UPDATE = 'status_update', 'Status update'

    class Status(models.TextChoices):
        PENDING = 'pending', 'Pending'
        SENT = 'sent', 'Sent'
        FAILED = 'failed', 'Failed'

    kind = models.CharField(max_length=30, choices=Kind.choices)
    shipment = models.ForeignKey(Shipment, on_delete=models.CASCADE, related_name='notifications')
    # Snapshot of the addressee: id, email, first_name, last_name
    recipient = models.JSONField()
    # Extra context, e.g. the paying account for admin notices
    payload = models.JSONField(default=dict, blank=True)
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.PENDING, db_index=True)
    attempts = models.PositiveIntegerField(default=0)
    next_attempt_at = models.DateTimeField(default=timezone.now, db_index=True)
    last_error = models.TextField(blank=True)
    sent_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Notification'
        verbose_name_plural = 'Notification outbox'
        ordering = ['created_at', 'id']

    def __str__(self):
        return f"{self.get_kind_display()} to {self.recipient.get('email')} ({self.status})"

    def claim(self) -> bool:
        """
        Take the row for one delivery attempt.

        Only succeeds while the row is still pending with the attempt count
        this instance loaded, so a worker holding a stale copy gets False.
        The attempt is counted and the row is leased for
        NOTIFICATION_LEASE_SECONDS; a worker that dies mid-send leaves it
        for a later retry.
        """
        now = timezone.now()
        lease_until = now + timedelta(seconds=settings.NOTIFICATION_LEASE_SECONDS)
        claimed = NotificationOutbox.objects.filter(
            pk=self.pk, status=self.Status.PENDING, attempts=self.attempts,
        ).update(attempts=models.F('attempts') + 1, next_attempt_at=lease_until, updated_at=now)
        if not claimed:
            return False
        self.attempts += 1
        self.next_attempt_at = lease_until
        return True

    def mark_sent(self):
        self.status = self.Status.SENT
        self.sent_at = timezone.now()
        self.last_error = ''
        self.save(update_fields=['status', 'sent_at', 'last_error', 'updated_at'])

    def mark_failed_attempt(self, error: str):
        """Record a failed claimed attempt and schedule the retry with exponential backoff."""
        self.last_error = error
        if self.attempts >= settings.NOTIFICATION_MAX_ATTEMPTS:
            self.status = self.Status.FAILED
        else:
            delay = settings.NOTIFICATION_RETRY_BASE_SECONDS * (2 ** self.attempts)
            self.next_attempt_at = timezone.now() + timedelta(seconds=delay)
        self.save(update_fields=['status', 'last_error', 'next_attempt_at', 'updated_at'])
