"""Fleet app models - Drivers and Containers."""
import uuid
from django.conf import settings
from django.db import models


class Driver(models.Model):
    """Driver profile attached to a user account."""

    class Gender(models.TextChoices):
        MALE = 'male', 'Male'
        FEMALE = 'female', 'Female'
        OTHER = 'other', 'Other'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='driver_profile')
    phone = models.CharField(max_length=20, blank=True)
    gender = models.CharField(max_length=10, choices=Gender.choices, blank=True)
    country = models.CharField(max_length=100, blank=True)
    is_verified = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Driver'
        verbose_name_plural = 'Drivers'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.user.full_name} ({self.user.email})"


class Container(models.Model):
    """Shipping container that shipments can be loaded into."""

    class Status(models.TextChoices):
        AVAILABLE = 'available', 'Available'
        IN_USE = 'in_use', 'In use'
        MAINTENANCE = 'maintenance', 'Maintenance'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    container_number = models.CharField(max_length=50, unique=True)
    type = models.CharField(max_length=50)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.AVAILABLE, db_index=True)
    capacity = models.FloatField()
    location = models.JSONField(null=True, blank=True)
    last_maintenance_date = models.DateTimeField(null=True, blank=True)
    next_maintenance_date = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Container'
        verbose_name_plural = 'Containers'
        ordering = ['container_number']

    def __str__(self):
        return f"{self.container_number} ({self.get_status_display()})"

    def mark_in_use(self):
        if self.status != self.Status.IN_USE:
            self.status = self.Status.IN_USE
            self.save(update_fields=['status', 'updated_at'])
