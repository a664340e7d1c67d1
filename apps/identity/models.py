"""Identity app models - User and saved addresses."""
import uuid
from django.contrib.auth.models import AbstractUser
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone


class User(AbstractUser):
    """Custom User model with UUID primary key and email login."""

    class Gender(models.TextChoices):
        MALE = 'male', 'Male'
        FEMALE = 'female', 'Female'
        OTHER = 'other', 'Other'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(unique=True)
    phone = models.CharField(max_length=20, blank=True)
    gender = models.CharField(max_length=10, choices=Gender.choices, blank=True)

    # Verification
    is_email_verified = models.BooleanField(default=False)
    email_verified_at = models.DateTimeField(null=True, blank=True)

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['username']

    class Meta:
        verbose_name = 'User'
        verbose_name_plural = 'Users'
        ordering = ['-date_joined']

    def __str__(self):
        return self.email

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip() or self.username

    @property
    def is_driver(self):
        return hasattr(self, 'driver_profile')

    def verify_email(self):
        """Mark email as verified."""
        self.is_email_verified = True
        self.email_verified_at = timezone.now()
        self.save(update_fields=['is_email_verified', 'email_verified_at'])


class Address(models.Model):
    """Saved pickup or delivery address of a user."""

    class AddressType(models.TextChoices):
        PICKUP = 'pickup', 'Pickup'
        DELIVERY = 'delivery', 'Delivery'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='addresses')
    street = models.CharField(max_length=255)
    unit = models.CharField(max_length=50, blank=True, null=True)
    city = models.CharField(max_length=100)
    state = models.CharField(max_length=100)
    zip_code = models.CharField(max_length=20, db_index=True)
    country = models.CharField(max_length=100)
    latitude = models.DecimalField(
        max_digits=10, decimal_places=8, null=True, blank=True,
        validators=[MinValueValidator(-90), MaxValueValidator(90)]
    )
    longitude = models.DecimalField(
        max_digits=11, decimal_places=8, null=True, blank=True,
        validators=[MinValueValidator(-180), MaxValueValidator(180)]
    )
    type = models.CharField(max_length=10, choices=AddressType.choices, default=AddressType.PICKUP)
    is_verified = models.BooleanField(default=False)
    verification_details = models.JSONField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Address'
        verbose_name_plural = 'Addresses'
        ordering = ['-created_at']
        indexes = [models.Index(fields=['latitude', 'longitude'])]

    def __str__(self):
        return f"{self.street}, {self.city} ({self.type})"

    @property
    def full_address(self):
        parts = [self.street, self.unit, self.city, self.state, self.zip_code, self.country]
        return ', '.join(filter(None, parts))

    def mark_verified(self, details=None):
        """Mark the address as verified, recording when and how."""
        self.is_verified = True
        self.verification_details = details or {
            'verified_at': timezone.now().isoformat(),
            'method': 'manual',
        }
        self.save(update_fields=['is_verified', 'verification_details', 'updated_at'])
