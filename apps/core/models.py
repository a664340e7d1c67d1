import uuid
from django.conf import settings
from django.core.validators import RegexValidator
from django.db import models


def default_notification_preferences():
    return {
        'email': True,
        'push': True,
        'sms': False,
        'shipment_updates': True,
        'promotional_offers': False,
        'newsletter': False,
    }


class UserSettings(models.Model):
    """Per-user application preferences."""

    class Theme(models.TextChoices):
        LIGHT = 'light', 'Light'
        DARK = 'dark', 'Dark'
        SYSTEM = 'system', 'System'

    class MeasurementSystem(models.TextChoices):
        METRIC = 'metric', 'Metric'
        IMPERIAL = 'imperial', 'Imperial'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='settings')
    notification_preferences = models.JSONField(default=default_notification_preferences)
    default_currency = models.CharField(
        max_length=3, default='USD',
        validators=[RegexValidator(r'^[A-Z]{3}$', 'Currency must be a 3-letter ISO code')]
    )
    language = models.CharField(max_length=10, default='en')
    theme = models.CharField(max_length=10, choices=Theme.choices, default=Theme.SYSTEM)
    default_pickup_address = models.ForeignKey(
        'identity.Address', on_delete=models.SET_NULL, null=True, blank=True, related_name='+'
    )
    measurement_system = models.CharField(
        max_length=10, choices=MeasurementSystem.choices, default=MeasurementSystem.METRIC
    )
    time_zone = models.CharField(max_length=64, default='UTC')

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'User settings'
        verbose_name_plural = 'User settings'

    def __str__(self):
        return f"Settings for {self.user}"

    def merge_notification_preferences(self, changes):
        """Overlay ``changes`` onto the stored preferences and save."""
        preferences = {**(self.notification_preferences or {}), **changes}
        self.notification_preferences = preferences
        self.save(update_fields=['notification_preferences', 'updated_at'])
        return preferences
