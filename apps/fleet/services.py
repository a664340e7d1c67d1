"""Fleet services - driver onboarding."""
import logging
from django.contrib.auth import get_user_model
from django.db import transaction
from .models import Driver

logger = logging.getLogger('apps.fleet')

User = get_user_model()


class DriverService:
    """Business logic for driver accounts."""

    @staticmethod
    @transaction.atomic
    def create_driver(email: str, password: str, first_name: str, last_name: str,
                      phone: str = '', gender: str = '', country: str = '', is_verified: bool = False) -> Driver:
        """Create the login account and the driver profile together."""
        user = User(
            email=email,
            username=email,
            first_name=first_name,
            last_name=last_name,
            phone=phone,
            gender=gender,
        )
        user.set_password(password)
        user.save()

        driver = Driver.objects.create(
            user=user,
            phone=phone,
            gender=gender,
            country=country,
            is_verified=is_verified,
        )
        logger.info(f"Driver {driver.id} created for user {user.id}")
        return driver

    @staticmethod
    def update_profile(driver: Driver, data: dict) -> Driver:
        """Apply profile changes split across the user and driver rows."""
        user_fields = [f for f in ('first_name', 'last_name') if f in data]
        for field in user_fields:
            setattr(driver.user, field, data[field])

        driver_fields = [f for f in ('phone', 'gender', 'country') if f in data]
        for field in driver_fields:
            setattr(driver, field, data[field])

        with transaction.atomic():
            if user_fields:
                driver.user.save(update_fields=user_fields)
            if driver_fields:
                driver.save(update_fields=driver_fields + ['updated_at'])
        return driver
