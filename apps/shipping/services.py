"""Shipping services - shipment lifecycle business logic."""
import logging
import mimetypes
import uuid
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.files.storage import default_storage
from django.db import IntegrityError, transaction
from django.db.models import Count, Sum
from django.utils.text import get_valid_filename
from rest_framework.exceptions import ValidationError

from apps.fleet.models import Container, Driver
from apps.utils.exceptions import ConflictError, NotFoundError, UploadError
from .models import PriceGuide, Shipment
from .notifications import NotificationDispatcher

logger = logging.getLogger('apps.shipping')


@dataclass(frozen=True)
class Dimensions:
    """Measured package: any of the size fields and/or the weight."""
    length: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None
    weight: Optional[float] = None

    def size(self) -> Optional[Dict[str, float]]:
        if self.length is None and self.width is None and self.height is None:
            return None
        return {'length': self.length, 'width': self.width, 'height': self.height}


@dataclass(frozen=True)
class PriceGuideRef:
    """Package priced from a pre-set guide instead of measurements."""
    id: uuid.UUID


PackageSpec = Union[Dimensions, PriceGuideRef]


class ShipmentService:
    """Service for the shipment lifecycle."""

    # ==================== Lookup ====================

    @staticmethod
    def get_readable(user, shipment_id) -> Shipment:
        """Shipment the user owns, is assigned to as driver, or any shipment for admins."""
        try:
            return Shipment.objects.readable_by(user).select_related('owner').get(pk=shipment_id)
        except (Shipment.DoesNotExist, ValueError):
            raise NotFoundError('Shipment not found')

    @staticmethod
    def get_owned(user, shipment_id) -> Shipment:
        """Shipment the user owns, or any shipment for admins."""
        try:
            return Shipment.objects.visible_to(user).select_related('owner').get(pk=shipment_id)
        except (Shipment.DoesNotExist, ValueError):
            raise NotFoundError('Shipment not found')

    @staticmethod
    def track(tracking_number: str) -> Shipment:
        try:
            return Shipment.objects.get(tracking_number=tracking_number)
        except Shipment.DoesNotExist:
            raise NotFoundError('Shipment not found')

    # ==================== Creation ====================

    @staticmethod
    def create_shipment(owner, data: Dict[str, Any], kind: str = Shipment.Kind.SELF_SERVICE) -> Shipment:
        """
        Create a shipment with a fresh tracking number.

        Each attempt runs in its own savepoint; a collision on the tracking
        number retries with a new one up to TRACKING_NUMBER_MAX_ATTEMPTS.
        """
        data = dict(data)
        pickup_time = data.pop('scheduled_pickup_time', None)
        max_attempts = settings.TRACKING_NUMBER_MAX_ATTEMPTS

        for attempt in range(1, max_attempts + 1):
            shipment = Shipment(owner=owner, kind=kind, **data)
            if pickup_time is not None:
                shipment.set_pickup_time(pickup_time)
            try:
                with transaction.atomic():
                    shipment.save()
            except IntegrityError as e:
                if 'tracking_number' not in str(e):
                    raise
                logger.warning(
                    f"Tracking number collision on {shipment.tracking_number} "
                    f"(attempt {attempt}/{max_attempts})"
                )
                continue

            logger.info(f"Shipment {shipment.tracking_number} created by {owner.id} ({kind})")
            return shipment

        logger.error(f"Could not allocate a tracking number after {max_attempts} attempts")
        raise ConflictError('Could not allocate a unique tracking number. Please try again.')

    @staticmethod
    def create_booking(admin, data: Dict[str, Any]) -> Shipment:
        """Admin books a shipment on a customer's behalf."""
        return ShipmentService.create_shipment(admin, data, kind=Shipment.Kind.BOOKING)

    # ==================== Status & payment ====================

    @staticmethod
    def update_status(user, shipment_id, new_status: str) -> Shipment:
        """Apply a status change; notifies the account holder only when the value changed."""
        shipment = ShipmentService.get_readable(user, shipment_id)

        if new_status not in shipment.allowed_statuses():
            raise ValidationError({'status': [f'"{new_status}" is not a valid status for this shipment.']})

        old_status = shipment.status
        with transaction.atomic():
            shipment.status = new_status
            shipment.save(update_fields=['status', 'updated_at'])
            if old_status != new_status:
                NotificationDispatcher.enqueue_status_update(shipment)

        logger.info(f"Shipment {shipment.tracking_number} status {old_status} -> {new_status} by {user.id}")
        return shipment

    @staticmethod
    def update_payment_status(user, shipment_id, payment_status: str,
                              amount: Optional[Decimal] = None, method: Optional[str] = None) -> Shipment:
        """
        Record a payment. A paid booking moves to ``booked`` in the same
        write. Confirmation emails are queued with the change.
        """
        shipment = ShipmentService.get_owned(user, shipment_id)

        shipment.payment_status = payment_status
        update_fields = ['payment_status', 'updated_at']
        if amount is not None:
            shipment.price = amount
            update_fields.append('price')
        if method is not None:
            shipment.payment_method = method
            update_fields.append('payment_method')
        if shipment.kind == Shipment.Kind.BOOKING and payment_status == Shipment.PaymentStatus.PAID:
            shipment.status = Shipment.Status.BOOKED
            update_fields.append('status')

        with transaction.atomic():
            shipment.save(update_fields=update_fields)
            NotificationDispatcher.enqueue_payment_notifications(shipment)

        logger.info(
            f"Shipment {shipment.tracking_number} payment {payment_status} "
            f"amount={shipment.price} method={shipment.payment_method}"
        )
        return shipment

    # ==================== Field-group updates ====================

    @staticmethod
    def update_package_dimensions(user, shipment_id, package: PackageSpec) -> Shipment:
        shipment = ShipmentService.get_owned(user, shipment_id)

        if isinstance(package, PriceGuideRef):
            try:
                guide = PriceGuide.objects.get(pk=package.id)
            except PriceGuide.DoesNotExist:
                raise NotFoundError('Price guide not found')
            shipment.price_guide = guide
            update_fields = ['price_guide']
        else:
            update_fields = []
            size = package.size()
            if size is not None:
                shipment.dimensions = {**(shipment.dimensions or {}), **{k: v for k, v in size.items() if v is not None}}
                update_fields.append('dimensions')
            if package.weight is not None:
                shipment.weight = package.weight
                update_fields.append('weight')

        shipment.save(update_fields=update_fields + ['updated_at'])
        return shipment

    @staticmethod
    def update_delivery_address(user, shipment_id, changes: Dict[str, Any]) -> Shipment:
        """Only keys present in ``changes`` are written; a ``None`` value clears the field."""
        shipment = ShipmentService.get_owned(user, shipment_id)

        for field, value in changes.items():
            if field == 'delivery_type' and value is None:
                value = Shipment.DeliveryType.HOME
            setattr(shipment, field, value)

        shipment.save(update_fields=list(changes.keys()) + ['updated_at'])
        return shipment

    @staticmethod
    def update_customer_info(user, shipment_id, changes: Dict[str, Any]) -> Shipment:
        """Merge ``changes`` into the booking customer details; unspecified keys are kept."""
        shipment = ShipmentService.get_owned(user, shipment_id)
        shipment.customer_info = {**(shipment.customer_info or {}), **changes}
        shipment.save(update_fields=['customer_info', 'updated_at'])
        logger.info(f"Shipment {shipment.tracking_number} customer info updated by {user.id}")
        return shipment

    @staticmethod
    def update_pickup_time(user, shipment_id, pickup_time) -> Shipment:
        shipment = ShipmentService.get_owned(user, shipment_id)
        shipment.set_pickup_time(pickup_time)
        shipment.save(update_fields=['scheduled_pickup_time', 'estimated_delivery_time', 'updated_at'])
        return shipment

    @staticmethod
    def _store_photo(upload) -> str:
        """Save one file under the photo folder. Returns the stored name."""
        filename = get_valid_filename(upload.name or 'photo')
        name = f"{settings.PHOTO_UPLOAD_FOLDER}/{uuid.uuid4().hex}_{filename}"
        upload.content_type = mimetypes.guess_type(filename)[0] or 'application/octet-stream'
        return default_storage.save(name, upload)

    @staticmethod
    def upload_photos(user, shipment_id, files: List) -> Shipment:
        """
        Upload a batch of photos concurrently and append their URLs to ``images``.

        The batch is all-or-nothing: if any upload fails, the files already
        stored are deleted and ``images`` is left untouched.
        """
        shipment = ShipmentService.get_owned(user, shipment_id)
        if not files:
            raise ValidationError({'files': ['At least one file is required.']})

        workers = max(1, min(settings.PHOTO_UPLOAD_WORKERS, len(files)))
        stored, failures = [], []
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(ShipmentService._store_photo, f) for f in files]
            for upload, future in zip(files, futures):
                if future.cancelled():
                    continue
                error = future.exception()
                if error is None:
                    stored.append(future.result())
                    continue
                logger.error(f"Upload of {upload.name} for shipment {shipment.tracking_number} failed: {error}")
                failures.append(upload.name)
                # Fail fast: uploads that have not started yet are dropped
                for pending in futures:
                    pending.cancel()

        if failures:
            for name in stored:
                try:
                    default_storage.delete(name)
                except Exception as e:
                    logger.error(f"Could not remove orphaned upload {name}: {e}")
            raise UploadError(f"Error uploading images: {', '.join(failures)}")

        urls = [default_storage.url(name) for name in stored]
        shipment.images = list(shipment.images or []) + urls
        shipment.save(update_fields=['images', 'updated_at'])
        logger.info(f"Shipment {shipment.tracking_number}: {len(urls)} photo(s) added")
        return shipment

    @staticmethod
    def cancel(user, shipment_id) -> Shipment:
        shipment = ShipmentService.get_owned(user, shipment_id)
        if shipment.is_terminal:
            raise ValidationError({'status': [f'A {shipment.status} shipment cannot be cancelled.']})

        shipment.status = Shipment.Status.CANCELLED
        shipment.save(update_fields=['status', 'updated_at'])
        logger.info(f"Shipment {shipment.tracking_number} cancelled by {user.id}")
        return shipment

    # ==================== Admin ====================

    @staticmethod
    def _get_any(shipment_id) -> Shipment:
        try:
            return Shipment.objects.get(pk=shipment_id)
        except (Shipment.DoesNotExist, ValueError):
            raise NotFoundError('Shipment not found')

    @staticmethod
    def assign_driver(shipment_id, driver_id) -> Shipment:
        shipment = ShipmentService._get_any(shipment_id)
        try:
            driver = Driver.objects.select_related('user').get(pk=driver_id)
        except (Driver.DoesNotExist, ValueError):
            raise NotFoundError('Driver not found')

        shipment.driver = driver
        shipment.save(update_fields=['driver', 'updated_at'])
        logger.info(f"Driver {driver.id} assigned to shipment {shipment.tracking_number}")
        return shipment

    @staticmethod
    @transaction.atomic
    def assign_container(shipment_id, container_id) -> Shipment:
        shipment = ShipmentService._get_any(shipment_id)
        try:
            container = Container.objects.get(pk=container_id)
        except (Container.DoesNotExist, ValueError):
            raise NotFoundError('Container not found')

        shipment.container = container
        shipment.save(update_fields=['container', 'updated_at'])
        container.mark_in_use()
        logger.info(f"Container {container.container_number} assigned to shipment {shipment.tracking_number}")
        return shipment

    @staticmethod
    def dashboard_stats() -> Dict[str, Any]:
        """Counts and revenue for the admin dashboard."""
        User = get_user_model()
        shipments = Shipment.objects.all()

        by_status = {row['status']: row['count'] for row in shipments.values('status').annotate(count=Count('id'))}
        revenue = shipments.filter(payment_status=Shipment.PaymentStatus.PAID).aggregate(total=Sum('price'))['total']

        return {
            'total_users': User.objects.count(),
            'total_shipments': shipments.count(),
            'pending_shipments': by_status.get(Shipment.Status.PENDING, 0),
            'delivered_shipments': by_status.get(Shipment.Status.DELIVERED, 0),
            'total_revenue': revenue or Decimal('0.00'),
            'by_status': {status: by_status.get(status, 0) for status in Shipment.Status.values},
        }
