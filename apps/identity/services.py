"""Identity services - transactional email, email verification codes, authentication logic."""
import logging
from django.conf import settings
from django.core.cache import cache
from django.core.mail import send_mail
from typing import Optional

logger = logging.getLogger('apps.identity')


def _format_address(address) -> str:
    if not address:
        return '-'
    parts = [
        address.get('street'),
        address.get('unit'),
        address.get('city'),
        address.get('state'),
        address.get('zip_code'),
        address.get('country'),
    ]
    return ', '.join(str(p) for p in parts if p)


def _display_name(account) -> str:
    name = f"{account.first_name or ''} {account.last_name or ''}".strip()
    return name or 'Customer'


class EmailService:
    """Service for sending transactional emails."""

    @staticmethod
    def _send_email(subject: str, message: str, recipient_email: str, html_message: Optional[str] = None) -> bool:
        """Send email with error handling."""
        try:
            send_mail(
                subject=subject,
                message=message,
                from_email=settings.DEFAULT_FROM_EMAIL,
                recipient_list=[recipient_email],
                html_message=html_message,
                fail_silently=False,
            )
            logger.info(f"Email sent successfully to {recipient_email}")
            return True
        except Exception as e:
            logger.error(f"Failed to send email to {recipient_email}: {e}")
            return False

    @staticmethod
    def send_verification_code_email(user, code: str) -> bool:
        """Send the 6-digit email verification code."""
        hours = settings.EMAIL_VERIFICATION_TTL // 3600
        subject = "Verify Your Email Address - Jingally Logistics"
        message = f"""
Hello {user.full_name},

Welcome to Jingally Logistics!

Your verification code is: {code}

This code will expire in {hours} hours.

If you didn't create an account, please ignore this email.
        """

        return EmailService._send_email(subject, message, user.email)

    @staticmethod
    def send_booking_confirmation_email(account, shipment) -> bool:
        """Send booking confirmation with the full shipment summary."""
        subject = f"Your Shipment Booking Confirmation - {shipment.tracking_number}"

        dimensions = shipment.dimensions or {}
        dimensions_text = (
            f"{dimensions.get('length')} x {dimensions.get('width')} x {dimensions.get('height')} cm"
            if dimensions else '-'
        )

        message = f"""
Hello {_display_name(account)},

Booking Details
  Tracking Number: {shipment.tracking_number}
  Status: {shipment.get_status_display()}
  Service Type: {shipment.service_type or '-'}
  Package Type: {shipment.package_type or '-'}
  Description: {shipment.package_description or '-'}
  Fragile: {'Yes' if shipment.fragile else 'No'}

Package Details
  Weight: {shipment.weight if shipment.weight is not None else '-'} kg
  Dimensions: {dimensions_text}

Addresses
  Pickup: {_format_address(shipment.pickup_address)}
  Delivery: {_format_address(shipment.delivery_address)}
  Receiver: {shipment.receiver_name or '-'} ({shipment.receiver_phone_number or '-'})

Schedule & Payment
  Scheduled Pickup: {shipment.scheduled_pickup_time or '-'}
  Estimated Delivery: {shipment.estimated_delivery_time or '-'}
  Price: {shipment.price if shipment.price is not None else '-'}
  Payment Status: {shipment.get_payment_status_display()}

Thank you for choosing our service!
You can track your shipment using the tracking number {shipment.tracking_number}.
        """

        return EmailService._send_email(subject, message, account.email)

    @staticmethod
    def send_payment_confirmation_email(account, shipment) -> bool:
        """
        Send payment confirmation.

        The synthesized receiver account (``id == 'receiver'``) gets the
        "payment received" variant including the delivery address.
        """
        is_receiver = str(account.id) == 'receiver'
        if is_receiver:
            subject = f"Payment Received for Your Shipment - {shipment.tracking_number}"
        else:
            subject = f"Payment Confirmation for Your Shipment - {shipment.tracking_number}"

        delivery_text = ''
        if is_receiver:
            delivery_text = f"""
Delivery Information
  Delivery Address: {_format_address(shipment.delivery_address)}
"""

        message = f"""
Hello {_display_name(account)},

Payment Details
  Amount: {shipment.price}
  Status: {shipment.get_payment_status_display()}
  Method: {shipment.get_payment_method_display() if shipment.payment_method else '-'}

Shipment Details
  Tracking Number: {shipment.tracking_number}
  Status: {shipment.get_status_display()}
  Scheduled Pickup: {shipment.scheduled_pickup_time or '-'}
  Estimated Delivery: {shipment.estimated_delivery_time or '-'}
{delivery_text}
Thank you for your payment!
You can track your shipment using the tracking number {shipment.tracking_number}.
        """

        return EmailService._send_email(subject, message, account.email)

    @staticmethod
    def send_admin_booking_notification(admin_email: str, account, shipment) -> bool:
        """Notify an operations inbox that a booking was paid."""
        subject = f"New Paid Booking - {shipment.tracking_number}"
        message = f"""
A shipment payment has been recorded.

Customer: {_display_name(account)} <{account.email}>
Tracking Number: {shipment.tracking_number}
Kind: {shipment.get_kind_display()}
Status: {shipment.get_status_display()}
Amount: {shipment.price}
Method: {shipment.get_payment_method_display() if shipment.payment_method else '-'}
Pickup: {_format_address(shipment.pickup_address)}
Delivery: {_format_address(shipment.delivery_address)}
Scheduled Pickup: {shipment.scheduled_pickup_time or '-'}
        """

        return EmailService._send_email(subject, message, admin_email)

    @staticmethod
    def send_status_update_email(account, shipment) -> bool:
        """Send shipment status change notification."""
        subject = f"Shipment {shipment.tracking_number} is now {shipment.get_status_display()}"
        message = f"""
Hello {_display_name(account)},

The status of your shipment {shipment.tracking_number} has been updated.

New Status: {shipment.get_status_display()}
Estimated Delivery: {shipment.estimated_delivery_time or '-'}
        """

        return EmailService._send_email(subject, message, account.email)


class EmailVerificationService:
    """6-digit email verification codes held in the cache."""

    CACHE_KEY = 'email_verification_{user_id}'

    @classmethod
    def _key(cls, user) -> str:
        return cls.CACHE_KEY.format(user_id=user.pk)

    @classmethod
    def send_code(cls, user) -> bool:
        """Generate a fresh code, store it with the configured TTL and email it."""
        from apps.utils.security import TokenManager

        code = TokenManager.generate_otp(6)
        cache.set(cls._key(user), code, timeout=settings.EMAIL_VERIFICATION_TTL)
        return EmailService.send_verification_code_email(user, code)

    @classmethod
    def verify_code(cls, user, code: str):
        """Check a submitted code. Returns ``(ok, error_message)``."""
        if user.is_email_verified:
            return False, "Email already verified"

        stored = cache.get(cls._key(user))
        if stored is None:
            return False, "Verification code not found or expired"

        if str(code).strip() != stored:
            return False, "Invalid verification code"

        user.verify_email()
        cache.delete(cls._key(user))
        logger.info(f"Email verified for user {user.id}")
        return True, None


class AuthService:
    """Authentication service with audit logging."""

    @staticmethod
    def authenticate_user(email: str, password: str, request=None):
        """Authenticate user by email and password. Returns ``(user, error_message)``."""
        from django.contrib.auth import get_user_model
        from apps.utils.security import SecurityAuditLogger, IPValidator

        User = get_user_model()
        audit = SecurityAuditLogger()
        ip = IPValidator.get_client_ip(request) if request else '0.0.0.0'

        try:
            user = User.objects.get(email=email)
        except User.DoesNotExist:
            audit.log_login_attempt(email, False, ip)
            return None, "Invalid credentials"

        if not user.is_active or not user.check_password(password):
            audit.log_login_attempt(email, False, ip)
            return None, "Invalid credentials"

        audit.log_login_attempt(email, True, ip)
        return user, None
