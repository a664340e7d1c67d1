"""
Shipment notifications delivered through the outbox.

Messages are written to ``NotificationOutbox`` inside the caller's
transaction and attempted once after commit. Failed attempts are retried
later by the ``dispatch_notifications`` management command.
"""
import logging
from dataclasses import asdict, dataclass
from datetime import timedelta
from typing import List, Optional

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from apps.identity.services import EmailService
from .models import NotificationOutbox, Shipment

logger = logging.getLogger('apps.shipping')


@dataclass(frozen=True)
class NotificationAccount:
    """Addressee of a notification: a user, the booking customer, the receiver or an admin inbox."""
    id: str
    email: str
    first_name: str = ''
    last_name: str = ''

    @classmethod
    def from_user(cls, user) -> 'NotificationAccount':
        return cls(id=str(user.pk), email=user.email, first_name=user.first_name, last_name=user.last_name)

    @classmethod
    def from_dict(cls, data: dict) -> 'NotificationAccount':
        return cls(
            id=str(data.get('id', '')),
            email=data.get('email', ''),
            first_name=data.get('first_name') or '',
            last_name=data.get('last_name') or '',
        )

    def as_dict(self) -> dict:
        return asdict(self)


def payer_account(shipment: Shipment) -> NotificationAccount:
    """The booking customer when ``customer_info`` has an email, otherwise the owner."""
    info = shipment.customer_info or {}
    if info.get('email'):
        return NotificationAccount(
            id='customer',
            email=info['email'],
            first_name=info.get('first_name') or '',
            last_name=info.get('last_name') or '',
        )
    return NotificationAccount.from_user(shipment.owner)


def receiver_account(shipment: Shipment) -> Optional[NotificationAccount]:
    """Synthesized account for the receiver, or None without a receiver email."""
    if not shipment.receiver_email:
        return None

    name = (shipment.receiver_name or '').strip()
    if name:
        first_name, _, last_name = name.partition(' ')
        last_name = last_name.strip()
    else:
        first_name, last_name = 'Receiver', ''

    return NotificationAccount(
        id='receiver',
        email=shipment.receiver_email,
        first_name=first_name,
        last_name=last_name,
    )


class NotificationDispatcher:
    """Queue and deliver shipment emails."""

    @staticmethod
    def enqueue(kind: str, shipment: Shipment, account: NotificationAccount,
                payload: Optional[dict] = None) -> NotificationOutbox:
        """
        Persist one message and attempt it once the surrounding transaction commits.

        The row only becomes due for ``dispatch_due`` after the lease period,
        leaving the first attempt to the commit callback.
        """
        message = NotificationOutbox.objects.create(
            kind=kind,
            shipment=shipment,
            recipient=account.as_dict(),
            payload=payload or {},
            next_attempt_at=timezone.now() + timedelta(seconds=settings.NOTIFICATION_LEASE_SECONDS),
        )
        transaction.on_commit(lambda: NotificationDispatcher.deliver_by_id(message.pk))
        return message

    @staticmethod
    def enqueue_status_update(shipment: Shipment) -> NotificationOutbox:
        return NotificationDispatcher.enqueue(
            NotificationOutbox.Kind.STATUS_UPDATE, shipment, payer_account(shipment)
        )

    @staticmethod
    def enqueue_payment_notifications(shipment: Shipment) -> List[NotificationOutbox]:
        """
        Queue, in order: the payer confirmation, the receiver confirmation
        (when a receiver email is known) and one notice per admin inbox.
        """
        payer = payer_account(shipment)
        payer_kind = (
            NotificationOutbox.Kind.BOOKING_CONFIRMATION
            if shipment.kind == Shipment.Kind.BOOKING
            else NotificationOutbox.Kind.PAYMENT_CONFIRMATION
        )
        messages = [NotificationDispatcher.enqueue(payer_kind, shipment, payer)]

        receiver = receiver_account(shipment)
        if receiver is not None:
            messages.append(NotificationDispatcher.enqueue(
                NotificationOutbox.Kind.PAYMENT_CONFIRMATION, shipment, receiver
            ))

        for admin_email in settings.ADMIN_NOTIFICATION_EMAILS:
            messages.append(NotificationDispatcher.enqueue(
                NotificationOutbox.Kind.ADMIN_BOOKING,
                shipment,
                NotificationAccount(id='admin', email=admin_email),
                payload={'account': payer.as_dict()},
            ))
        return messages

    @staticmethod
    def _send(message: NotificationOutbox) -> bool:
        shipment = message.shipment
        account = NotificationAccount.from_dict(message.recipient)
        Kind = NotificationOutbox.Kind

        if message.kind == Kind.BOOKING_CONFIRMATION:
            return EmailService.send_booking_confirmation_email(account, shipment)
        if message.kind == Kind.PAYMENT_CONFIRMATION:
            return EmailService.send_payment_confirmation_email(account, shipment)
        if message.kind == Kind.ADMIN_BOOKING:
            payer = NotificationAccount.from_dict(message.payload.get('account') or {})
            return EmailService.send_admin_booking_notification(account.email, payer, shipment)
        if message.kind == Kind.STATUS_UPDATE:
            return EmailService.send_status_update_email(account, shipment)

        raise ValueError(f"Unknown notification kind: {message.kind}")

    @staticmethod
    def deliver(message: NotificationOutbox) -> bool:
        """
        Claim and attempt one message. Failures are recorded on the row, never raised.

        Returns False without sending when another worker already claimed it.
        """
        if not message.claim():
            logger.info(f"Notification {message.pk} already claimed, skipping")
            return False
        return NotificationDispatcher._attempt(message)

    @staticmethod
    def _attempt(message: NotificationOutbox) -> bool:
        try:
            sent = NotificationDispatcher._send(message)
            error = '' if sent else 'Email backend reported failure'
        except Exception as e:
            logger.exception(f"Notification {message.pk} ({message.kind}) raised: {e}")
            sent, error = False, str(e)

        if sent:
            message.mark_sent()
            logger.info(f"Notification {message.pk} ({message.kind}) sent for shipment {message.shipment_id}")
        else:
            message.mark_failed_attempt(error)
            logger.warning(
                f"Notification {message.pk} ({message.kind}) failed, attempt {message.attempts}: {error}"
            )
        return sent

    @staticmethod
    def deliver_by_id(message_id) -> bool:
        message = (
            NotificationOutbox.objects
            .select_related('shipment', 'shipment__owner')
            .filter(pk=message_id, status=NotificationOutbox.Status.PENDING)
            .first()
        )
        if message is None:
            return False
        return NotificationDispatcher.deliver(message)

    @staticmethod
    def dispatch_due(limit: int = 100) -> dict:
        """Retry pending messages whose backoff has elapsed."""
        due = list(
            NotificationOutbox.objects
            .select_related('shipment', 'shipment__owner')
            .filter(status=NotificationOutbox.Status.PENDING, next_attempt_at__lte=timezone.now())
            .order_by('next_attempt_at', 'id')[:limit]
        )
        results = {'sent': 0, 'failed': 0, 'skipped': 0}
        for message in due:
            if not message.claim():
                results['skipped'] += 1
                continue
            if NotificationDispatcher._attempt(message):
                results['sent'] += 1
            else:
                results['failed'] += 1
        return results
