from decimal import Decimal
from unittest.mock import patch

import pytest
from rest_framework.exceptions import ValidationError

from apps.fleet.models import Container
from apps.shipping.models import NotificationOutbox, Shipment
from apps.shipping.services import Dimensions, PriceGuideRef, ShipmentService
from apps.utils.exceptions import ConflictError, NotFoundError

pytestmark = pytest.mark.django_db


@pytest.fixture
def shipment_data(address_payload):
    return {
        'pickup_address': address_payload,
        'delivery_address': {**address_payload, 'city': 'Leeds'},
        'package_type': 'box',
    }


class TestCreateShipment:

    def test_tracking_numbers_are_unique(self, user, shipment_data):
        numbers = {ShipmentService.create_shipment(user, shipment_data).tracking_number for _ in range(5)}
        assert len(numbers) == 5

    def test_retries_on_tracking_number_collision(self, user, shipment_data, make_shipment):
        with patch('apps.shipping.models.generate_reference', side_effect=['TRK1000', 'TRK1000', 'TRK2000']):
            make_shipment()
            shipment = ShipmentService.create_shipment(user, shipment_data)

        assert shipment.tracking_number == 'TRK2000'
        assert Shipment.objects.count() == 2

    def test_conflict_after_max_attempts(self, user, shipment_data, make_shipment, settings):
        settings.TRACKING_NUMBER_MAX_ATTEMPTS = 3
        with patch('apps.shipping.models.generate_reference', return_value='TRKDUP') as generator:
            make_shipment()
            with pytest.raises(ConflictError):
                ShipmentService.create_shipment(user, shipment_data)

        # one call for the fixture plus one per attempt
        assert generator.call_count == 4
        assert Shipment.objects.count() == 1

    def test_pickup_time_at_creation_sets_estimate(self, user, shipment_data):
        from datetime import datetime, timezone as dt_timezone
        pickup = datetime(2024, 3, 10, 8, 30, tzinfo=dt_timezone.utc)

        shipment = ShipmentService.create_shipment(user, {**shipment_data, 'scheduled_pickup_time': pickup})

        assert shipment.estimated_delivery_time == datetime(2024, 3, 13, 8, 30, tzinfo=dt_timezone.utc)

    def test_booking_kind(self, admin_user, shipment_data):
        shipment = ShipmentService.create_booking(admin_user, shipment_data)
        assert shipment.kind == Shipment.Kind.BOOKING
        assert shipment.owner == admin_user


class TestStatusUpdate:

    def test_same_status_sends_nothing(self, user, make_shipment, django_capture_on_commit_callbacks):
        shipment = make_shipment()
        with patch('apps.shipping.notifications.EmailService.send_status_update_email') as send:
            with django_capture_on_commit_callbacks(execute=True):
                ShipmentService.update_status(user, shipment.pk, Shipment.Status.PENDING)

        send.assert_not_called()
        assert not NotificationOutbox.objects.exists()

    def test_changed_status_sends_one_notification(self, user, make_shipment, django_capture_on_commit_callbacks):
        shipment = make_shipment()
        with patch('apps.shipping.notifications.EmailService.send_status_update_email',
                   return_value=False) as send:
            with django_capture_on_commit_callbacks(execute=True):
                updated = ShipmentService.update_status(user, shipment.pk, Shipment.Status.IN_TRANSIT)

        assert updated.status == Shipment.Status.IN_TRANSIT
        send.assert_called_once()
        message = NotificationOutbox.objects.get()
        assert message.kind == NotificationOutbox.Kind.STATUS_UPDATE
        assert message.attempts == 1
        assert message.status == NotificationOutbox.Status.PENDING

    def test_notification_exception_does_not_fail_update(self, user, make_shipment,
                                                          django_capture_on_commit_callbacks):
        shipment = make_shipment()
        with patch('apps.shipping.notifications.EmailService.send_status_update_email',
                   side_effect=RuntimeError('smtp exploded')):
            with django_capture_on_commit_callbacks(execute=True):
                ShipmentService.update_status(user, shipment.pk, Shipment.Status.PICKED_UP)

        shipment.refresh_from_db()
        assert shipment.status == Shipment.Status.PICKED_UP
        assert 'smtp exploded' in NotificationOutbox.objects.get().last_error

    def test_booked_rejected_for_self_service(self, user, make_shipment):
        shipment = make_shipment()
        with pytest.raises(ValidationError):
            ShipmentService.update_status(user, shipment.pk, Shipment.Status.BOOKED)

    def test_assigned_driver_can_update(self, driver, make_shipment, django_capture_on_commit_callbacks):
        shipment = make_shipment(driver=driver)
        with patch('apps.shipping.notifications.EmailService.send_status_update_email', return_value=True):
            with django_capture_on_commit_callbacks(execute=True):
                ShipmentService.update_status(driver.user, shipment.pk, Shipment.Status.PICKED_UP)

        assert NotificationOutbox.objects.get().status == NotificationOutbox.Status.SENT

    def test_stranger_gets_not_found(self, other_user, make_shipment):
        shipment = make_shipment()
        with pytest.raises(NotFoundError):
            ShipmentService.update_status(other_user, shipment.pk, Shipment.Status.IN_TRANSIT)


class TestPaymentStatus:

    @pytest.fixture
    def mailer(self):
        with patch('apps.shipping.notifications.EmailService') as service:
            service.send_booking_confirmation_email.return_value = True
            service.send_payment_confirmation_email.return_value = True
            service.send_admin_booking_notification.return_value = True
            yield service

    def test_paid_booking_becomes_booked(self, admin_user, make_shipment, mailer,
                                         django_capture_on_commit_callbacks):
        shipment = make_shipment(owner=admin_user, kind=Shipment.Kind.BOOKING, customer_info={
            'first_name': 'Carla', 'last_name': 'Customer', 'email': 'carla@example.com'
        })
        with django_capture_on_commit_callbacks(execute=True):
            updated = ShipmentService.update_payment_status(
                admin_user, shipment.pk, Shipment.PaymentStatus.PAID, Decimal('40.00'), 'cash'
            )

        assert updated.status == Shipment.Status.BOOKED
        account = mailer.send_booking_confirmation_email.call_args[0][0]
        assert account.email == 'carla@example.com'
        assert account.first_name == 'Carla'

    def test_self_service_paid_keeps_status(self, user, make_shipment, mailer,
                                            django_capture_on_commit_callbacks):
        shipment = make_shipment()
        with django_capture_on_commit_callbacks(execute=True):
            updated = ShipmentService.update_payment_status(user, shipment.pk, Shipment.PaymentStatus.PAID)

        assert updated.status == Shipment.Status.PENDING
        assert mailer.send_payment_confirmation_email.call_args[0][0].email == user.email

    def test_receiver_gets_exactly_one_confirmation(self, user, make_shipment, mailer,
                                                    django_capture_on_commit_callbacks):
        shipment = make_shipment(receiver_email='rita@example.com')
        with django_capture_on_commit_callbacks(execute=True):
            ShipmentService.update_payment_status(user, shipment.pk, Shipment.PaymentStatus.PAID)

        recipients = [c[0][0] for c in mailer.send_payment_confirmation_email.call_args_list]
        receivers = [a for a in recipients if a.id == 'receiver']
        assert len(receivers) == 1
        assert receivers[0].email == 'rita@example.com'
        assert (receivers[0].first_name, receivers[0].last_name) == ('Rita', 'Receiver')
        assert len(recipients) == 2

    def test_admin_inboxes_notified(self, user, make_shipment, mailer, settings,
                                    django_capture_on_commit_callbacks):
        settings.ADMIN_NOTIFICATION_EMAILS = ['ops@example.com', 'finance@example.com']
        shipment = make_shipment()
        with django_capture_on_commit_callbacks(execute=True):
            ShipmentService.update_payment_status(user, shipment.pk, Shipment.PaymentStatus.PAID)

        admin_emails = [c[0][0] for c in mailer.send_admin_booking_notification.call_args_list]
        assert admin_emails == ['ops@example.com', 'finance@example.com']

    def test_other_user_cannot_pay(self, other_user, make_shipment):
        shipment = make_shipment()
        with pytest.raises(NotFoundError):
            ShipmentService.update_payment_status(other_user, shipment.pk, Shipment.PaymentStatus.PAID)

    def test_driver_cannot_record_payment(self, driver, make_shipment):
        shipment = make_shipment(driver=driver)
        with pytest.raises(NotFoundError):
            ShipmentService.update_payment_status(driver.user, shipment.pk, Shipment.PaymentStatus.PAID)


class TestFieldUpdates:

    def test_dimensions_update(self, user, make_shipment):
        shipment = make_shipment()
        updated = ShipmentService.update_package_dimensions(
            user, shipment.pk, Dimensions(length=10, width=20, height=30, weight=2.5)
        )
        assert updated.dimensions == {'length': 10, 'width': 20, 'height': 30}
        assert updated.weight == 2.5
        assert updated.price_guide is None

    def test_weight_only_keeps_dimensions(self, user, make_shipment):
        shipment = make_shipment(dimensions={'length': 1, 'width': 2, 'height': 3})
        updated = ShipmentService.update_package_dimensions(user, shipment.pk, Dimensions(weight=4))
        assert updated.dimensions == {'length': 1, 'width': 2, 'height': 3}
        assert updated.weight == 4

    def test_price_guide_reference(self, user, make_shipment, price_guide):
        shipment = make_shipment()
        updated = ShipmentService.update_package_dimensions(user, shipment.pk, PriceGuideRef(id=price_guide.pk))
        assert updated.price_guide == price_guide

    def test_unknown_price_guide(self, user, make_shipment):
        import uuid
        shipment = make_shipment()
        with pytest.raises(NotFoundError):
            ShipmentService.update_package_dimensions(user, shipment.pk, PriceGuideRef(id=uuid.uuid4()))

    def test_address_update_only_touches_given_fields(self, user, make_shipment):
        shipment = make_shipment(receiver_email='rita@example.com')
        updated = ShipmentService.update_delivery_address(user, shipment.pk, {
            'receiver_phone_number': '+447700900999',
            'receiver_email': None,
        })
        updated.refresh_from_db()
        assert updated.receiver_phone_number == '+447700900999'
        assert updated.receiver_email is None
        assert updated.receiver_name == 'Rita Receiver'


class TestCancel:

    def test_cancel_pending(self, user, make_shipment):
        shipment = make_shipment()
        assert ShipmentService.cancel(user, shipment.pk).status == Shipment.Status.CANCELLED

    @pytest.mark.parametrize('terminal', [Shipment.Status.DELIVERED, Shipment.Status.CANCELLED])
    def test_terminal_cannot_be_cancelled(self, user, make_shipment, terminal):
        shipment = make_shipment(status=terminal)
        with pytest.raises(ValidationError):
            ShipmentService.cancel(user, shipment.pk)


class TestAssignments:

    def test_assign_driver(self, make_shipment, driver):
        shipment = make_shipment()
        assert ShipmentService.assign_driver(shipment.pk, driver.pk).driver == driver

    def test_assign_container_marks_in_use(self, make_shipment, container):
        shipment = make_shipment()
        ShipmentService.assign_container(shipment.pk, container.pk)
        container.refresh_from_db()
        assert container.status == Container.Status.IN_USE

    def test_missing_driver(self, make_shipment):
        import uuid
        with pytest.raises(NotFoundError):
            ShipmentService.assign_driver(make_shipment().pk, uuid.uuid4())


def test_dashboard_stats(make_shipment, user):
    make_shipment(payment_status=Shipment.PaymentStatus.PAID, price=Decimal('10.50'))
    make_shipment(payment_status=Shipment.PaymentStatus.PAID, price=Decimal('4.50'),
                  status=Shipment.Status.DELIVERED)
    make_shipment(price=Decimal('99.00'))

    stats = ShipmentService.dashboard_stats()

    assert stats['total_shipments'] == 3
    assert stats['pending_shipments'] == 2
    assert stats['delivered_shipments'] == 1
    assert stats['total_revenue'] == Decimal('15.00')
    assert stats['total_users'] == 1
