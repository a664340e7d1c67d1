import re
from datetime import datetime, timezone as dt_timezone
from unittest.mock import patch

import pytest
from django.utils import timezone

from apps.shipping.models import NotificationOutbox, PriceGuide, Shipment, generate_reference

pytestmark = pytest.mark.django_db


def test_generate_reference_format():
    reference = generate_reference('TRK')
    assert re.match(r'^TRK\d+\d{1,3}$', reference)


def test_shipment_gets_tracking_number_once(make_shipment):
    shipment = make_shipment()
    original = shipment.tracking_number

    assert re.match(r'^TRK\d+$', original)

    shipment.notes = 'Leave at the door'
    shipment.save()
    shipment.refresh_from_db()
    assert shipment.tracking_number == original


def test_price_guide_number_prefix():
    guide = PriceGuide.objects.create(guide_name='Large', price='80.00')
    assert guide.guide_number.startswith('JLP')


def test_set_pickup_time_derives_estimated_delivery(make_shipment):
    shipment = make_shipment()
    pickup = datetime(2024, 1, 1, 10, 0, tzinfo=dt_timezone.utc)

    shipment.set_pickup_time(pickup)

    assert shipment.estimated_delivery_time == datetime(2024, 1, 4, 10, 0, tzinfo=dt_timezone.utc)


def test_booked_only_allowed_for_bookings(make_shipment):
    self_service = make_shipment()
    booking = make_shipment(kind=Shipment.Kind.BOOKING)

    assert Shipment.Status.BOOKED not in self_service.allowed_statuses()
    assert Shipment.Status.BOOKED in booking.allowed_statuses()


def test_visible_to_and_readable_by(make_shipment, user, other_user, admin_user, driver):
    own = make_shipment()
    assigned = make_shipment(owner=other_user, driver=driver)

    assert list(Shipment.objects.visible_to(user)) == [own]
    assert set(Shipment.objects.visible_to(admin_user)) == {own, assigned}
    assert list(Shipment.objects.readable_by(driver.user)) == [assigned]


class TestOutboxBackoff:

    def _message(self, shipment):
        return NotificationOutbox.objects.create(
            kind=NotificationOutbox.Kind.STATUS_UPDATE,
            shipment=shipment,
            recipient={'id': 'x', 'email': 'x@example.com'},
        )

    def test_claim_counts_attempt_and_leases_row(self, make_shipment, settings):
        settings.NOTIFICATION_LEASE_SECONDS = 120
        message = self._message(make_shipment())

        assert message.claim() is True

        message.refresh_from_db()
        assert message.attempts == 1
        assert (message.next_attempt_at - timezone.now()).total_seconds() > 100

    def test_stale_copy_cannot_claim(self, make_shipment):
        message = self._message(make_shipment())
        stale = NotificationOutbox.objects.get(pk=message.pk)

        assert message.claim() is True
        assert stale.claim() is False
        assert NotificationOutbox.objects.get(pk=message.pk).attempts == 1

    def test_failed_attempt_schedules_retry(self, make_shipment, settings):
        settings.NOTIFICATION_RETRY_BASE_SECONDS = 10
        message = self._message(make_shipment())
        before = timezone.now()

        message.claim()
        message.mark_failed_attempt('smtp down')

        message.refresh_from_db()
        assert message.status == NotificationOutbox.Status.PENDING
        assert message.attempts == 1
        assert (message.next_attempt_at - before).total_seconds() >= 20

    def test_gives_up_after_max_attempts(self, make_shipment, settings):
        settings.NOTIFICATION_MAX_ATTEMPTS = 2
        message = self._message(make_shipment())

        message.claim()
        message.mark_failed_attempt('one')
        message.claim()
        message.mark_failed_attempt('two')

        message.refresh_from_db()
        assert message.status == NotificationOutbox.Status.FAILED
        assert message.attempts == 2
        assert message.last_error == 'two'
        assert message.claim() is False

    def test_mark_sent(self, make_shipment):
        message = self._message(make_shipment())
        message.claim()
        with patch('apps.shipping.models.timezone.now') as now:
            now.return_value = datetime(2024, 5, 1, tzinfo=dt_timezone.utc)
            message.mark_sent()
        assert message.status == NotificationOutbox.Status.SENT
        assert message.sent_at == datetime(2024, 5, 1, tzinfo=dt_timezone.utc)
        assert NotificationOutbox.objects.get(pk=message.pk).attempts == 1
