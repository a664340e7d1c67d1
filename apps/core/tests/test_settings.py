import uuid

import pytest
from django.urls import reverse

from apps.core.models import UserSettings
from apps.identity.models import Address

pytestmark = pytest.mark.django_db


@pytest.fixture
def user_settings(user):
    return UserSettings.objects.create(user=user)


class TestUserSettings:

    def test_missing_settings_is_404(self, auth_client):
        response = auth_client.get(reverse('core:settings'))

        assert response.status_code == 404
        assert response.json() == {
            'success': False, 'message': 'Settings not found', 'error': 'not_found',
        }

    def test_first_put_creates_with_defaults(self, auth_client, user):
        response = auth_client.put(reverse('core:settings'), {'theme': 'dark'}, format='json')

        assert response.status_code == 201
        data = response.json()['data']
        assert data['theme'] == 'dark'
        assert data['default_currency'] == 'USD'
        assert data['notification_preferences']['email'] is True
        assert UserSettings.objects.filter(user=user).count() == 1

    def test_second_put_updates(self, auth_client, user_settings):
        response = auth_client.put(reverse('core:settings'), {
            'default_currency': 'GBP', 'measurement_system': 'imperial',
        }, format='json')

        assert response.status_code == 200
        user_settings.refresh_from_db()
        assert user_settings.default_currency == 'GBP'
        assert user_settings.measurement_system == 'imperial'
        assert user_settings.theme == 'system'

    def test_invalid_currency(self, auth_client, user_settings):
        response = auth_client.put(reverse('core:settings'), {'default_currency': 'POUNDS'}, format='json')

        assert response.status_code == 400
        assert 'default_currency' in response.json()['errors']

    def test_nested_preferences_are_merged(self, auth_client, user_settings):
        response = auth_client.put(reverse('core:settings'), {
            'notification_preferences': {'sms': True},
        }, format='json')

        assert response.status_code == 200
        prefs = response.json()['data']['notification_preferences']
        assert prefs['sms'] is True
        assert prefs['email'] is True
        assert prefs['shipment_updates'] is True

    def test_notifications_patch_merges(self, auth_client, user_settings):
        response = auth_client.patch(reverse('core:settings_notifications'), {
            'push': False, 'newsletter': True,
        }, format='json')

        assert response.status_code == 200
        user_settings.refresh_from_db()
        assert user_settings.notification_preferences == {
            'email': True, 'push': False, 'sms': False,
            'shipment_updates': True, 'promotional_offers': False, 'newsletter': True,
        }

    def test_pickup_address_must_be_own(self, auth_client, user_settings, other_user):
        foreign = Address.objects.create(
            user=other_user, street='5 Side St', city='York', state='N Yorks', zip_code='YO1', country='UK',
        )

        response = auth_client.put(reverse('core:settings'), {
            'default_pickup_address': str(foreign.id),
        }, format='json')

        assert response.status_code == 400
        assert 'default_pickup_address' in response.json()['errors']

    def test_own_pickup_address_accepted(self, auth_client, user, user_settings):
        own = Address.objects.create(
            user=user, street='1 High St', city='London', state='GL', zip_code='E1', country='UK',
        )

        response = auth_client.put(reverse('core:settings'), {
            'default_pickup_address': str(own.id),
        }, format='json')

        assert response.status_code == 200
        user_settings.refresh_from_db()
        assert user_settings.default_pickup_address_id == own.id


class TestAdminUserSettings:

    def test_admin_reads_and_updates(self, admin_client, user_settings, user):
        url = reverse('core:admin_user_settings', args=[user.id])

        assert admin_client.get(url).json()['data']['theme'] == 'system'

        response = admin_client.patch(url, {'language': 'fr'}, format='json')
        assert response.status_code == 200
        user_settings.refresh_from_db()
        assert user_settings.language == 'fr'

    def test_non_admin_forbidden(self, other_client, user_settings, user):
        response = other_client.get(reverse('core:admin_user_settings', args=[user.id]))

        assert response.status_code == 403
        assert response.json()['success'] is False

    def test_settings_loaded_once_per_request(self, admin_client, user_settings, user,
                                              django_assert_max_num_queries):
        url = reverse('core:admin_user_settings', args=[user.id])

        with django_assert_max_num_queries(2):
            assert admin_client.get(url).status_code == 200
        with django_assert_max_num_queries(3):
            assert admin_client.patch(url, {'theme': 'dark'}, format='json').status_code == 200

    def test_unknown_user_is_404(self, admin_client):
        response = admin_client.get(reverse('core:admin_user_settings', args=[uuid.uuid4()]))

        assert response.status_code == 404
        assert response.json()['success'] is False

    def test_user_without_settings_is_404(self, admin_client, other_user):
        response = admin_client.get(reverse('core:admin_user_settings', args=[other_user.id]))

        assert response.status_code == 404
        assert response.json()['message'] == 'Settings not found'
