import pytest
from django.contrib.auth import get_user_model
from django.urls import reverse

from apps.fleet.models import Container, Driver
from apps.fleet.services import DriverService
from apps.shipping.models import Shipment

pytestmark = pytest.mark.django_db

User = get_user_model()


class TestDriverService:

    def test_create_driver_creates_login_account(self, password):
        driver = DriverService.create_driver(
            email='eve@example.com', password=password, first_name='Eve', last_name='Wheels',
            phone='+447700900777', country='UK',
        )

        assert driver.user.email == 'eve@example.com'
        assert driver.user.check_password(password)
        assert driver.user.is_driver is True
        assert driver.is_verified is False

    def test_update_profile_splits_fields(self, driver):
        DriverService.update_profile(driver, {'first_name': 'Daniel', 'country': 'IE'})

        driver.refresh_from_db()
        driver.user.refresh_from_db()
        assert driver.user.first_name == 'Daniel'
        assert driver.country == 'IE'
        assert driver.phone == '+447700900123'


class TestDriverAdmin:

    def test_admin_creates_driver(self, admin_client, password):
        response = admin_client.post(reverse('fleet:driver_list'), {
            'email': 'Eve@Example.com', 'password': password,
            'first_name': 'Eve', 'last_name': 'Wheels', 'is_verified': True,
        }, format='json')

        assert response.status_code == 201
        data = response.json()['data']
        assert data['email'] == 'eve@example.com'
        assert data['is_verified'] is True
        assert Driver.objects.filter(user__email='eve@example.com').exists()

    def test_duplicate_email(self, admin_client, user, password):
        response = admin_client.post(reverse('fleet:driver_list'), {
            'email': user.email, 'password': password, 'first_name': 'A', 'last_name': 'B',
        }, format='json')

        assert response.status_code == 400
        assert 'email' in response.json()['errors']
        assert not Driver.objects.filter(user=user).exists()

    def test_admin_lists_drivers(self, admin_client, driver):
        response = admin_client.get(reverse('fleet:driver_list'))

        assert response.status_code == 200
        assert response.json()['count'] == 1
        assert response.json()['data'][0]['email'] == 'dan@example.com'

    def test_non_admin_forbidden(self, auth_client):
        response = auth_client.get(reverse('fleet:driver_list'))

        assert response.status_code == 403


class TestDriverSelfService:

    def test_profile(self, driver_client):
        response = driver_client.get(reverse('fleet:driver_profile'))

        assert response.status_code == 200
        assert response.json()['data']['first_name'] == 'Dan'

    def test_update_profile(self, driver_client, driver):
        response = driver_client.patch(reverse('fleet:driver_profile'), {
            'last_name': 'Drives', 'gender': 'male',
        }, format='json')

        assert response.status_code == 200
        assert response.json()['data']['last_name'] == 'Drives'
        driver.refresh_from_db()
        assert driver.gender == 'male'

    def test_non_driver_forbidden(self, auth_client):
        response = auth_client.get(reverse('fleet:driver_profile'))

        assert response.status_code == 403

    def test_assigned_shipments_only(self, driver_client, driver, make_shipment):
        mine = make_shipment(driver=driver)
        make_shipment()

        response = driver_client.get(reverse('fleet:driver_shipments'))

        assert response.status_code == 200
        assert [s['id'] for s in response.json()['data']] == [str(mine.id)]

    def test_unassigned_shipment_detail_is_404(self, driver_client, make_shipment):
        shipment = make_shipment()

        response = driver_client.get(reverse('fleet:driver_shipment_detail', args=[shipment.id]))

        assert response.status_code == 404

    def test_assigned_shipment_detail(self, driver_client, driver, make_shipment):
        shipment = make_shipment(driver=driver)

        response = driver_client.get(reverse('fleet:driver_shipment_detail', args=[shipment.id]))

        assert response.status_code == 200
        assert response.json()['data']['tracking_number'] == shipment.tracking_number


class TestContainers:

    def test_create_container(self, admin_client):
        response = admin_client.post(reverse('fleet:container-list'), {
            'container_number': 'CONT-002', 'type': '40ft', 'capacity': 67.7,
            'location': {'port': 'Felixstowe'},
        }, format='json')

        assert response.status_code == 201
        assert response.json()['data']['status'] == 'available'

    def test_capacity_must_be_positive(self, admin_client):
        response = admin_client.post(reverse('fleet:container-list'), {
            'container_number': 'CONT-003', 'type': '40ft', 'capacity': 0,
        }, format='json')

        assert response.status_code == 400
        assert 'capacity' in response.json()['errors']

    def test_maintenance_dates_ordered(self, admin_client, container):
        response = admin_client.patch(reverse('fleet:container-detail', args=[container.id]), {
            'last_maintenance_date': '2026-05-01T00:00:00Z',
            'next_maintenance_date': '2026-04-01T00:00:00Z',
        }, format='json')

        assert response.status_code == 400
        assert 'next_maintenance_date' in response.json()['errors']

    def test_update_status(self, admin_client, container):
        response = admin_client.patch(reverse('fleet:container-detail', args=[container.id]), {
            'status': 'maintenance',
        }, format='json')

        assert response.status_code == 200
        container.refresh_from_db()
        assert container.status == Container.Status.MAINTENANCE

    def test_delete_blocked_while_holding_active_shipment(self, admin_client, container, make_shipment):
        make_shipment(container=container, status=Shipment.Status.IN_TRANSIT)

        response = admin_client.delete(reverse('fleet:container-detail', args=[container.id]))

        assert response.status_code == 400
        assert response.json()['error'] == 'container_in_use'
        assert Container.objects.filter(pk=container.id).exists()

    def test_delete_after_delivery(self, admin_client, container, make_shipment):
        make_shipment(container=container, status=Shipment.Status.DELIVERED)

        response = admin_client.delete(reverse('fleet:container-detail', args=[container.id]))

        assert response.status_code == 200
        assert not Container.objects.filter(pk=container.id).exists()

    def test_non_admin_forbidden(self, auth_client):
        response = auth_client.get(reverse('fleet:container-list'))

        assert response.status_code == 403
