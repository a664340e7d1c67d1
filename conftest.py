import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from rest_framework.test import APIClient

from apps.fleet.models import Container, Driver
from apps.shipping.models import PriceGuide, Shipment

User = get_user_model()

PASSWORD = 'Str0ng-pass-123'


def _make_user(email, **extra):
    return User.objects.create_user(
        username=email, email=email, password=PASSWORD,
        first_name=extra.pop('first_name', 'Test'), last_name=extra.pop('last_name', 'User'),
        **extra
    )


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def user(db):
    return _make_user('alice@example.com', first_name='Alice', last_name='Owner')


@pytest.fixture
def other_user(db):
    return _make_user('bob@example.com', first_name='Bob', last_name='Other')


@pytest.fixture
def admin_user(db):
    return _make_user('admin@example.com', first_name='Ada', last_name='Admin', is_staff=True)


@pytest.fixture
def driver(db):
    account = _make_user('dan@example.com', first_name='Dan', last_name='Driver')
    return Driver.objects.create(user=account, phone='+447700900123', country='UK')


@pytest.fixture
def container(db):
    return Container.objects.create(container_number='CONT-001', type='20ft', capacity=33.2)


@pytest.fixture
def price_guide(db):
    return PriceGuide.objects.create(guide_name='Small parcel', price='25.00')


@pytest.fixture
def auth_client(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def other_client(other_user):
    client = APIClient()
    client.force_authenticate(user=other_user)
    return client


@pytest.fixture
def admin_client(admin_user):
    client = APIClient()
    client.force_authenticate(user=admin_user)
    return client


@pytest.fixture
def driver_client(driver):
    client = APIClient()
    client.force_authenticate(user=driver.user)
    return client


@pytest.fixture
def address_payload():
    return {
        'street': '1 High Street',
        'city': 'London',
        'state': 'Greater London',
        'zip_code': 'E1 6AN',
        'country': 'UK',
    }


@pytest.fixture
def make_shipment(user, address_payload):
    def factory(**overrides):
        data = {
            'owner': user,
            'pickup_address': address_payload,
            'delivery_address': {**address_payload, 'street': '99 Market Road', 'city': 'Leeds'},
            'package_type': 'box',
            'service_type': 'standard',
            'receiver_name': 'Rita Receiver',
            'receiver_phone_number': '+447700900456',
        }
        data.update(overrides)
        return Shipment.objects.create(**data)
    return factory


@pytest.fixture(autouse=True)
def _clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def password():
    return PASSWORD
