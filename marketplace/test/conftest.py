"""
Pytest configuration and fixtures
"""
from decimal import Decimal

import pytest

from marketplace import create_app
from marketplace import db as _db
from marketplace.data.catalog.product import Product, ProductStatus
from marketplace.data.core.user import User, UserRole, UserStatus
from marketplace.buisness.core.actor import Actor
from marketplace.buisness.notifications.notifier import set_default_notifier

TEST_PASSWORD = 'test-password-123'


@pytest.fixture(scope='session')
def app():
    """Create Flask application for testing against an in-memory database"""
    return create_app({
        'SECRET_KEY': 'test-secret-key',
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'TESTING': True,
        'WTF_CSRF_ENABLED': False,
        'RATELIMIT_ENABLED': False,
        'SESSION_COOKIE_SECURE': False,
    })


@pytest.fixture(autouse=True)
def db(app):
    """Fresh application context and tables for every test"""
    with app.app_context():
        _db.create_all()
        set_default_notifier(None)
        yield _db
        _db.session.remove()
        _db.drop_all()
        set_default_notifier(None)


@pytest.fixture
def client(app):
    return app.test_client()


def make_user(email, role, status, **fields):
    user = User(name=fields.pop('name', email.split('@')[0].title()), email=email,
                role=role.value, status=status.value, **fields)
    user.set_password(TEST_PASSWORD)
    _db.session.add(user)
    _db.session.commit()
    return user


def make_product(supplier, name='Raw Cotton', price='100.00', stock=10, negotiable=False,
                 status=ProductStatus.APPROVED, **fields):
    product = Product(
        supplier_id=supplier.id,
        name=name,
        unit=fields.pop('unit', 'kg'),
        price=Decimal(price),
        stock=stock,
        negotiable=negotiable,
        payment_methods=fields.pop('payment_methods', ['bank_transfer', 'cash']),
        status=status.value,
        **fields,
    )
    _db.session.add(product)
    _db.session.commit()
    return product


@pytest.fixture
def supplier(db):
    return make_user('supplier@example.com', UserRole.SUPPLIER, UserStatus.APPROVED,
                     name='Supplier One', phone='+255700000010')


@pytest.fixture
def other_supplier(db):
    return make_user('supplier2@example.com', UserRole.SUPPLIER, UserStatus.APPROVED, name='Supplier Two')


@pytest.fixture
def buyer(db):
    return make_user(
        'buyer@example.com', UserRole.MANUFACTURER, UserStatus.ACTIVE,
        name='Factory Buyer', phone='+255700000020',
        factory_address='Plot 7, Industrial Road', factory_place_name='Main Plant',
        factory_contact_name='Gate Office', factory_contact_phone='+255700000021',
    )


@pytest.fixture
def buyer_without_factory(db):
    return make_user('nofactory@example.com', UserRole.MANUFACTURER, UserStatus.ACTIVE, name='New Buyer')


@pytest.fixture
def admin(db):
    return make_user('admin@example.com', UserRole.ADMIN, UserStatus.ACTIVE, name='Admin')


@pytest.fixture
def supplier_actor(supplier):
    return Actor.from_user(supplier)


@pytest.fixture
def other_supplier_actor(other_supplier):
    return Actor.from_user(other_supplier)


@pytest.fixture
def buyer_actor(buyer):
    return Actor.from_user(buyer)


@pytest.fixture
def admin_actor(admin):
    return Actor.from_user(admin)


@pytest.fixture
def product(supplier):
    return make_product(supplier)


@pytest.fixture
def negotiable_product(supplier):
    return make_product(supplier, name='Indigo Dye', price='100.00', stock=20, negotiable=True)


class RecordingNotifier:
    """Collects notifications instead of storing them"""

    def __init__(self):
        self.sent = []

    def notify(self, user_id, event_type, title, message, data=None):
        self.sent.append({'user_id': user_id, 'type': event_type, 'title': title,
                          'message': message, 'data': data or {}})


class FailingNotifier:
    def notify(self, user_id, event_type, title, message, data=None):
        raise RuntimeError("notification backend unavailable")


@pytest.fixture
def recorder():
    notifier = RecordingNotifier()
    set_default_notifier(notifier)
    return notifier


def login(client, user, password=TEST_PASSWORD):
    """Log ``user`` in on ``client``, logging out whoever was signed in before"""
    client.post('/auth/logout')
    return client.post('/auth/login', json={'email': user.email, 'password': password})


def stock_of(product):
    _db.session.refresh(product)
    return product.stock
