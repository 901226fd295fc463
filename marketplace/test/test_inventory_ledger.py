"""
Inventory ledger: conditional reservation, release and compensation
"""
import threading

import pytest

from marketplace import create_app, db
from marketplace.data.catalog.product import Product
from marketplace.data.core.user import UserRole, UserStatus
from marketplace.buisness.errors import InsufficientStock, InvalidQuantity, NotFound
from marketplace.buisness.inventory.inventory_ledger import InventoryLedger, StockLine
from marketplace.test.conftest import make_product, make_user, stock_of


@pytest.fixture
def file_app(tmp_path):
    """App on a file-backed SQLite database; each thread gets its own connection"""
    app = create_app({
        'SECRET_KEY': 'test-secret-key',
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'ledger.db'}",
        'SQLALCHEMY_ENGINE_OPTIONS': {'connect_args': {'timeout': 30}},
        'TESTING': True,
        'WTF_CSRF_ENABLED': False,
        'RATELIMIT_ENABLED': False,
        'SESSION_COOKIE_SECURE': False,
    })
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.drop_all()
        db.engine.dispose()


def test_reserve_and_release_round_trip(product):
    """Stock 10: reserve 4, refuse 7, release 4"""
    ledger = InventoryLedger()

    reservation = ledger.reserve(product.id, 4)
    assert reservation.stock_after == 6
    assert stock_of(product) == 6

    with pytest.raises(InsufficientStock):
        ledger.reserve(product.id, 7)
    assert stock_of(product) == 6

    ledger.release(product.id, 4)
    assert stock_of(product) == 10


def test_reserve_exact_stock_leaves_zero(product):
    ledger = InventoryLedger()
    ledger.reserve(product.id, 10)
    assert stock_of(product) == 0

    with pytest.raises(InsufficientStock) as excinfo:
        ledger.reserve(product.id, 1)
    assert excinfo.value.retryable is True
    assert stock_of(product) == 0


def test_reserve_rejects_non_positive_quantity(product):
    ledger = InventoryLedger()
    with pytest.raises(InvalidQuantity):
        ledger.reserve(product.id, 0)
    with pytest.raises(InvalidQuantity):
        ledger.release(product.id, -2)
    assert stock_of(product) == 10


def test_reserve_unknown_product():
    with pytest.raises(NotFound):
        InventoryLedger().reserve(9999, 1)


def test_repeated_reservations_never_go_negative(product):
    ledger = InventoryLedger()
    granted = 0
    for _ in range(15):
        try:
            granted += ledger.reserve(product.id, 3).quantity
        except InsufficientStock:
            pass
    assert granted == 9
    assert stock_of(product) == 1


def test_reserve_lines_compensates_earlier_lines(supplier):
    first = make_product(supplier, name='Cotton', stock=10)
    second = make_product(supplier, name='Yarn', stock=2)
    ledger = InventoryLedger()

    with pytest.raises(InsufficientStock):
        ledger.reserve_lines([StockLine(first.id, 4), StockLine(second.id, 5)])

    assert stock_of(first) == 10
    assert stock_of(second) == 2


def test_reserve_lines_keeps_going_when_a_compensation_fails(supplier, monkeypatch):
    first = make_product(supplier, name='Cotton', stock=10)
    second = make_product(supplier, name='Wool', stock=10)
    third = make_product(supplier, name='Yarn', stock=1)
    ledger = InventoryLedger()

    original_release = ledger.release

    def flaky_release(product_id, qty):
        if product_id == second.id:
            raise RuntimeError("release failed")
        return original_release(product_id, qty)

    monkeypatch.setattr(ledger, 'release', flaky_release)

    with pytest.raises(InsufficientStock):
        ledger.reserve_lines([StockLine(first.id, 2), StockLine(second.id, 3), StockLine(third.id, 5)])

    # The failed compensation for the second line is logged; the first is still restored
    assert stock_of(first) == 10
    assert stock_of(second) == 7


def test_available_reads_current_stock(product):
    ledger = InventoryLedger()
    ledger.reserve(product.id, 3)
    db.session.commit()
    assert ledger.available(product.id) == 7


def test_concurrent_reservations_never_both_succeed(file_app):
    """Stock 10, two buyers race for 7 each from separate connections"""
    with file_app.app_context():
        supplier = make_user('race@example.com', UserRole.SUPPLIER, UserStatus.APPROVED)
        product_id = make_product(supplier, stock=10).id

    start = threading.Barrier(2, timeout=10)
    outcomes = []

    def reserve_seven():
        with file_app.app_context():
            start.wait()
            try:
                InventoryLedger().reserve(product_id, 7)
                db.session.commit()
                outcomes.append('reserved')
            except InsufficientStock:
                db.session.rollback()
                outcomes.append('refused')

    threads = [threading.Thread(target=reserve_seven) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)

    assert sorted(outcomes) == ['refused', 'reserved']
    with file_app.app_context():
        assert db.session.get(Product, product_id).stock == 3
