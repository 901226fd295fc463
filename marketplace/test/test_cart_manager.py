"""
Cart management and checkout
"""
from decimal import Decimal

import pytest

from marketplace.data.cart.cart_entry import CartEntry
from marketplace.data.catalog.product import ProductStatus
from marketplace.data.ordering.order import Order
from marketplace.buisness.cart.cart_manager import CartManager
from marketplace.buisness.catalog.product_context import ProductContext
from marketplace.buisness.core.actor import Actor
from marketplace.buisness.errors import (
    CrossSupplierCart, EmptyCart, Forbidden, InsufficientStock, InvalidQuantity, MissingDeliveryAddress, NotFound,
)
from marketplace.test.conftest import make_product, stock_of


@pytest.fixture
def cotton(supplier):
    return make_product(supplier, name='Cotton', price='10.00', stock=10)


@pytest.fixture
def yarn(supplier):
    return make_product(supplier, name='Yarn', price='2.50', stock=3)


@pytest.fixture
def cart(buyer_actor):
    return CartManager(buyer_actor)


def test_add_merges_quantities(cart, cotton):
    cart.add(cotton.id, 2)
    entry = cart.add(cotton.id, 3)
    assert entry.quantity == 5
    assert len(cart.entries()) == 1
    # Adding to the cart never reserves stock
    assert stock_of(cotton) == 10


def test_cart_is_single_supplier(cart, cotton, yarn, other_supplier):
    cart.add(cotton.id, 1)
    cart.add(yarn.id, 1)
    foreign = make_product(other_supplier, name='Wool')

    with pytest.raises(CrossSupplierCart):
        cart.add(foreign.id, 1)

    assert sorted(entry.product_id for entry in cart.entries()) == sorted([cotton.id, yarn.id])


def test_update_remove_and_clear(cart, cotton, yarn):
    cart.add(cotton.id, 1)
    cart.add(yarn.id, 1)

    assert cart.update_quantity(cotton.id, 4).quantity == 4
    with pytest.raises(InvalidQuantity):
        cart.update_quantity(cotton.id, 0)

    cart.remove(yarn.id)
    with pytest.raises(NotFound):
        cart.remove(yarn.id)

    assert cart.clear() == 1
    assert cart.entries() == []


def test_only_buyers_have_carts(supplier_actor):
    with pytest.raises(Forbidden):
        CartManager(supplier_actor)


def test_checkout_creates_one_order(recorder, cart, cotton, yarn, buyer):
    cart.add(cotton.id, 4)
    cart.add(yarn.id, 2)

    order = cart.checkout(payment_method='cash', buyer_note='Deliver to gate 2')

    assert stock_of(cotton) == 6
    assert stock_of(yarn) == 1
    assert [(item.name, item.quantity, item.subtotal) for item in order.items] == [
        ('Cotton', 4, Decimal('40.00')),
        ('Yarn', 2, Decimal('5.00')),
    ]
    assert order.total == Decimal('45.00')
    assert order.payment_method == 'cash'
    assert order.delivery_address == buyer.factory_address
    assert order.delivery_contact_name == 'Gate Office'
    assert 'from cart' in order.activity_logs[0].message
    assert CartEntry.query.filter_by(user_id=buyer.id).count() == 0
    assert recorder.sent[-1]['type'] == 'order_placed'


def test_checkout_delivery_override(cart, cotton):
    cart.add(cotton.id, 1)
    order = cart.checkout(delivery={
        'address': 'Warehouse 9', 'place_name': 'Port', 'contact_name': 'Night Shift', 'contact_phone': '+2557',
    })
    assert order.delivery_address == 'Warehouse 9'
    assert order.delivery_contact_name == 'Night Shift'


def test_incomplete_override_falls_back_to_factory(cart, cotton, buyer):
    cart.add(cotton.id, 1)
    order = cart.checkout(delivery={'address': 'Somewhere'})
    assert order.delivery_address == buyer.factory_address


def test_checkout_failure_restores_earlier_lines(cart, cotton, yarn, buyer):
    """Line two cannot be reserved: line one is released and no order exists"""
    cart.add(cotton.id, 4)
    cart.add(yarn.id, 5)

    with pytest.raises(InsufficientStock):
        cart.checkout()

    assert stock_of(cotton) == 10
    assert stock_of(yarn) == 3
    assert Order.query.count() == 0
    assert len(cart.entries()) == 2


def test_empty_cart_checkout(cart):
    with pytest.raises(EmptyCart):
        cart.checkout()


def test_checkout_without_any_address(buyer_without_factory, cotton):
    cart = CartManager(Actor.from_user(buyer_without_factory))
    cart.add(cotton.id, 1)
    with pytest.raises(MissingDeliveryAddress):
        cart.checkout()
    assert stock_of(cotton) == 10


def test_checkout_refuses_products_back_under_moderation(cart, cotton, yarn, supplier_actor):
    cart.add(cotton.id, 2)
    cart.add(yarn.id, 1)
    ProductContext(product=cotton).update(supplier_actor, {'price': '1.00'})
    assert cotton.status == ProductStatus.PENDING.value

    with pytest.raises(NotFound):
        cart.checkout()

    assert Order.query.count() == 0
    assert stock_of(cotton) == 10
    assert stock_of(yarn) == 3
    assert len(cart.entries()) == 2
