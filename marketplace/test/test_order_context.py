"""
Order placement, lifecycle transitions and the payment sub-flow
"""
from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import update

from marketplace import db
from marketplace.data.ordering.order import Order, OrderStatus, PaymentStatus
from marketplace.buisness.errors import Forbidden, InsufficientStock, InvalidRequest, InvalidTransition, NotFound
from marketplace.buisness.ordering.order_context import OrderContext
from marketplace.buisness.ordering.order_factory import OrderFactory
from marketplace.test.conftest import make_product, stock_of
from marketplace.data.catalog.product import ProductStatus


@pytest.fixture
def placed_order(buyer_actor, product):
    return OrderFactory().place_direct(buyer_actor, product.id, 4)


def test_place_direct_reserves_stock_and_snapshots_line(buyer_actor, product, buyer, recorder):
    order = OrderFactory().place_direct(buyer_actor, product.id, 4, payment_method='cash')

    assert order.status == OrderStatus.PLACED.value
    assert order.payment_status == PaymentStatus.PENDING.value
    assert order.payment_method == 'cash'
    assert order.stock_reserved is True
    assert order.reference.startswith('RAW-')
    assert order.placed_at is not None
    assert stock_of(product) == 6

    [item] = order.items
    assert item.name == 'Raw Cotton'
    assert item.unit_price == Decimal('100.00')
    assert item.subtotal == Decimal('400.00')
    assert order.total == Decimal('400.00')

    assert order.delivery_address == buyer.factory_address
    assert [log.action for log in order.activity_logs] == ['placed']

    assert [sent['type'] for sent in recorder.sent] == ['order_placed']
    assert recorder.sent[0]['user_id'] == product.supplier_id


def test_place_direct_uses_discounted_price(buyer_actor, supplier):
    product = make_product(supplier, price='50.00', discount_percentage=10, discount_active=True)
    order = OrderFactory().place_direct(buyer_actor, product.id, 2)
    assert order.items[0].unit_price == Decimal('45.00')
    assert order.total == Decimal('90.00')


def test_place_direct_refuses_unapproved_product(buyer_actor, supplier):
    product = make_product(supplier, status=ProductStatus.PENDING)
    with pytest.raises(NotFound):
        OrderFactory().place_direct(buyer_actor, product.id, 1)
    assert stock_of(product) == 10


def test_place_direct_insufficient_stock_creates_nothing(buyer_actor, product):
    with pytest.raises(InsufficientStock):
        OrderFactory().place_direct(buyer_actor, product.id, 11)
    assert stock_of(product) == 10
    assert Order.query.count() == 0


def test_supplier_cannot_place_orders(supplier_actor, product):
    with pytest.raises(Forbidden):
        OrderFactory().place_direct(supplier_actor, product.id, 1)


def test_supplier_reject_releases_stock(placed_order, supplier_actor, product, recorder):
    order = OrderContext.load(placed_order.id).reject(supplier_actor, reason='Out of season')

    assert order.status == OrderStatus.REJECTED.value
    assert order.rejected_at is not None
    assert order.stock_reserved is False
    assert order.supplier_note == 'Out of season'
    assert stock_of(product) == 10

    last = order.activity_logs[-1]
    assert len(order.activity_logs) == 2
    assert last.actor_id == supplier_actor.id
    assert last.actor_role == 'supplier'
    assert last.action == 'rejected'
    assert 'Out of season' in last.message

    assert recorder.sent[-1]['type'] == 'order_rejected'
    assert recorder.sent[-1]['user_id'] == order.buyer_id


def test_buyer_cancel_releases_stock(placed_order, buyer_actor, product):
    order = OrderContext.load(placed_order.id).cancel(buyer_actor)
    assert order.status == OrderStatus.CANCELLED.value
    assert order.cancelled_at is not None
    assert stock_of(product) == 10


def test_stock_is_released_only_once(placed_order, buyer_actor, supplier_actor, product):
    context = OrderContext.load(placed_order.id)
    context.cancel(buyer_actor)

    assert context.release_reserved_stock() is False
    with pytest.raises(InvalidTransition):
        context.reject(supplier_actor)
    assert stock_of(product) == 10


def test_full_fulfilment_path(placed_order, supplier_actor, product):
    context = OrderContext.load(placed_order.id)
    expected = datetime.utcnow() + timedelta(days=3)

    context.accept(supplier_actor, note='Packing today')
    context.ship(supplier_actor, tracking_number='TRK-1', expected_delivery_date=expected)
    order = context.deliver(supplier_actor)

    assert order.status == OrderStatus.DELIVERED.value
    assert order.confirmed_at <= order.shipped_at <= order.delivered_at
    assert order.tracking_number == 'TRK-1'
    assert [log.action for log in order.activity_logs] == ['placed', 'confirmed', 'shipped', 'delivered']
    assert 'TRK-1' in order.activity_logs[2].message
    # Fulfilled orders keep their stock
    assert stock_of(product) == 6


def test_cannot_ship_before_accepting(placed_order, supplier_actor):
    with pytest.raises(InvalidTransition, match="Cannot ship an order that is placed"):
        OrderContext.load(placed_order.id).ship(supplier_actor)


def test_buyer_cannot_cancel_confirmed_order(placed_order, supplier_actor, buyer_actor, product):
    context = OrderContext.load(placed_order.id)
    context.accept(supplier_actor)
    with pytest.raises(InvalidTransition):
        context.cancel(buyer_actor)
    assert stock_of(product) == 6


def test_other_supplier_cannot_touch_order(placed_order, other_supplier_actor):
    with pytest.raises(Forbidden):
        OrderContext.load(placed_order.id).accept(other_supplier_actor)


def test_buyer_cannot_accept_own_order(placed_order, buyer_actor):
    with pytest.raises(Forbidden):
        OrderContext.load(placed_order.id).accept(buyer_actor)


def test_stale_status_write_is_refused(placed_order, supplier_actor):
    context = OrderContext.load(placed_order.id)
    db.session.execute(
        update(Order).where(Order.id == placed_order.id).values(status=OrderStatus.CANCELLED.value)
    )
    with pytest.raises(InvalidTransition):
        context._compare_and_set({'status': OrderStatus.PLACED.value},
                                 {'status': OrderStatus.CONFIRMED.value})
    assert context.order.status == OrderStatus.CANCELLED.value


def test_unknown_order():
    with pytest.raises(NotFound):
        OrderContext.load(424242)


def test_admin_may_view_but_not_transition(placed_order, admin_actor):
    context = OrderContext.load(placed_order.id)
    context.require_viewer(admin_actor)
    with pytest.raises(Forbidden):
        context.accept(admin_actor)


def test_payment_proof_then_approval(placed_order, buyer_actor, supplier_actor, recorder):
    context = OrderContext.load(placed_order.id)

    order = context.upload_payment_proof(buyer_actor, 'bank-ref-001')
    assert order.payment_status == PaymentStatus.PENDING_REVIEW.value
    assert order.payment_proof == 'bank-ref-001'

    order = context.approve_payment(supplier_actor)
    assert order.payment_status == PaymentStatus.COMPLETED.value
    assert order.status == OrderStatus.PLACED.value
    assert recorder.sent[-1]['type'] == 'payment_completed'

    with pytest.raises(InvalidTransition):
        context.upload_payment_proof(buyer_actor, 'bank-ref-002')


def test_rejected_payment_clears_proof_and_allows_reupload(placed_order, buyer_actor, admin_actor, recorder):
    context = OrderContext.load(placed_order.id)
    context.upload_payment_proof(buyer_actor, 'bank-ref-001')

    order = context.reject_payment(admin_actor, reason='Amount mismatch')
    assert order.payment_status == PaymentStatus.FAILED.value
    assert order.payment_proof is None
    assert order.status == OrderStatus.PLACED.value
    assert recorder.sent[-1]['type'] == 'payment_failed'

    order = context.upload_payment_proof(buyer_actor, 'bank-ref-002')
    assert order.payment_status == PaymentStatus.PENDING_REVIEW.value


def test_payment_review_needs_a_proof(placed_order, supplier_actor):
    with pytest.raises(InvalidTransition):
        OrderContext.load(placed_order.id).approve_payment(supplier_actor)


def test_empty_payment_proof_is_refused(placed_order, buyer_actor):
    context = OrderContext.load(placed_order.id)
    with pytest.raises(InvalidRequest):
        context.upload_payment_proof(buyer_actor, '   ')
    assert context.order.payment_status == PaymentStatus.PENDING.value
    assert context.order.payment_proof is None


def test_cannot_pay_for_cancelled_order(placed_order, buyer_actor):
    context = OrderContext.load(placed_order.id)
    context.cancel(buyer_actor)
    with pytest.raises(InvalidTransition):
        context.upload_payment_proof(buyer_actor, 'bank-ref-001')
