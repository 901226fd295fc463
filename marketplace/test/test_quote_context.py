"""
Quote negotiation and conversion to orders
"""
from decimal import Decimal

import pytest
from sqlalchemy.orm.attributes import set_committed_value

from marketplace import db
from marketplace.data.catalog.product import Product
from marketplace.data.ordering.order import Order, OrderStatus
from marketplace.data.quoting.quote_request import QuoteStatus
from marketplace.buisness.errors import (
    Forbidden, InsufficientStock, InvalidPrice, InvalidQuantity, InvalidRequest, InvalidTransition, NotFound,
    NotNegotiable,
)
from marketplace.buisness.catalog.product_context import ProductContext
from marketplace.buisness.inventory.inventory_ledger import InventoryLedger
from marketplace.buisness.quoting.quote_context import QuoteContext
from marketplace.buisness.quoting.state_machine import QuoteEvent, QuoteStateMachine
from marketplace.test.conftest import stock_of


@pytest.fixture
def quote(buyer_actor, negotiable_product):
    return QuoteContext.request(buyer_actor, negotiable_product.id, 5, notes='Monthly supply').quote


def test_counter_accept_convert(quote, buyer_actor, supplier_actor, negotiable_product, recorder):
    """Price 100 x5, countered at 90, accepted and converted"""
    context = QuoteContext.load(quote.id)

    context.respond(supplier_actor, 'counter', proposed_price='90', message='Best we can do')
    assert context.quote.status == QuoteStatus.SUPPLIER_COUNTER.value
    assert context.quote.counter_price == Decimal('90.00')

    context.buyer_action(buyer_actor, 'accept')
    assert context.quote.status == QuoteStatus.BUYER_ACCEPT.value

    order = context.convert_to_order(buyer_actor)

    assert stock_of(negotiable_product) == 15
    assert order.status == OrderStatus.PLACED.value
    [item] = order.items
    assert item.unit_price == Decimal('90.00')
    assert item.quantity == 5
    assert item.subtotal == Decimal('450.00')
    assert order.total == Decimal('450.00')
    assert order.stock_reserved is True
    assert f"quote #{quote.id}" in order.activity_logs[0].message

    assert context.quote.status == QuoteStatus.CONVERTED.value
    assert context.quote.order_id == order.id

    with pytest.raises(InvalidTransition):
        context.convert_to_order(buyer_actor)
    assert stock_of(negotiable_product) == 15

    assert [sent['type'] for sent in recorder.sent] == [
        'quote_countered', 'quote_buyer_accepted', 'quote_converted',
    ]


def test_snapshot_is_frozen(quote, negotiable_product):
    negotiable_product.price = Decimal('150.00')
    negotiable_product.name = 'Renamed'
    db.session.commit()

    db.session.refresh(quote)
    assert quote.snapshot_price == Decimal('100.00')
    assert quote.snapshot_name == 'Indigo Dye'


def test_conversion_keeps_snapshot_price(quote, buyer_actor, supplier_actor, negotiable_product):
    context = QuoteContext.load(quote.id)
    context.respond(supplier_actor, 'accept')
    negotiable_product.price = Decimal('130.00')
    db.session.commit()

    order = context.convert_to_order(buyer_actor)
    assert order.items[0].unit_price == Decimal('100.00')


def test_conversion_checks_live_stock(quote, buyer_actor, supplier_actor, negotiable_product):
    context = QuoteContext.load(quote.id)
    context.respond(supplier_actor, 'accept')
    InventoryLedger().reserve(negotiable_product.id, 17)
    db.session.commit()

    with pytest.raises(InsufficientStock):
        context.convert_to_order(buyer_actor)
    assert stock_of(negotiable_product) == 3
    assert context.quote.status == QuoteStatus.SUPPLIER_ACCEPT.value


def test_fixed_price_product_is_not_negotiable(buyer_actor, product):
    with pytest.raises(NotNegotiable):
        QuoteContext.request(buyer_actor, product.id, 5)


def test_quote_quantity_must_be_positive(buyer_actor, negotiable_product):
    with pytest.raises(InvalidQuantity):
        QuoteContext.request(buyer_actor, negotiable_product.id, 0)


def test_counter_price_must_be_positive(quote, supplier_actor):
    context = QuoteContext.load(quote.id)
    for bad in (None, 0, '-5', 'abc'):
        with pytest.raises(InvalidPrice):
            context.respond(supplier_actor, 'counter', proposed_price=bad)
    assert context.quote.status == QuoteStatus.PENDING.value


def test_supplier_reject_is_final(quote, supplier_actor, buyer_actor):
    context = QuoteContext.load(quote.id)
    context.respond(supplier_actor, 'reject', message='Not available')
    assert QuoteStateMachine.is_terminal(context.quote.status)
    with pytest.raises(InvalidTransition):
        context.buyer_action(buyer_actor, 'accept')
    with pytest.raises(InvalidTransition):
        context.convert_to_order(buyer_actor)


def test_pending_quote_cannot_be_converted(quote, buyer_actor):
    with pytest.raises(InvalidTransition):
        QuoteContext.load(quote.id).convert_to_order(buyer_actor)


def test_buyer_cancel_after_counter(quote, supplier_actor, buyer_actor):
    context = QuoteContext.load(quote.id)
    context.respond(supplier_actor, 'counter', proposed_price='95.50')
    context.buyer_action(buyer_actor, 'cancel')
    assert context.quote.status == QuoteStatus.BUYER_CANCEL.value


def test_unknown_actions_are_invalid_requests(quote, supplier_actor, buyer_actor):
    context = QuoteContext.load(quote.id)
    with pytest.raises(InvalidRequest):
        context.respond(supplier_actor, 'haggle')
    with pytest.raises(InvalidRequest):
        context.buyer_action(buyer_actor, 'maybe')


def test_only_owning_parties_act(quote, other_supplier_actor, buyer_actor, supplier_actor):
    context = QuoteContext.load(quote.id)
    with pytest.raises(Forbidden):
        context.respond(other_supplier_actor, 'accept')
    with pytest.raises(Forbidden):
        context.respond(buyer_actor, 'accept')
    context.respond(supplier_actor, 'accept')
    with pytest.raises(Forbidden):
        context.convert_to_order(supplier_actor)


def test_convertible_states():
    assert QuoteStateMachine.CONVERTIBLE_STATES == {
        QuoteStatus.SUPPLIER_ACCEPT, QuoteStatus.BUYER_ACCEPT, QuoteStatus.SUPPLIER_COUNTER,
    }
    for status in QuoteStatus:
        allowed = QuoteStateMachine.can_transition(status, QuoteEvent.CONVERT)
        assert allowed == (status in QuoteStateMachine.CONVERTIBLE_STATES)


def test_unapproved_product_disappears_from_quotes(buyer_actor, negotiable_product):
    negotiable_product.status = 'pending'
    db.session.commit()
    with pytest.raises(NotFound):
        QuoteContext.request(buyer_actor, negotiable_product.id, 1)
    assert db.session.get(Product, negotiable_product.id) is not None


def test_conversion_requires_an_approved_product(quote, buyer_actor, supplier_actor, negotiable_product):
    context = QuoteContext.load(quote.id)
    context.respond(supplier_actor, 'accept')
    ProductContext(product=negotiable_product).update(supplier_actor, {'price': '1.00'})

    with pytest.raises(NotFound):
        context.convert_to_order(buyer_actor)
    assert stock_of(negotiable_product) == 20
    assert context.quote.status == QuoteStatus.SUPPLIER_ACCEPT.value
    assert Order.query.count() == 0


def test_stale_conversion_is_refused(quote, buyer_actor, supplier_actor, negotiable_product):
    QuoteContext.load(quote.id).respond(supplier_actor, 'counter', proposed_price='90')
    first = QuoteContext.load(quote.id)
    second = QuoteContext.load(quote.id)

    first.convert_to_order(buyer_actor)
    assert stock_of(negotiable_product) == 15

    db.session.refresh(second.quote)
    # ``second`` still holds the status it read before the conversion
    set_committed_value(second.quote, 'status', QuoteStatus.SUPPLIER_COUNTER.value)
    with pytest.raises(InvalidTransition):
        second.convert_to_order(buyer_actor)

    assert stock_of(negotiable_product) == 15
    assert Order.query.count() == 1
    assert second.quote.status == QuoteStatus.CONVERTED.value


def test_non_owner_is_refused_before_price_checks(quote, other_supplier_actor):
    context = QuoteContext.load(quote.id)
    with pytest.raises(Forbidden):
        context.respond(other_supplier_actor, 'counter', proposed_price='-5')
    assert context.quote.status == QuoteStatus.PENDING.value
