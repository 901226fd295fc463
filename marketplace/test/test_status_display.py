"""
Status badges and timelines
"""
import pytest

from marketplace.data.ordering.order import OrderStatus
from marketplace.buisness.ordering.order_context import OrderContext
from marketplace.buisness.ordering.order_factory import OrderFactory
from marketplace.buisness.ordering.status_display import STATUS_BADGES, order_timeline, status_badge
from marketplace.services.order_service import OrderService


def test_every_status_has_a_badge():
    assert set(STATUS_BADGES) == set(OrderStatus)


def test_badge_lookup():
    badge = status_badge('in_transit')
    assert badge.label == 'In Transit'
    assert badge.progress == 70
    assert status_badge(OrderStatus.DELIVERED).progress == 100
    assert status_badge('placed').step == 1


def test_unknown_status_is_an_error():
    with pytest.raises(ValueError):
        status_badge('lost')


def test_timeline_follows_transitions(buyer_actor, supplier_actor, product):
    order = OrderFactory().place_direct(buyer_actor, product.id, 1)
    OrderContext.load(order.id).accept(supplier_actor)

    steps = order_timeline(order)
    assert [step['step'] for step in steps] == ['Placed', 'Confirmed', 'Shipped', 'Delivered']
    assert steps[0]['at'] is not None
    assert steps[1]['at'] is not None
    assert steps[2]['at'] is None

    view = OrderService.status_view(order)
    assert view['badge']['label'] == 'Confirmed'
    assert view['status'] == 'confirmed'
