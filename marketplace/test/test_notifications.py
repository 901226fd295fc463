"""
Best-effort notification delivery
"""
import pytest

from marketplace.data.notifications.notification import Notification
from marketplace.data.ordering.order import OrderStatus
from marketplace.buisness.errors import NotFound
from marketplace.buisness.notifications.notifier import (
    NotificationDispatcher, PendingNotification, mark_read, set_default_notifier,
)
from marketplace.buisness.ordering.order_context import OrderContext
from marketplace.buisness.ordering.order_factory import OrderFactory
from marketplace.services.notification_service import NotificationService
from marketplace.test.conftest import FailingNotifier, stock_of


def test_failed_notifications_do_not_fail_operations(buyer_actor, supplier_actor, product):
    set_default_notifier(FailingNotifier())

    order = OrderFactory().place_direct(buyer_actor, product.id, 2)
    order = OrderContext.load(order.id).reject(supplier_actor)

    assert order.status == OrderStatus.REJECTED.value
    assert stock_of(product) == 10
    assert Notification.query.count() == 0


def test_dispatch_counts_deliveries():
    dispatcher = NotificationDispatcher(FailingNotifier())
    pending = [PendingNotification(1, 'order_placed', 'New Order', 'hello')]
    assert dispatcher.dispatch(pending) == 0


def test_database_notifier_stores_rows(buyer_actor, supplier, product):
    OrderFactory().place_direct(buyer_actor, product.id, 1)

    [notification] = NotificationService.for_user(supplier.id)
    assert notification.type == 'order_placed'
    assert notification.title == 'New Order Received'
    assert 'Factory Buyer' in notification.message
    assert notification.data['reference'].startswith('RAW-')
    assert NotificationService.unread_count(supplier.id) == 1


def test_mark_read(buyer_actor, supplier, supplier_actor, buyer, product):
    OrderFactory().place_direct(buyer_actor, product.id, 1)
    OrderFactory().place_direct(buyer_actor, product.id, 1)
    first, second = NotificationService.for_user(supplier.id)

    with pytest.raises(NotFound):
        mark_read(buyer_actor, first.id)

    assert mark_read(supplier_actor, first.id) == 1
    assert NotificationService.unread_count(supplier.id) == 1
    assert mark_read(supplier_actor) == 1
    assert NotificationService.for_user(supplier.id, unread_only=True) == []
