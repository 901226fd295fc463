"""
OrderFactory - creates orders from reserved stock

Direct purchase, cart checkout and quote conversion all end here so every
order gets the same snapshot lines, totals, reference, timeline and
"placed" activity entry.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Callable, List, Optional, Sequence

from marketplace import db
from marketplace.data.catalog.product import Product
from marketplace.data.core.user import User, UserRole
from marketplace.data.ordering.order import Order, OrderStatus, PaymentStatus
from marketplace.data.ordering.order_item import OrderItem
from marketplace.buisness.core.actor import Actor
from marketplace.buisness.core.validation import CENT, line_subtotal, require_quantity
from marketplace.buisness.errors import NotFound
from marketplace.buisness.inventory.inventory_ledger import InventoryLedger
from marketplace.buisness.notifications.notifier import PendingNotification, get_dispatcher
from marketplace.buisness.ordering.activity import append_activity
from marketplace.buisness.ordering.delivery import DeliveryInfo, resolve_delivery
from marketplace.buisness.ordering.narrator import OrderNarrator
from marketplace.logger import get_logger

logger = get_logger("marketplace.ordering")


@dataclass(frozen=True)
class OrderLine:
    product: Product
    quantity: int
    unit_price: Decimal


def load_available_product(product_id) -> Product:
    """Approved product or NotFound"""
    product = db.session.get(Product, product_id) if product_id is not None else None
    if product is None or not product.is_approved:
        raise NotFound(f"Product {product_id} not found")
    return product


class OrderFactory:
    """Builds Order aggregates; only ``place_direct`` commits"""

    def __init__(self, ledger: Optional[InventoryLedger] = None, dispatcher=None):
        self.ledger = ledger or InventoryLedger()
        self.dispatcher = dispatcher or get_dispatcher()

    @staticmethod
    def generate_reference(now: Optional[datetime] = None) -> str:
        now = now or datetime.utcnow()
        while True:
            reference = f"RAW-{now.strftime('%Y%m%d')}-{secrets.token_hex(3).upper()}"
            if not db.session.query(Order.id).filter_by(reference=reference).first():
                return reference

    def build_order(
        self,
        actor: Actor,
        supplier_id: int,
        lines: Sequence[OrderLine],
        payment_method: str,
        delivery: Optional[DeliveryInfo],
        stock_reserved: bool,
        buyer_note: Optional[str] = None,
        narrate: Optional[Callable[[Order], str]] = None,
    ) -> Order:
        """
        Create a ``placed`` order from already reserved lines and add it to the session.

        ``subtotal`` and ``total`` are computed here once and never recomputed.
        """
        now = datetime.utcnow()
        order = Order(
            reference=self.generate_reference(now),
            buyer_id=actor.id,
            supplier_id=supplier_id,
            status=OrderStatus.PLACED.value,
            payment_method=payment_method,
            payment_status=PaymentStatus.PENDING.value,
            stock_reserved=stock_reserved,
            placed_at=now,
            buyer_note=buyer_note,
        )

        total = Decimal('0.00')
        for line in lines:
            unit_price = Decimal(line.unit_price).quantize(CENT)
            subtotal = line_subtotal(unit_price, line.quantity)
            total += subtotal
            order.items.append(OrderItem(
                product_id=line.product.id,
                name=line.product.name,
                unit=line.product.unit,
                unit_price=unit_price,
                quantity=line.quantity,
                subtotal=subtotal,
            ))
        order.total = total

        if delivery is not None:
            delivery.apply_to(order)

        db.session.add(order)
        db.session.flush()
        append_activity(order, actor, 'placed', (narrate or OrderNarrator.order_placed)(order))
        return order

    def placed_notification(self, order: Order, buyer_name: Optional[str]) -> PendingNotification:
        event_type, title, message = OrderNarrator.notification('placed', order, buyer_name)
        return PendingNotification(
            user_id=order.supplier_id,
            event_type=event_type,
            title=title,
            message=message,
            data={'order_id': order.id, 'reference': order.reference},
        )

    def place_direct(
        self,
        actor: Actor,
        product_id: int,
        quantity,
        payment_method: Optional[str] = None,
        delivery: Optional[dict] = None,
        buyer_note: Optional[str] = None,
    ) -> Order:
        """
        Buy ``quantity`` of one product immediately.

        Raises:
            Forbidden: If the actor is not a buyer
            InvalidQuantity: If quantity < 1
            NotFound: If the product does not exist or is not approved
            InsufficientStock: If stock cannot cover the quantity
        """
        actor.require_role(UserRole.MANUFACTURER)
        quantity = require_quantity(quantity)

        try:
            product = load_available_product(product_id)
            buyer = db.session.get(User, actor.id)
            destination = resolve_delivery(delivery, buyer, required=False)

            self.ledger.reserve(product.id, quantity)
            order = self.build_order(
                actor,
                supplier_id=product.supplier_id,
                lines=[OrderLine(product, quantity, product.final_price)],
                payment_method=product.resolve_payment_method(payment_method),
                delivery=destination,
                stock_reserved=True,
                buyer_note=buyer_note,
            )
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        logger.info(f"Order {order.reference} placed by buyer {actor.id} for product {product.id} x{quantity}")
        self.dispatcher.dispatch([self.placed_notification(order, buyer.name if buyer else None)])
        return order

    def lines_for_products(self, entries) -> List[OrderLine]:
        """``entries`` yields (product, quantity) pairs; prices are read at call time"""
        return [OrderLine(product, quantity, product.final_price) for product, quantity in entries]
