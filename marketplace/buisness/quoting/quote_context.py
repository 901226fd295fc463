"""
QuoteContext - Domain Facade for quote negotiation

Creates quote requests against negotiable products, applies supplier and
buyer responses, and converts an agreed quote into an order through the same
reservation path as a direct purchase.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import update

from marketplace import db
from marketplace.data.core.user import User, UserRole
from marketplace.data.quoting.quote_request import QuoteRequest, QuoteStatus
from marketplace.buisness.core.actor import Actor
from marketplace.buisness.core.validation import require_price, require_quantity
from marketplace.buisness.errors import (
    Forbidden, InsufficientStock, InvalidRequest, InvalidTransition, NotFound, NotNegotiable,
)
from marketplace.buisness.inventory.inventory_ledger import InventoryLedger
from marketplace.buisness.notifications.notifier import PendingNotification, get_dispatcher
from marketplace.buisness.ordering.delivery import resolve_delivery
from marketplace.buisness.ordering.narrator import OrderNarrator
from marketplace.buisness.ordering.order_factory import OrderFactory, OrderLine, load_available_product
from marketplace.buisness.quoting.narrator import QuoteNarrator
from marketplace.buisness.quoting.state_machine import QuoteEvent, QuoteStateMachine
from marketplace.logger import get_logger

logger = get_logger("marketplace.quoting")

SUPPLIER_ACTIONS = {
    'counter': QuoteEvent.COUNTER,
    'accept': QuoteEvent.ACCEPT,
    'reject': QuoteEvent.REJECT,
}

BUYER_ACTIONS = {
    'accept': QuoteEvent.BUYER_ACCEPT,
    'cancel': QuoteEvent.BUYER_CANCEL,
}


def _user_name(user_id):
    user = db.session.get(User, user_id)
    return user.name if user else None


class QuoteContext:
    """
    Domain Facade for a single quote request.

    Pattern: Domain Facade / Aggregate Controller
    """

    def __init__(self, quote_id: Optional[int] = None, quote: Optional[QuoteRequest] = None,
                 ledger: Optional[InventoryLedger] = None, dispatcher=None):
        if quote is not None:
            self.quote = quote
        elif quote_id is not None:
            self.quote = db.session.get(QuoteRequest, quote_id)
            if self.quote is None:
                raise NotFound(f"Quote {quote_id} not found")
        else:
            raise ValueError("Either quote_id or quote must be provided")

        self.quote_id = self.quote.id
        self.ledger = ledger or InventoryLedger()
        self.dispatcher = dispatcher or get_dispatcher()

    @classmethod
    def load(cls, quote_id: int, **kwargs) -> 'QuoteContext':
        return cls(quote_id=quote_id, **kwargs)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    @classmethod
    def request(cls, actor: Actor, product_id: int, quantity, notes: Optional[str] = None,
                dispatcher=None) -> 'QuoteContext':
        """
        Open a quote on a negotiable product.

        The product's name, unit and current price are frozen into the quote
        and never updated afterwards.

        Raises:
            Forbidden: If the actor is not a buyer
            InvalidQuantity: If quantity < 1
            NotFound: If the product does not exist or is not approved
            NotNegotiable: If the product is fixed-price
        """
        actor.require_role(UserRole.MANUFACTURER)
        quantity = require_quantity(quantity)
        product = load_available_product(product_id)
        if not product.negotiable:
            raise NotNegotiable(f"Product '{product.name}' is not open to negotiation")

        quote = QuoteRequest(
            buyer_id=actor.id,
            supplier_id=product.supplier_id,
            product_id=product.id,
            snapshot_name=product.name,
            snapshot_unit=product.unit,
            snapshot_price=product.price,
            quantity_requested=quantity,
            notes=notes,
            status=QuoteStatus.PENDING.value,
        )
        try:
            db.session.add(quote)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        logger.info(f"Quote {quote.id} requested by buyer {actor.id} for product {product.id} x{quantity}")
        context = cls(quote=quote, dispatcher=dispatcher)
        context._notify(QuoteNarrator.requested(quote, _user_name(actor.id)), quote.supplier_id)
        return context

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_owner(self, actor: Actor, role: UserRole) -> None:
        if actor.role != role.value:
            raise Forbidden(f"Only the {role.value} of this quote may do that")
        owner_id = self.quote.supplier_id if role == UserRole.SUPPLIER else self.quote.buyer_id
        if owner_id != actor.id:
            raise Forbidden("You do not own this quote")

    def require_viewer(self, actor: Actor) -> None:
        if actor.is_admin:
            return
        if actor.id not in (self.quote.buyer_id, self.quote.supplier_id):
            raise Forbidden("Access denied")

    def _compare_and_set_status(self, expected_status: str, values: dict) -> None:
        result = db.session.execute(
            update(QuoteRequest)
            .where(QuoteRequest.id == self.quote_id, QuoteRequest.status == expected_status)
            .values(**values, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        db.session.refresh(self.quote)
        if result.rowcount != 1:
            raise InvalidTransition(f"Quote {self.quote_id} changed concurrently (now {self.quote.status})")

    def _apply(self, actor: Actor, event: QuoteEvent, values: dict) -> QuoteRequest:
        self._require_owner(actor, QuoteStateMachine.EVENT_ROLES[event])
        from_status = self.quote.status
        transition = QuoteStateMachine.validate_transition(from_status, event)

        try:
            self._compare_and_set_status(from_status, dict(values, status=transition.to_status.value))
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        logger.info(f"Quote {self.quote_id}: {from_status} -> {self.quote.status} by {actor.role} {actor.id}")
        return self.quote

    def _notify(self, copy, recipient_id: int, data: Optional[dict] = None) -> None:
        event_type, title, message = copy
        payload = {'quote_id': self.quote.id}
        payload.update(data or {})
        self.dispatcher.dispatch([PendingNotification(recipient_id, event_type, title, message, payload)])

    # ------------------------------------------------------------------
    # Supplier response
    # ------------------------------------------------------------------

    def respond(self, actor: Actor, action: str, proposed_price=None, minimum_qty=None,
                message: Optional[str] = None) -> QuoteRequest:
        """
        Supplier answers a pending quote with ``counter``, ``accept`` or ``reject``.

        ``counter`` requires a positive proposed price. ``accept`` fixes the
        snapshot price as the agreed price.
        """
        event = SUPPLIER_ACTIONS.get(action)
        if event is None:
            raise InvalidRequest(f"Unknown supplier action: {action!r}")
        self._require_owner(actor, UserRole.SUPPLIER)

        values = {}
        if message is not None:
            values['supplier_message'] = message

        if event == QuoteEvent.COUNTER:
            values['counter_price'] = require_price(proposed_price)
            if minimum_qty is not None:
                values['counter_minimum_qty'] = require_quantity(minimum_qty)
        elif event == QuoteEvent.ACCEPT:
            values['counter_price'] = self.quote.effective_price

        quote = self._apply(actor, event, values)
        supplier_name = _user_name(actor.id)
        if event == QuoteEvent.COUNTER:
            self._notify(QuoteNarrator.countered(quote, supplier_name), quote.buyer_id)
        elif event == QuoteEvent.ACCEPT:
            self._notify(QuoteNarrator.accepted(quote, supplier_name), quote.buyer_id)
        else:
            self._notify(QuoteNarrator.rejected(quote, supplier_name), quote.buyer_id)
        return quote

    # ------------------------------------------------------------------
    # Buyer response
    # ------------------------------------------------------------------

    def buyer_action(self, actor: Actor, action: str) -> QuoteRequest:
        """Buyer ``accept``s or ``cancel``s a quote the supplier has answered"""
        event = BUYER_ACTIONS.get(action)
        if event is None:
            raise InvalidRequest(f"Unknown buyer action: {action!r}")

        quote = self._apply(actor, event, {})
        buyer_name = _user_name(actor.id)
        if event == QuoteEvent.BUYER_ACCEPT:
            self._notify(QuoteNarrator.buyer_accepted(quote, buyer_name), quote.supplier_id)
        else:
            self._notify(QuoteNarrator.buyer_cancelled(quote, buyer_name), quote.supplier_id)
        return quote

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------

    def convert_to_order(self, actor: Actor, payment_method: Optional[str] = None,
                         delivery: Optional[dict] = None, buyer_note: Optional[str] = None):
        """
        Turn an agreed quote into a placed order.

        Live stock is checked again because time may have passed since the
        quote was opened, but the price stays at the countered or snapshot
        price.

        Raises:
            InvalidTransition: If the quote is not in a convertible state
            NotFound: If the product is no longer approved
            InsufficientStock: If live stock cannot cover the requested quantity
        """
        self._require_owner(actor, UserRole.MANUFACTURER)
        from_status = self.quote.status
        QuoteStateMachine.validate_transition(from_status, QuoteEvent.CONVERT)

        product = load_available_product(self.quote.product_id)

        quantity = self.quote.quantity_requested
        available = self.ledger.available(product.id)
        if available < quantity:
            raise InsufficientStock(
                f"Insufficient stock for '{product.name}': requested {quantity}, available {available}"
            )

        factory = OrderFactory(ledger=self.ledger, dispatcher=self.dispatcher)
        try:
            buyer = db.session.get(User, actor.id)
            destination = resolve_delivery(delivery, buyer, required=False)

            reservation = self.ledger.reserve(product.id, quantity)

            order = factory.build_order(
                actor,
                supplier_id=self.quote.supplier_id,
                lines=[OrderLine(product, quantity, self.quote.effective_price)],
                payment_method=product.resolve_payment_method(payment_method),
                delivery=destination,
                stock_reserved=reservation.quantity == quantity,
                buyer_note=buyer_note or self.quote.notes,
                narrate=lambda placed: OrderNarrator.placed_from_quote(placed, self.quote),
            )
            self._compare_and_set_status(
                from_status, {'status': QuoteStatus.CONVERTED.value, 'order_id': order.id}
            )
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        logger.info(f"Quote {self.quote_id} converted to order {order.reference} by buyer {actor.id}")
        self._notify(
            QuoteNarrator.converted(self.quote, order, buyer.name if buyer else None),
            self.quote.supplier_id,
            {'order_id': order.id, 'reference': order.reference},
        )
        return order
