"""
OrderContext - Domain Facade for the order aggregate

Provides an intention-revealing interface for order transitions and the
payment sub-flow. Every status write is a compare-and-set on the status the
transition started from, so two racing actors cannot both succeed.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import update

from marketplace import db
from marketplace.data.core.user import User, UserRole
from marketplace.data.ordering.order import Order, PaymentStatus
from marketplace.buisness.core.actor import Actor
from marketplace.buisness.errors import Forbidden, InvalidRequest, InvalidTransition, NotFound
from marketplace.buisness.inventory.inventory_ledger import InventoryLedger
from marketplace.buisness.notifications.notifier import PendingNotification, get_dispatcher
from marketplace.buisness.ordering.activity import append_activity
from marketplace.buisness.ordering.narrator import OrderNarrator
from marketplace.buisness.ordering.state_machine import OrderEvent, OrderStateMachine, PaymentStateMachine
from marketplace.logger import get_logger

logger = get_logger("marketplace.ordering")


class OrderContext:
    """
    Domain Facade for a single order.

    Pattern: Domain Facade / Aggregate Controller
    """

    def __init__(self, order_id: Optional[int] = None, order: Optional[Order] = None,
                 ledger: Optional[InventoryLedger] = None, dispatcher=None):
        if order is not None:
            self.order = order
        elif order_id is not None:
            self.order = db.session.get(Order, order_id)
            if self.order is None:
                raise NotFound(f"Order {order_id} not found")
        else:
            raise ValueError("Either order_id or order must be provided")

        self.order_id = self.order.id
        self.ledger = ledger or InventoryLedger()
        self.dispatcher = dispatcher or get_dispatcher()

    @classmethod
    def load(cls, order_id: int, **kwargs) -> 'OrderContext':
        return cls(order_id=order_id, **kwargs)

    # ------------------------------------------------------------------
    # Access checks
    # ------------------------------------------------------------------

    def _require_owner(self, actor: Actor, role: UserRole) -> None:
        if actor.role != role.value:
            raise Forbidden(f"Only the {role.value} of this order may do that")
        owner_id = self.order.supplier_id if role == UserRole.SUPPLIER else self.order.buyer_id
        if owner_id != actor.id:
            raise Forbidden("You do not own this order")

    def require_viewer(self, actor: Actor) -> None:
        """Buyer owner, supplier owner or admin may read the order"""
        if actor.is_admin:
            return
        if actor.id not in (self.order.buyer_id, self.order.supplier_id):
            raise Forbidden("Access denied")

    # ------------------------------------------------------------------
    # Persistence helpers
    # ------------------------------------------------------------------

    def _compare_and_set(self, expected: dict, values: dict) -> None:
        """UPDATE the order only if every ``expected`` column still holds its value"""
        conditions = [Order.id == self.order_id]
        conditions.extend(getattr(Order, column) == value for column, value in expected.items())
        values = dict(values, updated_at=datetime.utcnow())
        result = db.session.execute(
            update(Order).where(*conditions).values(**values).execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            db.session.refresh(self.order)
            raise InvalidTransition(
                f"Order {self.order.reference} changed concurrently (now {self.order.status})"
            )
        db.session.refresh(self.order)

    def release_reserved_stock(self) -> bool:
        """
        Return the order's reserved stock to inventory once.

        The ``stock_reserved`` flag is flipped with a compare-and-set before any
        stock moves; if it was already false nothing is released.

        Returns:
            bool: True if stock was released by this call
        """
        result = db.session.execute(
            update(Order)
            .where(Order.id == self.order_id, Order.stock_reserved.is_(True))
            .values(stock_reserved=False)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            logger.debug(f"Order {self.order.reference} holds no reserved stock; release skipped")
            db.session.refresh(self.order)
            return False

        for item in self.order.items:
            self.ledger.release(item.product_id, item.quantity)
        db.session.refresh(self.order)
        logger.info(f"Released reserved stock for order {self.order.reference}")
        return True

    def _notify(self, event: str, recipient_id: int) -> None:
        buyer = db.session.get(User, self.order.buyer_id)
        event_type, title, message = OrderNarrator.notification(event, self.order, buyer.name if buyer else None)
        self.dispatcher.dispatch([PendingNotification(
            user_id=recipient_id,
            event_type=event_type,
            title=title,
            message=message,
            data={'order_id': self.order.id, 'reference': self.order.reference},
        )])

    # ------------------------------------------------------------------
    # Status transitions
    # ------------------------------------------------------------------

    def _transition(self, actor: Actor, event: OrderEvent, extra_values: Optional[dict] = None,
                    reason: Optional[str] = None) -> Order:
        self._require_owner(actor, OrderStateMachine.EVENT_ROLES[event])
        from_status = self.order.status
        transition = OrderStateMachine.validate_transition(from_status, event)

        try:
            values = {'status': transition.to_status.value, transition.timestamp_field: datetime.utcnow()}
            values.update(extra_values or {})
            self._compare_and_set({'status': from_status}, values)

            if transition.releases_stock:
                self.release_reserved_stock()

            message = self._narrate(event, reason)
            append_activity(self.order, actor, self._action_name(event), message)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        logger.info(
            f"Order {self.order.reference}: {from_status} -> {self.order.status} "
            f"by {actor.role} {actor.id}"
        )
        recipient = self.order.supplier_id if actor.id == self.order.buyer_id else self.order.buyer_id
        self._notify(event.value, recipient)
        return self.order

    @staticmethod
    def _action_name(event: OrderEvent) -> str:
        return {
            OrderEvent.ACCEPT: 'confirmed',
            OrderEvent.REJECT: 'rejected',
            OrderEvent.CANCEL: 'cancelled',
            OrderEvent.SHIP: 'shipped',
            OrderEvent.DELIVER: 'delivered',
        }[event]

    def _narrate(self, event: OrderEvent, reason: Optional[str]) -> str:
        if event == OrderEvent.ACCEPT:
            return OrderNarrator.order_confirmed(self.order)
        if event == OrderEvent.REJECT:
            return OrderNarrator.order_rejected(self.order, reason)
        if event == OrderEvent.CANCEL:
            return OrderNarrator.order_cancelled(self.order, reason)
        if event == OrderEvent.SHIP:
            return OrderNarrator.order_shipped(self.order)
        return OrderNarrator.order_delivered(self.order)

    def accept(self, actor: Actor, note: Optional[str] = None) -> Order:
        extra = {'supplier_note': note} if note else None
        return self._transition(actor, OrderEvent.ACCEPT, extra)

    def reject(self, actor: Actor, reason: Optional[str] = None) -> Order:
        extra = {'supplier_note': reason} if reason else None
        return self._transition(actor, OrderEvent.REJECT, extra, reason=reason)

    def cancel(self, actor: Actor, reason: Optional[str] = None) -> Order:
        return self._transition(actor, OrderEvent.CANCEL, reason=reason)

    def ship(self, actor: Actor, tracking_number: Optional[str] = None,
             expected_delivery_date: Optional[datetime] = None) -> Order:
        extra = {}
        if tracking_number:
            extra['tracking_number'] = tracking_number
        if expected_delivery_date:
            extra['expected_delivery_date'] = expected_delivery_date
        return self._transition(actor, OrderEvent.SHIP, extra)

    def deliver(self, actor: Actor) -> Order:
        return self._transition(actor, OrderEvent.DELIVER)

    # ------------------------------------------------------------------
    # Payment
    # ------------------------------------------------------------------

    def _require_payment_reviewer(self, actor: Actor) -> None:
        if actor.is_admin:
            return
        self._require_owner(actor, UserRole.SUPPLIER)

    def upload_payment_proof(self, actor: Actor, proof_reference: str) -> Order:
        """Attach an opaque payment proof reference and queue it for supplier review"""
        self._require_owner(actor, UserRole.MANUFACTURER)
        if not proof_reference or not str(proof_reference).strip():
            raise InvalidRequest("Payment proof reference is required")
        from_payment = self.order.payment_status
        PaymentStateMachine.validate_upload(self.order.status, from_payment)

        try:
            self._compare_and_set(
                {'payment_status': from_payment},
                {'payment_status': PaymentStatus.PENDING_REVIEW.value, 'payment_proof': str(proof_reference).strip()},
            )
            append_activity(self.order, actor, 'payment_proof_uploaded',
                            OrderNarrator.payment_proof_uploaded(self.order))
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        logger.info(f"Payment proof uploaded for order {self.order.reference}")
        return self.order

    def approve_payment(self, actor: Actor) -> Order:
        self._require_payment_reviewer(actor)
        from_payment = self.order.payment_status
        PaymentStateMachine.validate_review(from_payment)

        try:
            self._compare_and_set(
                {'payment_status': from_payment},
                {'payment_status': PaymentStatus.COMPLETED.value},
            )
            append_activity(self.order, actor, 'payment_approved', OrderNarrator.payment_approved(self.order))
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        logger.info(f"Payment approved for order {self.order.reference} by {actor.role} {actor.id}")
        self._notify('payment_approved', self.order.buyer_id)
        return self.order

    def reject_payment(self, actor: Actor, reason: Optional[str] = None) -> Order:
        """Mark the payment failed and clear the proof; the order status is left untouched"""
        self._require_payment_reviewer(actor)
        from_payment = self.order.payment_status
        PaymentStateMachine.validate_review(from_payment)

        try:
            self._compare_and_set(
                {'payment_status': from_payment},
                {'payment_status': PaymentStatus.FAILED.value, 'payment_proof': None},
            )
            append_activity(self.order, actor, 'payment_rejected',
                            OrderNarrator.payment_rejected(self.order, reason))
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        logger.info(f"Payment rejected for order {self.order.reference} by {actor.role} {actor.id}")
        self._notify('payment_rejected', self.order.buyer_id)
        return self.order
