"""
State machine for the order lifecycle

Encodes which (status, event) pairs are legal and which role may fire them.
Keeps "what is allowed" separate from "how persistence occurs".
"""

from enum import Enum
from typing import Dict, List, NamedTuple, Tuple

from marketplace.data.core.user import UserRole
from marketplace.data.ordering.order import OrderStatus, PaymentStatus
from marketplace.buisness.errors import InvalidTransition


class OrderEvent(str, Enum):
    ACCEPT = 'accept'
    REJECT = 'reject'
    CANCEL = 'cancel'
    SHIP = 'ship'
    DELIVER = 'deliver'


class OrderTransition(NamedTuple):
    to_status: OrderStatus
    actor_role: UserRole
    releases_stock: bool
    timestamp_field: str


class OrderStateMachine:
    """
    State machine for Order.status.

    Orders move forward only; rejected, delivered and cancelled are terminal.
    Every transition names the single role allowed to fire it. Ownership of
    the order is checked by the caller.
    """

    TERMINAL_STATES = {OrderStatus.REJECTED, OrderStatus.DELIVERED, OrderStatus.CANCELLED}

    TRANSITIONS: Dict[Tuple[OrderStatus, OrderEvent], OrderTransition] = {
        (OrderStatus.PLACED, OrderEvent.ACCEPT): OrderTransition(
            OrderStatus.CONFIRMED, UserRole.SUPPLIER, False, 'confirmed_at'),
        (OrderStatus.PLACED, OrderEvent.REJECT): OrderTransition(
            OrderStatus.REJECTED, UserRole.SUPPLIER, True, 'rejected_at'),
        (OrderStatus.PLACED, OrderEvent.CANCEL): OrderTransition(
            OrderStatus.CANCELLED, UserRole.MANUFACTURER, True, 'cancelled_at'),
        (OrderStatus.CONFIRMED, OrderEvent.SHIP): OrderTransition(
            OrderStatus.IN_TRANSIT, UserRole.SUPPLIER, False, 'shipped_at'),
        (OrderStatus.IN_TRANSIT, OrderEvent.DELIVER): OrderTransition(
            OrderStatus.DELIVERED, UserRole.SUPPLIER, False, 'delivered_at'),
    }

    # Role that may fire each event, independent of the current status
    EVENT_ROLES: Dict[OrderEvent, UserRole] = {
        OrderEvent.ACCEPT: UserRole.SUPPLIER,
        OrderEvent.REJECT: UserRole.SUPPLIER,
        OrderEvent.SHIP: UserRole.SUPPLIER,
        OrderEvent.DELIVER: UserRole.SUPPLIER,
        OrderEvent.CANCEL: UserRole.MANUFACTURER,
    }

    @classmethod
    def can_transition(cls, from_status, event) -> bool:
        try:
            key = (OrderStatus(from_status), OrderEvent(event))
        except ValueError:
            return False
        return key in cls.TRANSITIONS

    @classmethod
    def validate_transition(cls, from_status, event) -> OrderTransition:
        """
        Look up the transition for ``event`` fired from ``from_status``.

        Raises:
            InvalidTransition: If the pair is not in the transition table
        """
        if not cls.can_transition(from_status, event):
            raise InvalidTransition(
                f"Cannot {getattr(event, 'value', event)} an order that is "
                f"{getattr(from_status, 'value', from_status)}"
            )
        return cls.TRANSITIONS[(OrderStatus(from_status), OrderEvent(event))]

    @classmethod
    def get_allowed_events(cls, from_status) -> List[OrderEvent]:
        status = OrderStatus(from_status)
        return [event for (state, event) in cls.TRANSITIONS if state == status]

    @classmethod
    def is_terminal(cls, status) -> bool:
        return OrderStatus(status) in cls.TERMINAL_STATES


class PaymentStateMachine:
    """
    Payment sub-flow for an order.

    The buyer uploads a proof while payment is pending or after a rejected
    proof; the supplier (or an admin) then approves or rejects it. Payment
    never changes the order status.
    """

    UPLOADABLE = {PaymentStatus.PENDING, PaymentStatus.FAILED}
    REVIEWABLE = {PaymentStatus.PENDING_REVIEW}
    CLOSED_ORDER_STATES = {OrderStatus.REJECTED, OrderStatus.CANCELLED}

    @classmethod
    def validate_upload(cls, order_status, payment_status) -> None:
        if OrderStatus(order_status) in cls.CLOSED_ORDER_STATES:
            raise InvalidTransition(f"Cannot pay for an order that is {OrderStatus(order_status).value}")
        if PaymentStatus(payment_status) not in cls.UPLOADABLE:
            raise InvalidTransition(
                f"Payment proof cannot be uploaded while payment is {PaymentStatus(payment_status).value}"
            )

    @classmethod
    def validate_review(cls, payment_status) -> None:
        if PaymentStatus(payment_status) not in cls.REVIEWABLE:
            raise InvalidTransition(
                f"No payment proof awaiting review (payment is {PaymentStatus(payment_status).value})"
            )
