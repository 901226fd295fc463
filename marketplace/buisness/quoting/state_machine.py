"""
State machine for quote negotiation

The supplier answers a pending quote; the buyer then accepts, cancels or
converts it into an order. Rejected, cancelled and converted quotes are final.
"""

from enum import Enum
from typing import Dict, List, NamedTuple, Set, Tuple

from marketplace.data.core.user import UserRole
from marketplace.data.quoting.quote_request import QuoteStatus
from marketplace.buisness.errors import InvalidTransition


class QuoteEvent(str, Enum):
    COUNTER = 'counter'
    ACCEPT = 'accept'
    REJECT = 'reject'
    BUYER_ACCEPT = 'buyer_accept'
    BUYER_CANCEL = 'buyer_cancel'
    CONVERT = 'convert'


class QuoteTransition(NamedTuple):
    to_status: QuoteStatus
    actor_role: UserRole


_SUPPLIER_ANSWERED = (QuoteStatus.SUPPLIER_COUNTER, QuoteStatus.SUPPLIER_ACCEPT)


class QuoteStateMachine:
    """State machine for QuoteRequest.status"""

    TERMINAL_STATES: Set[QuoteStatus] = {
        QuoteStatus.REJECTED, QuoteStatus.BUYER_CANCEL, QuoteStatus.CONVERTED,
    }

    CONVERTIBLE_STATES: Set[QuoteStatus] = {
        QuoteStatus.SUPPLIER_ACCEPT, QuoteStatus.BUYER_ACCEPT, QuoteStatus.SUPPLIER_COUNTER,
    }

    EVENT_ROLES: Dict[QuoteEvent, UserRole] = {
        QuoteEvent.COUNTER: UserRole.SUPPLIER,
        QuoteEvent.ACCEPT: UserRole.SUPPLIER,
        QuoteEvent.REJECT: UserRole.SUPPLIER,
        QuoteEvent.BUYER_ACCEPT: UserRole.MANUFACTURER,
        QuoteEvent.BUYER_CANCEL: UserRole.MANUFACTURER,
        QuoteEvent.CONVERT: UserRole.MANUFACTURER,
    }

    TRANSITIONS: Dict[Tuple[QuoteStatus, QuoteEvent], QuoteTransition] = {
        (QuoteStatus.PENDING, QuoteEvent.COUNTER): QuoteTransition(QuoteStatus.SUPPLIER_COUNTER, UserRole.SUPPLIER),
        (QuoteStatus.PENDING, QuoteEvent.ACCEPT): QuoteTransition(QuoteStatus.SUPPLIER_ACCEPT, UserRole.SUPPLIER),
        (QuoteStatus.PENDING, QuoteEvent.REJECT): QuoteTransition(QuoteStatus.REJECTED, UserRole.SUPPLIER),
    }
    for _state in _SUPPLIER_ANSWERED:
        TRANSITIONS[(_state, QuoteEvent.BUYER_ACCEPT)] = QuoteTransition(
            QuoteStatus.BUYER_ACCEPT, UserRole.MANUFACTURER)
        TRANSITIONS[(_state, QuoteEvent.BUYER_CANCEL)] = QuoteTransition(
            QuoteStatus.BUYER_CANCEL, UserRole.MANUFACTURER)
    for _state in CONVERTIBLE_STATES:
        TRANSITIONS[(_state, QuoteEvent.CONVERT)] = QuoteTransition(
            QuoteStatus.CONVERTED, UserRole.MANUFACTURER)
    del _state

    @classmethod
    def can_transition(cls, from_status, event) -> bool:
        try:
            key = (QuoteStatus(from_status), QuoteEvent(event))
        except ValueError:
            return False
        return key in cls.TRANSITIONS

    @classmethod
    def validate_transition(cls, from_status, event) -> QuoteTransition:
        """
        Raises:
            InvalidTransition: If ``event`` is not legal from ``from_status``
        """
        if not cls.can_transition(from_status, event):
            raise InvalidTransition(
                f"Cannot {getattr(event, 'value', event)} a quote that is "
                f"{getattr(from_status, 'value', from_status)}"
            )
        return cls.TRANSITIONS[(QuoteStatus(from_status), QuoteEvent(event))]

    @classmethod
    def get_allowed_events(cls, from_status) -> List[QuoteEvent]:
        status = QuoteStatus(from_status)
        return [event for (state, event) in cls.TRANSITIONS if state == status]

    @classmethod
    def is_terminal(cls, status) -> bool:
        return QuoteStatus(status) in cls.TERMINAL_STATES
