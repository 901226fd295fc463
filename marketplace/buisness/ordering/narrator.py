"""
OrderNarrator - message composer for order lifecycle events

Produces the text stored in the order activity log and in the notifications
sent to the counterparty, so both stay worded consistently.
"""

from typing import Optional


class OrderNarrator:
    """Composes activity log messages and notification copy for orders"""

    @staticmethod
    def order_placed(order) -> str:
        return f"Order {order.reference} was placed by buyer"

    @staticmethod
    def order_confirmed(order) -> str:
        return f"Order {order.reference} was confirmed by supplier"

    @staticmethod
    def order_rejected(order, reason: Optional[str] = None) -> str:
        message = f"Order {order.reference} was rejected by supplier"
        if reason:
            message += f" | Reason: {reason}"
        return message

    @staticmethod
    def order_cancelled(order, reason: Optional[str] = None) -> str:
        message = f"Order {order.reference} was cancelled by buyer"
        if reason:
            message += f" | Reason: {reason}"
        return message

    @staticmethod
    def order_shipped(order) -> str:
        message = f"Order {order.reference} was shipped"
        if order.tracking_number:
            message += f" | Tracking: {order.tracking_number}"
        if order.expected_delivery_date:
            message += f" | Expected: {order.expected_delivery_date.strftime('%Y-%m-%d')}"
        return message

    @staticmethod
    def order_delivered(order) -> str:
        return f"Order {order.reference} was delivered"

    @staticmethod
    def stock_released(order) -> str:
        count = len(order.items)
        return f"Reserved stock for {count} line(s) returned to inventory"

    @staticmethod
    def payment_proof_uploaded(order) -> str:
        return f"Payment proof uploaded for order {order.reference}"

    @staticmethod
    def payment_approved(order) -> str:
        return f"Payment for order {order.reference} was approved"

    @staticmethod
    def payment_rejected(order, reason: Optional[str] = None) -> str:
        message = f"Payment for order {order.reference} was rejected; please upload a new proof"
        if reason:
            message += f" | Reason: {reason}"
        return message

    @staticmethod
    def placed_from_quote(order, quote) -> str:
        return f"Order {order.reference} was placed from quote #{quote.id}"

    @staticmethod
    def placed_from_cart(order) -> str:
        return f"Order {order.reference} was placed from cart with {len(order.items)} line(s)"

    # Notification copy: event -> (type, title, message template)
    NOTIFICATIONS = {
        'placed': ('order_placed', "New Order Received", "You have a new order from {buyer}"),
        'accept': ('order_confirmed', "Order Accepted", "Your order has been accepted by the supplier"),
        'reject': ('order_rejected', "Order Rejected", "Your order has been rejected by the supplier"),
        'ship': ('order_in_transit', "Order Shipped", "Your order has been shipped by the supplier"),
        'deliver': ('order_delivered', "Order Delivered", "Your order has been delivered"),
        'cancel': ('order_cancelled', "Order Cancelled", "The order from {buyer} has been cancelled"),
        'payment_approved': ('payment_completed', "Payment Confirmed",
                             "Payment for order {reference} has been confirmed"),
        'payment_rejected': ('payment_failed', "Payment Rejected",
                             "Payment proof for order {reference} was rejected; please upload a new one"),
    }

    @classmethod
    def notification(cls, event: str, order, buyer_name: Optional[str] = None):
        """Return (type, title, message) for an order event"""
        event_type, title, template = cls.NOTIFICATIONS[event]
        message = template.format(buyer=buyer_name or "a buyer", reference=order.reference)
        return event_type, title, message
