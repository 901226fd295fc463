"""
Order Service
Read-side queries for orders: role-scoped lists, admin filtering, tracking views
and invoice listings.
"""

from datetime import datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional, Tuple

from flask import Request
from flask_sqlalchemy.pagination import Pagination

from marketplace.data.ordering.order import Order
from marketplace.buisness.core.actor import Actor
from marketplace.buisness.errors import InvalidRequest
from marketplace.buisness.invoicing.invoice_summary import format_invoice_list, format_invoice_summary, party_summary
from marketplace.buisness.ordering.order_context import OrderContext
from marketplace.buisness.ordering.status_display import order_timeline, status_badge


class OrderService:
    """
    Service for order presentation data.

    Provides methods for:
    - Listing a buyer's or supplier's orders
    - Building filtered, paginated admin order lists
    - Tracking, timeline and activity log views
    - Invoice summaries and lists
    """

    @staticmethod
    def scoped_query(actor: Actor):
        """Buyers see their purchases, suppliers their sales, admins everything"""
        query = Order.query
        if actor.is_buyer:
            query = query.filter(Order.buyer_id == actor.id)
        elif actor.is_supplier:
            query = query.filter(Order.supplier_id == actor.id)
        return query.order_by(Order.created_at.desc(), Order.id.desc())

    @staticmethod
    def supplier_orders(actor: Actor, status: Optional[str] = None) -> List[Order]:
        query = OrderService.scoped_query(actor)
        if status:
            query = query.filter(Order.status == status)
        return query.all()

    @staticmethod
    def build_filtered_query(
        status: Optional[str] = None,
        supplier_id: Optional[int] = None,
        buyer_id: Optional[int] = None,
        payment_method: Optional[str] = None,
        min_total: Optional[Decimal] = None,
        max_total: Optional[Decimal] = None,
        created_from: Optional[datetime] = None,
        created_to: Optional[datetime] = None,
    ):
        """
        Build a filtered order query for the admin list.

        Args:
            status: Filter by order status
            supplier_id: Filter by supplier
            buyer_id: Filter by buyer
            payment_method: Filter by payment method
            min_total: total >= this amount
            max_total: total <= this amount
            created_from: created_at >= this date
            created_to: created_at before the end of this date

        Returns:
            SQLAlchemy query object
        """
        query = Order.query

        if status:
            query = query.filter(Order.status == status)
        if supplier_id:
            query = query.filter(Order.supplier_id == supplier_id)
        if buyer_id:
            query = query.filter(Order.buyer_id == buyer_id)
        if payment_method:
            query = query.filter(Order.payment_method == payment_method)
        if min_total is not None:
            query = query.filter(Order.total >= min_total)
        if max_total is not None:
            query = query.filter(Order.total <= max_total)
        if created_from:
            query = query.filter(Order.created_at >= created_from)
        if created_to:
            query = query.filter(Order.created_at < created_to + timedelta(days=1))

        return query.order_by(Order.created_at.desc(), Order.id.desc())

    @staticmethod
    def _parse_date(value: Optional[str], name: str) -> Optional[datetime]:
        if not value:
            return None
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            raise InvalidRequest(f"{name} must be an ISO date")

    @staticmethod
    def _parse_amount(value: Optional[str], name: str) -> Optional[Decimal]:
        if value in (None, ''):
            return None
        try:
            return Decimal(value)
        except (InvalidOperation, ValueError):
            raise InvalidRequest(f"{name} must be a number")

    @staticmethod
    def get_admin_list_data(request: Request, page: int = 1, per_page: int = 20) -> Tuple[Pagination, Dict]:
        """
        Get a paginated admin order list with filters taken from the query string.

        Returns:
            Tuple of (pagination object, applied filters dict)
        """
        filters = {
            'status': request.args.get('status'),
            'supplier_id': request.args.get('supplier_id', type=int),
            'buyer_id': request.args.get('buyer_id', type=int),
            'payment_method': request.args.get('payment_method'),
            'min_total': OrderService._parse_amount(request.args.get('min_total'), 'min_total'),
            'max_total': OrderService._parse_amount(request.args.get('max_total'), 'max_total'),
            'created_from': OrderService._parse_date(request.args.get('from'), 'from'),
            'created_to': OrderService._parse_date(request.args.get('to'), 'to'),
        }
        query = OrderService.build_filtered_query(**filters)
        orders_page = query.paginate(page=page, per_page=per_page, error_out=False)
        applied = {key: (str(value) if value is not None else None) for key, value in filters.items()}
        return orders_page, applied

    @staticmethod
    def get_viewable(order_id: int, actor: Actor) -> Order:
        context = OrderContext(order_id=order_id)
        context.require_viewer(actor)
        return context.order

    @staticmethod
    def status_view(order: Order) -> dict:
        return {
            'order_id': order.id,
            'reference': order.reference,
            'status': order.status,
            'badge': status_badge(order.status).to_dict(),
            'timeline': order_timeline(order),
            'tracking_number': order.tracking_number,
            'expected_delivery_date': (
                order.expected_delivery_date.isoformat() if order.expected_delivery_date else None
            ),
        }

    @staticmethod
    def tracking_details(order: Order) -> dict:
        badge = status_badge(order.status)
        data = OrderService.status_view(order)
        data.update({
            'progress': badge.progress,
            'total': str(order.total),
            'is_delayed': order.is_delayed,
            'buyer': party_summary(order.buyer),
            'supplier': party_summary(order.supplier),
            'items': [item.to_dict() for item in order.items],
            'delivery': order.delivery,
            'milestones': {
                'placed': order.placed_at.isoformat() if order.placed_at else None,
                'confirmed': order.confirmed_at.isoformat() if order.confirmed_at else None,
                'shipped': order.shipped_at.isoformat() if order.shipped_at else None,
                'delivered': order.delivered_at.isoformat() if order.delivered_at else None,
                'cancelled': order.cancelled_at.isoformat() if order.cancelled_at else None,
                'rejected': order.rejected_at.isoformat() if order.rejected_at else None,
            },
            'activity_logs': [log.to_dict() for log in order.activity_logs],
        })
        return data

    @staticmethod
    def tracking_list(actor: Actor) -> List[dict]:
        return [
            {
                'id': order.id,
                'reference': order.reference,
                'status': order.status,
                'badge': status_badge(order.status).to_dict(),
                'total': str(order.total),
                'buyer': party_summary(order.buyer),
                'supplier': party_summary(order.supplier),
                'tracking_number': order.tracking_number,
                'expected_delivery_date': (
                    order.expected_delivery_date.isoformat() if order.expected_delivery_date else None
                ),
                'is_delayed': order.is_delayed,
            }
            for order in OrderService.scoped_query(actor).all()
        ]

    @staticmethod
    def invoice_summary(order: Order) -> dict:
        return format_invoice_summary(order)

    @staticmethod
    def invoice_list(actor: Actor) -> List[dict]:
        return format_invoice_list(OrderService.scoped_query(actor).all())
