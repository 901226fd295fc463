"""
Invoice summaries for orders.

Rendering the actual document is delegated to an ``InvoiceRenderer``; this
module only shapes the data and names where the rendered file lives.
"""

from dataclasses import dataclass
from typing import Iterable, List, Protocol


@dataclass(frozen=True)
class DocumentHandle:
    path: str
    content_type: str = 'application/pdf'


class InvoiceRenderer(Protocol):
    def render(self, order) -> DocumentHandle:
        ...


def invoice_path(reference: str) -> str:
    return f"/invoices/{reference}.pdf"


class StaticPathRenderer:
    """Renderer that points at the pre-rendered PDF served under /invoices/"""

    def render(self, order) -> DocumentHandle:
        return DocumentHandle(path=invoice_path(order.reference))


def party_summary(user):
    if user is None:
        return None
    return {'id': user.id, 'name': user.name, 'email': user.email, 'phone': user.phone}


def format_invoice_summary(order) -> dict:
    return {
        'order_id': order.id,
        'reference': order.reference,
        'created_at': order.created_at.isoformat() if order.created_at else None,
        'status': order.status,
        'buyer': party_summary(order.buyer),
        'supplier': party_summary(order.supplier),
        'items': [item.to_dict() for item in order.items],
        'total': str(order.total),
        'payment_method': order.payment_method,
        'payment_status': order.payment_status,
        'tracking_number': order.tracking_number,
        'expected_delivery_date': (
            order.expected_delivery_date.isoformat() if order.expected_delivery_date else None
        ),
        'invoice_file': invoice_path(order.reference),
    }


def format_invoice_list(orders: Iterable, renderer: InvoiceRenderer = None) -> List[dict]:
    renderer = renderer or StaticPathRenderer()
    return [
        {
            'order_id': order.id,
            'reference': order.reference,
            'total': str(order.total),
            'status': order.status,
            'created_at': order.created_at.isoformat() if order.created_at else None,
            'invoice_file': renderer.render(order).path,
        }
        for order in orders
    ]
