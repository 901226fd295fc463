"""
Presentation metadata for order statuses.

Pure lookups keyed by the closed OrderStatus enum; every status has an entry,
so there is no "unknown" fallback.
"""

from dataclasses import dataclass
from typing import Dict, List

from marketplace.data.ordering.order import OrderStatus


@dataclass(frozen=True)
class StatusBadge:
    label: str
    color: str
    badge: str
    step: int
    progress: int

    def to_dict(self):
        return {
            'label': self.label,
            'color': self.color,
            'badge': self.badge,
            'step': self.step,
            'progress': self.progress,
        }


STATUS_BADGES: Dict[OrderStatus, StatusBadge] = {
    OrderStatus.PLACED: StatusBadge("Order Placed", "#6B7280", "gray", 1, 20),
    OrderStatus.CONFIRMED: StatusBadge("Confirmed", "#2563EB", "blue", 2, 40),
    OrderStatus.IN_TRANSIT: StatusBadge("In Transit", "#3B82F6", "orange", 3, 70),
    OrderStatus.DELIVERED: StatusBadge("Delivered", "#10B981", "green", 4, 100),
    OrderStatus.REJECTED: StatusBadge("Rejected", "#EF4444", "red", 0, 100),
    OrderStatus.CANCELLED: StatusBadge("Cancelled", "#F59E0B", "red", 0, 100),
}

# (step label, timestamp attribute) for the four forward milestones
TIMELINE_STEPS = (
    ("Placed", "placed_at"),
    ("Confirmed", "confirmed_at"),
    ("Shipped", "shipped_at"),
    ("Delivered", "delivered_at"),
)


def status_badge(status) -> StatusBadge:
    return STATUS_BADGES[OrderStatus(status)]


def order_timeline(order) -> List[dict]:
    """Ordered milestone list; unreached steps have ``at`` set to None"""
    steps = []
    for label, attribute in TIMELINE_STEPS:
        value = getattr(order, attribute)
        steps.append({'step': label, 'at': value.isoformat() if value else None})
    return steps
