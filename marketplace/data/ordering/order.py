from enum import Enum
from datetime import datetime
from marketplace import db
from marketplace.data.core.timestamped_base import TimestampedBase


class OrderStatus(str, Enum):
    PLACED = 'placed'
    CONFIRMED = 'confirmed'
    REJECTED = 'rejected'
    IN_TRANSIT = 'in_transit'
    DELIVERED = 'delivered'
    CANCELLED = 'cancelled'


class PaymentStatus(str, Enum):
    PENDING = 'pending'
    PENDING_REVIEW = 'pending_review'
    COMPLETED = 'completed'
    FAILED = 'failed'


class Order(TimestampedBase):
    """Purchase order between one buyer and one supplier; never deleted"""
    __tablename__ = 'orders'

    reference = db.Column(db.String(40), unique=True, nullable=False)

    # Parties
    buyer_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    supplier_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)

    # Status and totals
    status = db.Column(db.String(20), nullable=False, default=OrderStatus.PLACED.value, index=True)
    total = db.Column(db.Numeric(12, 2), nullable=False)
    stock_reserved = db.Column(db.Boolean, nullable=False, default=False)

    # Payment
    payment_method = db.Column(db.String(40), nullable=False, default='bank_transfer')
    payment_status = db.Column(db.String(20), nullable=False, default=PaymentStatus.PENDING.value)
    payment_proof = db.Column(db.String(500), nullable=True)

    # Timeline
    placed_at = db.Column(db.DateTime, nullable=True)
    confirmed_at = db.Column(db.DateTime, nullable=True)
    rejected_at = db.Column(db.DateTime, nullable=True)
    shipped_at = db.Column(db.DateTime, nullable=True)
    delivered_at = db.Column(db.DateTime, nullable=True)
    cancelled_at = db.Column(db.DateTime, nullable=True)

    # Shipping
    tracking_number = db.Column(db.String(100), nullable=True)
    expected_delivery_date = db.Column(db.DateTime, nullable=True)

    # Delivery destination
    delivery_address = db.Column(db.String(300), nullable=True)
    delivery_place_name = db.Column(db.String(200), nullable=True)
    delivery_contact_name = db.Column(db.String(120), nullable=True)
    delivery_contact_phone = db.Column(db.String(40), nullable=True)

    # Notes
    buyer_note = db.Column(db.Text, nullable=True)
    supplier_note = db.Column(db.Text, nullable=True)

    # Relationships
    buyer = db.relationship('User', foreign_keys=[buyer_id])
    supplier = db.relationship('User', foreign_keys=[supplier_id])
    items = db.relationship('OrderItem', back_populates='order', lazy='select',
                            cascade='all, delete-orphan', order_by='OrderItem.id')
    activity_logs = db.relationship('OrderActivityLog', back_populates='order', lazy='select',
                                    cascade='all, delete-orphan', order_by='OrderActivityLog.id')

    def __repr__(self):
        return f'<Order {self.reference}: {self.status}>'

    @property
    def is_delayed(self):
        """In transit and past the expected delivery date"""
        if self.status != OrderStatus.IN_TRANSIT.value or not self.expected_delivery_date:
            return False
        return self.expected_delivery_date < datetime.utcnow()

    @property
    def items_total(self):
        return sum((item.subtotal for item in self.items), 0)

    @property
    def delivery(self):
        return {
            'address': self.delivery_address,
            'place_name': self.delivery_place_name,
            'contact_name': self.delivery_contact_name,
            'contact_phone': self.delivery_contact_phone,
        }

    def to_dict(self, include_logs=False):
        def iso(value):
            return value.isoformat() if value else None

        data = {
            'id': self.id,
            'reference': self.reference,
            'buyer_id': self.buyer_id,
            'supplier_id': self.supplier_id,
            'status': self.status,
            'total': str(self.total),
            'stock_reserved': self.stock_reserved,
            'payment_method': self.payment_method,
            'payment_status': self.payment_status,
            'payment_proof': self.payment_proof,
            'items': [item.to_dict() for item in self.items],
            'timeline': {
                'placed_at': iso(self.placed_at),
                'confirmed_at': iso(self.confirmed_at),
                'rejected_at': iso(self.rejected_at),
                'shipped_at': iso(self.shipped_at),
                'delivered_at': iso(self.delivered_at),
                'cancelled_at': iso(self.cancelled_at),
            },
            'tracking_number': self.tracking_number,
            'expected_delivery_date': iso(self.expected_delivery_date),
            'is_delayed': self.is_delayed,
            'delivery': self.delivery,
            'buyer_note': self.buyer_note,
            'supplier_note': self.supplier_note,
            'created_at': iso(self.created_at),
        }
        if include_logs:
            data['activity_logs'] = [log.to_dict() for log in self.activity_logs]
        return data
