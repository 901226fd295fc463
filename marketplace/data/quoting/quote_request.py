from enum import Enum
from marketplace import db
from marketplace.data.core.timestamped_base import TimestampedBase


class QuoteStatus(str, Enum):
    PENDING = 'pending'
    SUPPLIER_COUNTER = 'supplier_counter'
    SUPPLIER_ACCEPT = 'supplier_accept'
    BUYER_ACCEPT = 'buyer_accept'
    BUYER_CANCEL = 'buyer_cancel'
    REJECTED = 'rejected'
    CONVERTED = 'converted'


class QuoteRequest(TimestampedBase):
    """Buyer's price negotiation on a negotiable product"""
    __tablename__ = 'quote_requests'
    __table_args__ = (
        db.CheckConstraint('quantity_requested >= 1', name='ck_quote_requests_quantity_positive'),
    )

    # Parties
    buyer_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    supplier_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey('products.id'), nullable=False)

    # Snapshot frozen at creation
    snapshot_name = db.Column(db.String(200), nullable=False)
    snapshot_unit = db.Column(db.String(40), nullable=False)
    snapshot_price = db.Column(db.Numeric(12, 2), nullable=False)

    quantity_requested = db.Column(db.Integer, nullable=False)
    notes = db.Column(db.Text, nullable=True)

    # Supplier response
    counter_price = db.Column(db.Numeric(12, 2), nullable=True)
    counter_minimum_qty = db.Column(db.Integer, nullable=True)
    supplier_message = db.Column(db.Text, nullable=True)

    status = db.Column(db.String(20), nullable=False, default=QuoteStatus.PENDING.value, index=True)
    order_id = db.Column(db.Integer, db.ForeignKey('orders.id'), nullable=True)

    # Relationships
    buyer = db.relationship('User', foreign_keys=[buyer_id])
    supplier = db.relationship('User', foreign_keys=[supplier_id])
    product = db.relationship('Product')
    order = db.relationship('Order')

    def __repr__(self):
        return f'<QuoteRequest {self.id}: {self.status}>'

    @property
    def effective_price(self):
        """Countered price when one was set, otherwise the snapshot price"""
        return self.counter_price if self.counter_price is not None else self.snapshot_price

    def to_dict(self):
        return {
            'id': self.id,
            'buyer_id': self.buyer_id,
            'supplier_id': self.supplier_id,
            'product_id': self.product_id,
            'snapshot': {
                'name': self.snapshot_name,
                'unit': self.snapshot_unit,
                'price': str(self.snapshot_price),
            },
            'quantity_requested': self.quantity_requested,
            'notes': self.notes,
            'counter_price': str(self.counter_price) if self.counter_price is not None else None,
            'counter_minimum_qty': self.counter_minimum_qty,
            'supplier_message': self.supplier_message,
            'status': self.status,
            'order_id': self.order_id,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
