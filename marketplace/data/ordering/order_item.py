from marketplace import db
from marketplace.data.core.timestamped_base import TimestampedBase


class OrderItem(TimestampedBase):
    """Immutable line snapshot captured when the order is created"""
    __tablename__ = 'order_items'
    __table_args__ = (
        db.CheckConstraint('quantity >= 1', name='ck_order_items_quantity_positive'),
    )

    order_id = db.Column(db.Integer, db.ForeignKey('orders.id'), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey('products.id'), nullable=False)

    # Snapshot
    name = db.Column(db.String(200), nullable=False)
    unit = db.Column(db.String(40), nullable=False)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    subtotal = db.Column(db.Numeric(12, 2), nullable=False)

    order = db.relationship('Order', back_populates='items')
    product = db.relationship('Product')

    def __repr__(self):
        return f'<OrderItem {self.name} x{self.quantity}>'

    def to_dict(self):
        return {
            'product_id': self.product_id,
            'name': self.name,
            'unit': self.unit,
            'unit_price': str(self.unit_price),
            'quantity': self.quantity,
            'subtotal': str(self.subtotal),
        }
