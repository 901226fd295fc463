from marketplace import db
from marketplace.data.core.timestamped_base import TimestampedBase


class CartEntry(TimestampedBase):
    """One product line in a buyer's cart"""
    __tablename__ = 'cart_entries'
    __table_args__ = (
        db.UniqueConstraint('user_id', 'product_id', name='uq_cart_entries_user_product'),
        db.CheckConstraint('quantity >= 1', name='ck_cart_entries_quantity_positive'),
    )

    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey('products.id'), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=1)

    user = db.relationship('User', back_populates='cart_entries')
    product = db.relationship('Product')

    def __repr__(self):
        return f'<CartEntry user={self.user_id} product={self.product_id} qty={self.quantity}>'

    @property
    def line_total(self):
        return self.product.final_price * self.quantity

    def to_dict(self):
        return {
            'product_id': self.product_id,
            'quantity': self.quantity,
            'product': self.product.to_dict() if self.product else None,
            'line_total': str(self.line_total) if self.product else None,
        }
