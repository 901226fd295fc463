from enum import Enum
from decimal import Decimal, ROUND_HALF_UP
from datetime import datetime
from marketplace import db
from marketplace.data.core.timestamped_base import TimestampedBase


class ProductStatus(str, Enum):
    PENDING = 'pending'
    APPROVED = 'approved'
    REJECTED = 'rejected'


PAYMENT_METHODS = ('bank_transfer', 'cash', 'mobile_money')
DEFAULT_PAYMENT_METHODS = ['bank_transfer']


class Product(TimestampedBase):
    """Catalog entry owned by a supplier; ``stock`` is only changed through the inventory ledger"""
    __tablename__ = 'products'
    __table_args__ = (
        db.CheckConstraint('stock >= 0', name='ck_products_stock_non_negative'),
    )

    # Basic Fields
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    category = db.Column(db.String(100), nullable=True)
    unit = db.Column(db.String(40), nullable=False, default='unit')

    # Pricing and stock
    price = db.Column(db.Numeric(12, 2), nullable=False)
    stock = db.Column(db.Integer, nullable=False, default=0)
    negotiable = db.Column(db.Boolean, nullable=False, default=False)
    payment_methods = db.Column(db.JSON, nullable=False, default=lambda: list(DEFAULT_PAYMENT_METHODS))

    # Discount
    discount_percentage = db.Column(db.Integer, nullable=True)
    discount_active = db.Column(db.Boolean, nullable=False, default=False)
    discount_expires_at = db.Column(db.DateTime, nullable=True)

    # Moderation
    status = db.Column(db.String(20), nullable=False, default=ProductStatus.PENDING.value)
    rejection_reason = db.Column(db.Text, nullable=True)

    # Foreign Keys
    supplier_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)

    # Relationships
    supplier = db.relationship('User', back_populates='products')

    def __repr__(self):
        return f'<Product {self.id}: {self.name} (stock={self.stock})>'

    @property
    def is_approved(self):
        return self.status == ProductStatus.APPROVED.value

    @property
    def has_active_discount(self):
        if not self.discount_active or not self.discount_percentage:
            return False
        if self.discount_expires_at and self.discount_expires_at <= datetime.utcnow():
            return False
        return True

    @property
    def final_price(self) -> Decimal:
        """Price after an active, unexpired discount"""
        price = Decimal(self.price)
        if not self.has_active_discount:
            return price
        factor = (Decimal(100) - Decimal(self.discount_percentage)) / Decimal(100)
        return (price * factor).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)

    def resolve_payment_method(self, requested=None):
        """Requested method when the product offers it, otherwise the product's first method"""
        methods = self.payment_methods or DEFAULT_PAYMENT_METHODS
        if requested and requested in methods:
            return requested
        return methods[0]

    def to_dict(self):
        return {
            'id': self.id,
            'supplier_id': self.supplier_id,
            'name': self.name,
            'description': self.description,
            'category': self.category,
            'unit': self.unit,
            'price': str(self.price) if self.price is not None else None,
            'final_price': str(self.final_price) if self.price is not None else None,
            'stock': self.stock,
            'negotiable': self.negotiable,
            'payment_methods': list(self.payment_methods or DEFAULT_PAYMENT_METHODS),
            'discount': {
                'percentage': self.discount_percentage,
                'active': self.has_active_discount,
                'expires_at': self.discount_expires_at.isoformat() if self.discount_expires_at else None,
            },
            'status': self.status,
            'rejection_reason': self.rejection_reason,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
