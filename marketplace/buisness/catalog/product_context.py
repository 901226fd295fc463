"""
ProductContext - supplier catalog management and admin moderation

Suppliers create and edit their own products and run discounts; admins
approve or reject products. Any supplier edit sends the product back to
moderation.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import update

from marketplace import db
from marketplace.data.catalog.product import DEFAULT_PAYMENT_METHODS, PAYMENT_METHODS, Product, ProductStatus
from marketplace.data.core.user import User, UserRole
from marketplace.buisness.core.actor import Actor
from marketplace.buisness.core.validation import require_percentage, require_price, require_quantity
from marketplace.buisness.errors import (
    Forbidden, InvalidRequest, InvalidTransition, NotFound,
)
from marketplace.buisness.notifications.notifier import PendingNotification, get_dispatcher
from marketplace.logger import get_logger

logger = get_logger("marketplace.catalog")

EDITABLE_FIELDS = ('name', 'description', 'category', 'price', 'unit', 'stock', 'negotiable', 'payment_methods')
MODERATION_ACTIONS = {'approve': ProductStatus.APPROVED, 'reject': ProductStatus.REJECTED}


def _validate_payment_methods(methods):
    if methods is None:
        return list(DEFAULT_PAYMENT_METHODS)
    if not isinstance(methods, (list, tuple)) or not methods:
        raise InvalidRequest("payment_methods must be a non-empty list")
    invalid = [method for method in methods if method not in PAYMENT_METHODS]
    if invalid:
        raise InvalidRequest(f"Invalid payment method(s): {', '.join(map(str, invalid))}")
    return list(methods)


def _validate_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    cleaned = {}
    for key in EDITABLE_FIELDS:
        if key not in data:
            continue
        value = data[key]
        if key == 'price':
            cleaned[key] = require_price(value)
        elif key == 'stock':
            cleaned[key] = require_quantity(value, minimum=0)
        elif key == 'negotiable':
            cleaned[key] = bool(value)
        elif key == 'payment_methods':
            cleaned[key] = _validate_payment_methods(value)
        elif key in ('name', 'unit'):
            if not value or not str(value).strip():
                raise InvalidRequest(f"{key} is required")
            cleaned[key] = str(value).strip()
        else:
            cleaned[key] = value
    return cleaned


class ProductContext:
    """
    Domain Facade for a single product.

    Pattern: Domain Facade / Aggregate Controller
    """

    def __init__(self, product_id: Optional[int] = None, product: Optional[Product] = None, dispatcher=None):
        if product is not None:
            self.product = product
        elif product_id is not None:
            self.product = db.session.get(Product, product_id)
            if self.product is None:
                raise NotFound(f"Product {product_id} not found")
        else:
            raise ValueError("Either product_id or product must be provided")
        self.product_id = self.product.id
        self.dispatcher = dispatcher or get_dispatcher()

    @staticmethod
    def _require_approved_supplier(actor: Actor) -> None:
        actor.require_role(UserRole.SUPPLIER)
        supplier = db.session.get(User, actor.id)
        if supplier is None or not supplier.is_approved_supplier:
            raise Forbidden("Supplier account is not approved")

    def _require_owner(self, actor: Actor) -> None:
        if actor.role != UserRole.SUPPLIER.value or self.product.supplier_id != actor.id:
            raise Forbidden("You cannot modify this product")

    @classmethod
    def create(cls, actor: Actor, data: Dict[str, Any], dispatcher=None) -> 'ProductContext':
        """
        Create a product for the acting supplier; it starts pending moderation.

        Raises:
            Forbidden: If the actor is not an approved supplier
            InvalidRequest: If name or unit is missing
            InvalidPrice: If price <= 0
            InvalidQuantity: If stock < 0
        """
        cls._require_approved_supplier(actor)
        missing = [key for key in ('name', 'price', 'unit') if data.get(key) in (None, '')]
        if missing:
            raise InvalidRequest(f"Missing required fields: {', '.join(missing)}")

        fields = _validate_fields(data)
        fields.setdefault('stock', 0)
        fields.setdefault('payment_methods', list(DEFAULT_PAYMENT_METHODS))

        product = Product(supplier_id=actor.id, status=ProductStatus.PENDING.value, **fields)
        try:
            db.session.add(product)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        logger.info(f"Product {product.id} '{product.name}' created by supplier {actor.id}")
        return cls(product=product, dispatcher=dispatcher)

    def update(self, actor: Actor, data: Dict[str, Any]) -> Product:
        """
        Apply supplier edits and send the product back to moderation.

        A stock change is written only if stock still holds the value this
        edit was based on, so it cannot overwrite a concurrent reservation.
        """
        self._require_owner(actor)
        fields = _validate_fields(data)
        new_stock = fields.pop('stock', None)

        try:
            if new_stock is not None:
                expected = data.get('expected_stock', self.product.stock)
                result = db.session.execute(
                    update(Product)
                    .where(Product.id == self.product_id, Product.stock == expected)
                    .values(stock=new_stock)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount != 1:
                    raise InvalidTransition("Stock changed since it was read; reload the product and retry")
                db.session.refresh(self.product, attribute_names=['stock'])

            for key, value in fields.items():
                setattr(self.product, key, value)
            self.product.status = ProductStatus.PENDING.value
            self.product.rejection_reason = None
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        logger.info(f"Product {self.product_id} updated by supplier {actor.id}; awaiting moderation")
        return self.product

    def moderate(self, actor: Actor, action: str, reason: Optional[str] = None) -> Product:
        """Admin approves or rejects the product and the supplier is notified"""
        actor.require_role(UserRole.ADMIN)
        status = MODERATION_ACTIONS.get(action)
        if status is None:
            raise InvalidRequest(f"Invalid moderation action: {action!r}")

        try:
            self.product.status = status.value
            if status == ProductStatus.REJECTED:
                self.product.rejection_reason = reason or "No reason provided"
            else:
                self.product.rejection_reason = None
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        logger.info(f"Product {self.product_id} {status.value} by admin {actor.id}")
        if status == ProductStatus.APPROVED:
            event_type, title = 'product_approved', "Product Approved"
            message = f"{self.product.name} has been approved and is now visible"
        else:
            event_type, title = 'product_rejected', "Product Rejected"
            message = f"{self.product.name} was rejected. Reason: {self.product.rejection_reason}"
        self.dispatcher.dispatch([PendingNotification(
            self.product.supplier_id, event_type, title, message, {'product_id': self.product_id},
        )])
        return self.product

    def apply_discount(self, actor: Actor, percentage, expires_at: Optional[datetime] = None) -> Product:
        self._require_owner(actor)
        percentage = require_percentage(percentage)

        try:
            self.product.discount_percentage = percentage
            self.product.discount_active = True
            self.product.discount_expires_at = expires_at
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        logger.info(f"Discount of {percentage}% applied to product {self.product_id}")
        return self.product

    def remove_discount(self, actor: Actor) -> Product:
        self._require_owner(actor)
        try:
            self.product.discount_percentage = None
            self.product.discount_active = False
            self.product.discount_expires_at = None
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        logger.info(f"Discount removed from product {self.product_id}")
        return self.product
