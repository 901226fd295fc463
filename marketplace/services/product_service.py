"""
Product Service
Read-side catalog queries.
"""

from typing import List, Optional

from marketplace import db
from marketplace.data.catalog.product import Product, ProductStatus
from marketplace.buisness.core.actor import Actor
from marketplace.buisness.errors import NotFound


class ProductService:
    """Catalog listings for buyers, suppliers and moderators"""

    @staticmethod
    def approved_products(category: Optional[str] = None, supplier_id: Optional[int] = None,
                          negotiable: Optional[bool] = None) -> List[Product]:
        query = Product.query.filter(Product.status == ProductStatus.APPROVED.value)
        if category:
            query = query.filter(Product.category == category)
        if supplier_id:
            query = query.filter(Product.supplier_id == supplier_id)
        if negotiable is not None:
            query = query.filter(Product.negotiable.is_(negotiable))
        return query.order_by(Product.created_at.desc(), Product.id.desc()).all()

    @staticmethod
    def supplier_products(supplier_id: int) -> List[Product]:
        return (
            Product.query.filter_by(supplier_id=supplier_id)
            .order_by(Product.created_at.desc(), Product.id.desc())
            .all()
        )

    @staticmethod
    def pending_products() -> List[Product]:
        return (
            Product.query.filter(Product.status == ProductStatus.PENDING.value)
            .order_by(Product.created_at.asc(), Product.id.asc())
            .all()
        )

    @staticmethod
    def get_visible(product_id: int, actor: Optional[Actor]) -> Product:
        """Approved products are public; others only for their supplier or an admin"""
        product = db.session.get(Product, product_id)
        if product is None:
            raise NotFound(f"Product {product_id} not found")
        if product.is_approved:
            return product
        if actor is not None and (actor.is_admin or product.supplier_id == actor.id):
            return product
        raise NotFound(f"Product {product_id} not found")
