"""
CartManager - a buyer's pending single-supplier selection

Cart lines are CartEntry rows. Checkout reserves every line through the
inventory ledger (releasing already reserved lines if a later one fails),
creates one multi-line order and only then clears the cart.
"""

from typing import List, Optional

from marketplace import db
from marketplace.data.cart.cart_entry import CartEntry
from marketplace.data.core.user import User, UserRole
from marketplace.buisness.core.actor import Actor
from marketplace.buisness.core.validation import require_quantity
from marketplace.buisness.errors import CrossSupplierCart, EmptyCart, NotFound
from marketplace.buisness.inventory.inventory_ledger import InventoryLedger, StockLine
from marketplace.buisness.notifications.notifier import get_dispatcher
from marketplace.buisness.ordering.delivery import resolve_delivery
from marketplace.buisness.ordering.narrator import OrderNarrator
from marketplace.buisness.ordering.order_factory import OrderFactory, load_available_product
from marketplace.logger import get_logger

logger = get_logger("marketplace.cart")


class CartManager:
    """Cart operations for one buyer"""

    def __init__(self, actor: Actor, ledger: Optional[InventoryLedger] = None, dispatcher=None):
        actor.require_role(UserRole.MANUFACTURER)
        self.actor = actor
        self.ledger = ledger or InventoryLedger()
        self.dispatcher = dispatcher or get_dispatcher()

    def entries(self) -> List[CartEntry]:
        return (
            CartEntry.query
            .filter_by(user_id=self.actor.id)
            .order_by(CartEntry.id)
            .all()
        )

    def _entry(self, product_id) -> Optional[CartEntry]:
        return CartEntry.query.filter_by(user_id=self.actor.id, product_id=product_id).first()

    def cart_supplier_id(self) -> Optional[int]:
        first = self.entries()[:1]
        return first[0].product.supplier_id if first else None

    def add(self, product_id: int, quantity=1) -> CartEntry:
        """
        Add ``quantity`` of a product, merging with an existing line.

        Raises:
            InvalidQuantity: If quantity < 1
            NotFound: If the product does not exist or is not approved
            CrossSupplierCart: If the cart already holds another supplier's products
        """
        quantity = require_quantity(quantity)
        product = load_available_product(product_id)

        supplier_id = self.cart_supplier_id()
        if supplier_id is not None and supplier_id != product.supplier_id:
            raise CrossSupplierCart(
                "Your cart contains products from another supplier; check out or clear it first"
            )

        try:
            entry = self._entry(product.id)
            if entry is None:
                entry = CartEntry(user_id=self.actor.id, product_id=product.id, quantity=quantity)
                db.session.add(entry)
            else:
                entry.quantity = entry.quantity + quantity
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        logger.debug(f"Cart of buyer {self.actor.id}: product {product.id} now x{entry.quantity}")
        return entry

    def remove(self, product_id: int) -> None:
        entry = self._entry(product_id)
        if entry is None:
            raise NotFound(f"Product {product_id} is not in the cart")
        try:
            db.session.delete(entry)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

    def update_quantity(self, product_id: int, quantity) -> CartEntry:
        quantity = require_quantity(quantity)
        entry = self._entry(product_id)
        if entry is None:
            raise NotFound(f"Product {product_id} is not in the cart")
        try:
            entry.quantity = quantity
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        return entry

    def clear(self) -> int:
        try:
            removed = CartEntry.query.filter_by(user_id=self.actor.id).delete(synchronize_session=False)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        db.session.expire_all()
        return removed

    def checkout(self, payment_method: Optional[str] = None, delivery: Optional[dict] = None,
                 buyer_note: Optional[str] = None):
        """
        Turn the cart into one placed order.

        Raises:
            EmptyCart: If the cart has no lines
            NotFound: If a product in the cart is no longer approved
            MissingDeliveryAddress: If no complete override and no factory address exist
            InsufficientStock: If any line cannot be reserved (earlier lines are released)
        """
        entries = self.entries()
        if not entries:
            raise EmptyCart("Cart is empty")

        # Lines whose product went back to moderation after being added block checkout
        products = [load_available_product(entry.product_id) for entry in entries]

        buyer = db.session.get(User, self.actor.id)
        destination = resolve_delivery(delivery, buyer, required=True)

        supplier_id = products[0].supplier_id
        factory = OrderFactory(ledger=self.ledger, dispatcher=self.dispatcher)
        try:
            self.ledger.reserve_lines(StockLine(entry.product_id, entry.quantity) for entry in entries)
            order = factory.build_order(
                self.actor,
                supplier_id=supplier_id,
                lines=factory.lines_for_products(
                    (product, entry.quantity) for product, entry in zip(products, entries)
                ),
                payment_method=products[0].resolve_payment_method(payment_method),
                delivery=destination,
                stock_reserved=True,
                buyer_note=buyer_note,
                narrate=OrderNarrator.placed_from_cart,
            )
            for entry in entries:
                db.session.delete(entry)
            db.session.commit()
        except Exception:
            db.session.rollback()
            logger.warning(f"Checkout failed for buyer {self.actor.id}; cart left unchanged")
            raise

        logger.info(f"Cart checkout for buyer {self.actor.id} created order {order.reference} "
                    f"with {len(order.items)} line(s)")
        self.dispatcher.dispatch([factory.placed_notification(order, buyer.name if buyer else None)])
        return order
