from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from sqlalchemy import update

from marketplace import db
from marketplace.data.catalog.product import Product
from marketplace.buisness.errors import InsufficientStock, InvalidQuantity, NotFound
from marketplace.logger import get_logger

logger = get_logger("marketplace.inventory")


@dataclass(frozen=True)
class StockLine:
    product_id: int
    quantity: int


@dataclass(frozen=True)
class Reservation:
    product_id: int
    quantity: int
    stock_after: int


class InventoryLedger:
    """
    Owns ``Product.stock``.

    Responsibilities:
    - reserve stock with a single conditional UPDATE (no read-then-write)
    - release previously reserved stock
    - reserve several lines with compensating releases on partial failure

    The ledger never commits; the caller owns the transaction.
    """

    def _refresh(self, product_id: int) -> Product | None:
        product = db.session.get(Product, product_id)
        if product is not None:
            db.session.refresh(product, attribute_names=['stock'])
        return product

    def reserve(self, product_id: int, qty: int) -> Reservation:
        if qty is None or int(qty) < 1:
            raise InvalidQuantity("Quantity must be at least 1")
        qty = int(qty)

        result = db.session.execute(
            update(Product)
            .where(Product.id == product_id, Product.stock >= qty)
            .values(stock=Product.stock - qty)
            .execution_options(synchronize_session=False)
        )

        if result.rowcount != 1:
            product = self._refresh(product_id)
            if product is None:
                raise NotFound(f"Product {product_id} not found")
            logger.info(
                f"Reservation refused for product {product_id}: requested {qty}, available {product.stock}",
                extra={"product_id": product_id, "requested": qty, "available": product.stock},
            )
            raise InsufficientStock(
                f"Insufficient stock for '{product.name}': requested {qty}, available {product.stock}"
            )

        product = self._refresh(product_id)
        logger.debug(f"Reserved {qty} of product {product_id}; stock now {product.stock}")
        return Reservation(product_id=product_id, quantity=qty, stock_after=product.stock)

    def release(self, product_id: int, qty: int) -> None:
        """Return ``qty`` units to stock. Callers guard against double release."""
        if qty is None or int(qty) < 1:
            raise InvalidQuantity("Quantity must be at least 1")
        qty = int(qty)

        result = db.session.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(stock=Product.stock + qty)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise NotFound(f"Product {product_id} not found")

        product = self._refresh(product_id)
        logger.debug(f"Released {qty} of product {product_id}; stock now {product.stock}")

    def reserve_lines(self, lines: Iterable[StockLine]) -> list[Reservation]:
        """
        Reserve every line in order.

        On the first failure every line already reserved in this batch is
        released again, then the original error is re-raised. Each release
        is attempted independently so one failed compensation does not
        skip the rest.
        """
        reserved: list[Reservation] = []
        for line in lines:
            try:
                reserved.append(self.reserve(line.product_id, line.quantity))
            except Exception:
                logger.warning(
                    f"Reservation failed for product {line.product_id}; "
                    f"compensating {len(reserved)} reserved line(s)",
                    extra={"product_id": line.product_id, "compensating": len(reserved)},
                )
                self._compensate(reserved)
                raise
        return reserved

    def _compensate(self, reserved: list[Reservation]) -> None:
        for reservation in reversed(reserved):
            try:
                self.release(reservation.product_id, reservation.quantity)
                logger.info(
                    f"Compensated reservation of {reservation.quantity} for product {reservation.product_id}"
                )
            except Exception:
                logger.exception(
                    f"Compensation failed for product {reservation.product_id} "
                    f"(quantity {reservation.quantity})"
                )

    def available(self, product_id: int) -> int:
        product = self._refresh(product_id)
        if product is None:
            raise NotFound(f"Product {product_id} not found")
        return product.stock
