from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from marketplace.buisness.errors import InvalidPrice, InvalidQuantity

CENT = Decimal('0.01')


def require_quantity(value, minimum: int = 1) -> int:
    """Coerce ``value`` to an int no smaller than ``minimum``"""
    if isinstance(value, bool):
        raise InvalidQuantity("Quantity must be a whole number")
    try:
        quantity = int(value)
    except (TypeError, ValueError):
        raise InvalidQuantity("Quantity must be a whole number")
    if isinstance(value, float) and value != quantity:
        raise InvalidQuantity("Quantity must be a whole number")
    if quantity < minimum:
        raise InvalidQuantity(f"Quantity must be at least {minimum}")
    return quantity


def require_price(value) -> Decimal:
    """Coerce ``value`` to a strictly positive money amount rounded to cents"""
    if value is None or isinstance(value, bool):
        raise InvalidPrice("Price is required")
    try:
        price = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidPrice(f"Invalid price: {value!r}")
    if not price.is_finite() or price <= 0:
        raise InvalidPrice("Price must be greater than 0")
    return price.quantize(CENT, rounding=ROUND_HALF_UP)


def line_subtotal(unit_price, quantity: int) -> Decimal:
    return (Decimal(unit_price) * quantity).quantize(CENT, rounding=ROUND_HALF_UP)


def require_percentage(value, low: int = 1, high: int = 90) -> int:
    """Whole percentage between ``low`` and ``high`` inclusive"""
    if value is None or isinstance(value, bool):
        raise InvalidPrice("Discount must be a whole percentage")
    try:
        percentage = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidPrice("Discount must be a whole percentage")
    if not percentage.is_finite() or percentage != percentage.to_integral_value():
        raise InvalidPrice("Discount must be a whole percentage")
    if percentage < low or percentage > high:
        raise InvalidPrice(f"Discount must be between {low} and {high}%")
    return int(percentage)
