from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from .exceptions import InvalidAmount

CENT = Decimal('0.01')


def calculate_charge(items):
    """
    Total a cart in currency subunits.

    Args:
        items: iterable of mappings, each with a ``price`` in major units

    Returns:
        int: the total in cents, rounded half-up

    Raises:
        InvalidAmount: a price is missing or not numeric, or the total is not positive
    """
    total = Decimal('0')
    for item in items:
        try:
            price = item['price']
        except (KeyError, TypeError):
            raise InvalidAmount('Every cart item needs a price.')
        if isinstance(price, bool):
            raise InvalidAmount(f"Invalid price: {price!r}")
        try:
            # str() first so 19.99 stays 19.99 rather than its binary expansion
            total += Decimal(str(price))
        except (InvalidOperation, ValueError):
            raise InvalidAmount(f"Invalid price: {price!r}")

    if not total.is_finite():
        raise InvalidAmount(f"Invalid cart total: {total}")

    try:
        cents = int(total.quantize(CENT, rounding=ROUND_HALF_UP) * 100)
    except InvalidOperation:
        raise InvalidAmount(f"Invalid cart total: {total}")
    if cents <= 0:
        raise InvalidAmount()
    return cents


def to_major_units(amount):
    """Cents back to a two-decimal amount for display."""
    return (Decimal(amount) / 100).quantize(CENT)
