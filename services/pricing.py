from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

import config
from models.cart import CartLineDTO

_CENT = Decimal("0.01")


def _to_decimal(amount: float) -> Decimal:
    # str() keeps the shortest repr, so 0.1 stays 0.1 instead of 0.1000000000000000055...
    return Decimal(str(amount))


class PricingService:
    """Pure money calculations for carts and checkout."""

    @staticmethod
    def calculate_total(lines: Iterable[CartLineDTO]) -> float:
        """
        Sum of unit price × quantity over all lines.

        Arithmetic is done in Decimal and the result is rounded to two decimals,
        so adding 0.1 + 0.2 kr yields 0.3 and not 0.30000000000000004.
        An empty line list yields 0.0.

        Args:
            lines: Cart lines carrying a product snapshot price and a quantity

        Returns:
            Total in major currency units (kroner), two decimals
        """
        total = sum(
            (_to_decimal(line.product.price) * line.quantity for line in lines),
            Decimal("0")
        )
        return float(total.quantize(_CENT, rounding=ROUND_HALF_UP))

    @staticmethod
    def item_count(lines: Iterable[CartLineDTO]) -> int:
        """Number of units in the cart (the header badge)."""
        return sum(line.quantity for line in lines)

    @staticmethod
    def calculate_shipping(subtotal: float) -> float:
        """
        Flat shipping fee, waived at or above the free-shipping threshold.

        Example with defaults: 499.99 kr → 79 kr shipping, 500 kr → free.
        """
        if subtotal >= config.FREE_SHIPPING_THRESHOLD:
            return 0.0
        return config.SHIPPING_COST

    @staticmethod
    def add_amounts(*amounts: float) -> float:
        total = sum((_to_decimal(a) for a in amounts), Decimal("0"))
        return float(total.quantize(_CENT, rounding=ROUND_HALF_UP))

    @staticmethod
    def to_minor_units(amount: float) -> int:
        """Convert kroner to øre for the payment processor (rounded half up)."""
        factor = config.CURRENCY.get_minor_unit_factor()
        return int((_to_decimal(amount) * factor).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
