from decimal import Decimal
from typing import Any, Iterable

ZERO = Decimal("0")


def _decimal(value: Any) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def line_total(price: Any, quantity: int) -> Decimal:
    return _decimal(price) * quantity


def cart_total(lines: Iterable[Any]) -> Decimal:
    """Sum of ``price * quantity`` over objects exposing both attributes."""
    return sum((line_total(line.price, line.quantity) for line in lines), ZERO)


def item_count(lines: Iterable[Any]) -> int:
    return sum(int(line.quantity) for line in lines)
