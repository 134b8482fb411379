# backend/core/money.py
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from .errors import InvalidPrice

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value) -> Decimal:
    """Округление до копеек, половина вверх (как на кассе)."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def parse_price(value, label="Цена") -> Decimal:
    """Цена из запроса: число >= 0, иначе InvalidPrice."""
    if isinstance(value, bool):
        raise InvalidPrice(f"{label} должна быть числом.", price=value)
    try:
        price = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidPrice(f"{label} должна быть числом (получено: {value!r}).", price=value)

    if not price.is_finite() or price < 0:
        raise InvalidPrice(f"{label} не может быть отрицательной (получено: {value}).", price=value)

    return to_money(price)
