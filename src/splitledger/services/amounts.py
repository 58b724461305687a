from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

CENT = Decimal("0.01")
EPSILON = Decimal("0.01")
ZERO = Decimal(0)


class InvalidAmountError(ValueError):
    """Сумма отрицательная, бесконечная или не представима точным десятичным числом."""

    def __init__(self, value: Any, reason: str, field: str | None = None) -> None:
        self.value = value
        self.reason = reason
        self.field = field
        where = f"{field}: " if field else ""
        super().__init__(f"{where}{reason} ({value!r})")


def to_amount(value: Any, *, field: str | None = None) -> Decimal:
    # float и bool отвергаем сразу: двоичная плавающая точка не даёт точных копеек
    if isinstance(value, bool) or isinstance(value, float):
        raise InvalidAmountError(value, "binary floats are not accepted", field)

    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, int):
        amount = Decimal(value)
    elif isinstance(value, str):
        try:
            amount = Decimal(value.strip())
        except InvalidOperation:
            raise InvalidAmountError(value, "not a decimal number", field) from None
    else:
        raise InvalidAmountError(value, "unsupported amount type", field)

    if not amount.is_finite():
        raise InvalidAmountError(value, "amount must be finite", field)
    if amount < 0:
        raise InvalidAmountError(value, "amount must be non-negative", field)
    return amount


def to_positive_amount(value: Any, *, field: str | None = None) -> Decimal:
    amount = to_amount(value, field=field)
    if amount == 0:
        raise InvalidAmountError(value, "amount must be positive", field)
    return amount


def quantize_amount(value: Decimal) -> Decimal:
    """Округление до копеек «от нуля», только для итогового вывода."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def format_amount(value: Decimal) -> str:
    return f"{quantize_amount(value):.2f}"


def is_settled(value: Decimal, epsilon: Decimal = EPSILON) -> bool:
    return abs(value) <= epsilon
