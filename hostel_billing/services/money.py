"""Decimal helpers for monetary amounts."""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from hostel_billing.services.errors import ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value, field: str = "amount") -> Decimal:
    """Convert int/str/float/Decimal to a Decimal rounded to cents.

    Raises:
        ValidationError: If the value is not a finite number
    """
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"Invalid {field}: {value!r}")
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValidationError(f"Invalid {field}: {value!r}") from e
    if not amount.is_finite():
        raise ValidationError(f"Invalid {field}: {value!r}")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def positive_money(value, field: str = "amount") -> Decimal:
    """Like to_money, but rejects zero and negative amounts."""
    amount = to_money(value, field)
    if amount <= 0:
        raise ValidationError(f"{field} must be greater than zero, got {amount}")
    return amount


__all__ = ["CENT", "ZERO", "to_money", "positive_money"]
