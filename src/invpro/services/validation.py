from __future__ import annotations

from invpro.domain.errors import ValidationError


def whole_number(value: object, label: str) -> int:
    """Parse a count, rejecting fractions instead of truncating them."""
    if isinstance(value, bool):
        raise ValidationError(f"{label} must be a whole number.")
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid {label.lower()}: {value!r}") from e
    if not number.is_integer():
        raise ValidationError(f"{label} must be a whole number.")
    return int(number)
