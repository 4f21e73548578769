"""
Values -- Decimal coercion for quantities and amounts.

Responsibility:
    Turns the loosely-typed numbers found on source records (int, float,
    str, Decimal, None) into ``Decimal`` values the engines can sum and
    compare deterministically.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by every engine module.

Invariants enforced:
    - Engines only ever see ``Decimal`` (floats are converted through
      ``str`` so ``0.1`` becomes ``Decimal("0.1")``, not its binary
      expansion).
    - Missing and non-finite values never leak into arithmetic: they read
      as "absent" (``to_optional_decimal``) or zero (``to_decimal``).

Failure modes:
    - InvalidQuantityError when a value is present but cannot be read as a
      number (e.g. ``"ten"``, an arbitrary object).
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from farm_kernel.exceptions import InvalidQuantityError

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def to_optional_decimal(value: Any, field: str = "value") -> Decimal | None:
    """Coerce ``value`` to Decimal, returning None when it is absent.

    Preconditions:
        value is None, a number, or a numeric string.

    Postconditions:
        Returns a finite Decimal, or None for None / NaN / infinity /
        blank strings.

    Raises:
        InvalidQuantityError: if value is present but not numeric.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise InvalidQuantityError(field, value)
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        return Decimal(str(value))
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            parsed = Decimal(text)
        except InvalidOperation as e:
            raise InvalidQuantityError(field, value) from e
        return parsed if parsed.is_finite() else None
    raise InvalidQuantityError(field, value)


def to_decimal(value: Any, field: str = "value") -> Decimal:
    """Coerce ``value`` to Decimal; absent values read as zero."""
    result = to_optional_decimal(value, field)
    return ZERO if result is None else result


def quantize(value: Decimal, places: int, rounding: str = ROUND_HALF_UP) -> Decimal:
    """Round ``value`` to ``places`` decimal places (ROUND_HALF_UP by default)."""
    exponent = Decimal(10) ** -places
    return value.quantize(exponent, rounding=rounding)
