"""
Utility functions for SmithLab.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation

ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")


def to_decimal(value, default: Decimal = ZERO) -> Decimal:
    """
    Coerce a number-like value to ``Decimal``.

    Floats go through ``str`` so that ``0.05`` becomes ``Decimal("0.05")``
    rather than its binary expansion. ``None`` and empty strings map to
    ``default``.

    Raises:
        ValueError: If the value cannot be parsed as a number
    """
    if value is None or value == "":
        return default
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Expected a number, got boolean {value!r}")
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"Cannot interpret {value!r} as a number") from e


def optional_decimal(value) -> Decimal | None:
    """Like :func:`to_decimal` but keeps ``None`` as ``None``."""
    if value is None or value == "":
        return None
    return to_decimal(value)


def to_int(value) -> int | None:
    """Integer value of ``value``, or None when it is missing or not integral."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    if not number.is_finite() or number != number.to_integral_value():
        return None
    return int(number)


def month_start(d: date) -> date:
    """Return the first day of the month containing ``d``."""
    return date(d.year, d.month, 1)


def add_months(d: date, months: int) -> date:
    """
    Shift a date by a number of months, anchored to the first of the month.

    **Example:**
        ```python
        from datetime import date
        from smithlab.core.utils import add_months

        add_months(date(2025, 11, 15), 3)  # date(2026, 2, 1)
        ```
    """
    idx = d.year * 12 + (d.month - 1) + months
    return date(idx // 12, idx % 12 + 1, 1)


def months_between(start: date, end: date) -> int:
    """Whole calendar months from ``start`` to ``end`` (may be negative)."""
    return (end.year - start.year) * 12 + (end.month - start.month)


def parse_month(value) -> date:
    """
    Parse a month-precision date.

    Accepts ``date``/``datetime`` objects and ISO strings in either
    ``YYYY-MM`` or ``YYYY-MM-DD`` form. The result is always the first day of
    the month.

    Raises:
        ValueError: If the value cannot be parsed
    """
    if isinstance(value, datetime):
        return month_start(value.date())
    if isinstance(value, date):
        return month_start(value)
    if isinstance(value, str):
        text = value.strip()
        if len(text) == 7:
            text = f"{text}-01"
        return month_start(date.fromisoformat(text))
    raise ValueError(f"Cannot interpret {value!r} as a month")
