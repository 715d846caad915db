"""
Canadian mortgage mathematics.

Canadian fixed-rate mortgages quote a nominal annual rate compounded
semi-annually, so the effective monthly rate is ``(1 + r/2)^(1/6) - 1``
rather than ``r/12``. HELOCs and other revolving credit charge simple monthly
interest at ``r/12``.

Every function here is total: ``None``, zero or negative inputs produce zero
instead of raising. All arithmetic is ``Decimal`` at 28 significant digits;
results are NOT rounded.
"""

from __future__ import annotations

from decimal import Decimal, localcontext

from .utils import ONE, ZERO, to_decimal

_TWO = Decimal("2")
_TWELVE = Decimal("12")
_SIXTH = ONE / Decimal("6")


def monthly_rate_semiannual(annual_rate) -> Decimal:
    """
    Effective monthly rate for a rate compounded semi-annually.

    Args:
        annual_rate: Nominal annual rate as a fraction (0.05 for 5 %)

    Returns:
        ``(1 + r/2)^(1/6) - 1``, or 0 when the rate is missing or zero

    **Example:**
        ```python
        from smithlab.core.mortgage_math import monthly_rate_semiannual

        monthly_rate_semiannual(0.05)  # Decimal('0.004123915...')
        ```
    """
    r = to_decimal(annual_rate)
    if r == 0:
        return ZERO
    with localcontext() as ctx:
        ctx.prec = 28
        return (ONE + r / _TWO) ** _SIXTH - ONE


def monthly_rate_simple(annual_rate) -> Decimal:
    """Simple monthly rate ``r / 12``; 0 when the rate is missing or zero."""
    r = to_decimal(annual_rate)
    if r == 0:
        return ZERO
    return r / _TWELVE


def level_payment(principal, annual_rate, term_months) -> Decimal:
    """
    Level monthly payment that amortizes ``principal`` over ``term_months``.

    Uses the semi-annual compounded monthly rate. With a zero rate the
    principal is split evenly across the term.

    Args:
        principal: Amount to amortize
        annual_rate: Nominal annual rate as a fraction
        term_months: Remaining amortization in months

    Returns:
        The monthly payment, or 0 when principal or term is not positive
    """
    p = to_decimal(principal)
    n = int(term_months or 0)
    if p <= 0 or n <= 0:
        return ZERO

    i = monthly_rate_semiannual(annual_rate)
    if i == 0:
        return p / Decimal(n)

    with localcontext() as ctx:
        ctx.prec = 28
        return p * i / (ONE - (ONE + i) ** (-n))


def monthly_interest(balance, annual_rate) -> Decimal:
    """Interest for one month on a semi-annually compounded balance."""
    b = to_decimal(balance)
    if b <= 0:
        return ZERO
    return b * monthly_rate_semiannual(annual_rate)


def monthly_interest_simple(balance, annual_rate) -> Decimal:
    """Interest for one month at the simple monthly rate (HELOCs)."""
    b = to_decimal(balance)
    if b <= 0:
        return ZERO
    return b * monthly_rate_simple(annual_rate)
