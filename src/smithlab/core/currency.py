"""
Currency and precision handling for SmithLab.

All ledger arithmetic runs in ``Decimal``. Values are only rounded to the
currency's precision when they are written to a ledger field, and balances
smaller than half a unit are settled to zero by the simulators.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_EVEN, ROUND_HALF_UP, Decimal
from enum import Enum


class RoundingPolicy(Enum):
    """Rounding applied when a value is written to the ledger."""

    BANKERS = ROUND_HALF_EVEN
    HALF_UP = ROUND_HALF_UP


@dataclass(frozen=True)
class Currency:
    """
    Ledger currency of a jurisdiction.

    Attributes:
        code: ISO code, stored upper-case
        decimals: Minor-unit digits (2 for cents)
        rounding: Policy for ledger values; lenders round half up
    """

    code: str
    decimals: int = 2
    rounding: RoundingPolicy = RoundingPolicy.HALF_UP

    def __post_init__(self):
        object.__setattr__(self, "code", self.code.upper())

    @property
    def unit(self) -> Decimal:
        """Smallest ledger amount (0.01 for cents)."""
        return Decimal(1).scaleb(-self.decimals)

    @property
    def half_unit(self) -> Decimal:
        """Balances below this settle to zero."""
        return self.unit / 2

    def quantize(self, amount: Decimal) -> Decimal:
        return amount.quantize(self.unit, rounding=self.rounding.value)

    def __str__(self) -> str:
        return self.code


CAD = Currency("CAD")
USD = Currency("USD")

_KNOWN: dict[str, Currency] = {c.code: c for c in (CAD, USD)}


def get_currency(code: str) -> Currency:
    """Known currency for ``code``; anything else gets a cents-precision entry."""
    code = code.upper()
    return _KNOWN.get(code) or Currency(code)
