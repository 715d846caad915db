"""
Debt instrument snapshots consumed by the simulators.

A ``DebtInstrument`` is the read-only view of a mortgage or HELOC produced by
the account subsystem at the moment a simulation starts. Simulators never
mutate it; they copy the balance into their own running state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from .kinds import RateType
from .utils import optional_decimal, parse_month, to_decimal, to_int

DEFAULT_MORTGAGE_RATE = Decimal("0.05")
DEFAULT_HELOC_RATE = Decimal("0.07")
DEFAULT_TERM_MONTHS = 300
DEFAULT_HELOC_LIMIT = Decimal("100000")
READVANCEABLE_MAX_RATIO = Decimal("0.8")
DEFAULT_RENEWAL_TERM_MONTHS = 60


@dataclass(frozen=True)
class DebtInstrument:
    """
    Snapshot of a mortgage or line of credit.

    **Use Cases:**
    - Primary residence mortgage (non-deductible interest)
    - Rental property mortgage (deductible interest)
    - HELOC / readvanceable line of credit (`credit_limit` set)

    Attributes:
        name: Display name of the account
        balance: Outstanding balance (positive number)
        annual_rate: Nominal annual interest rate as a fraction; ``None`` uses
            the loan-type default
        rate_type: Fixed or variable rate
        term_months: Remaining amortization in months
        renewal_date: First month at which the rate renews
        renewal_rate: Rate applied from the renewal onward
        renewal_term_months: Months between renewals after the first one
        annual_lump_sum_amount: Yearly lump-sum prepayment
        annual_lump_sum_month: Calendar month (1-12) of the lump sum
        prepayment_privilege_percent: Annual prepayment cap as a percent of
            the original principal; ``None`` means unlimited
        credit_limit: Credit limit for lines of credit

    **Example:**
        ```python
        from smithlab.core.instruments import DebtInstrument

        primary = DebtInstrument(
            name="Primary Mortgage",
            balance=400_000,
            annual_rate=0.05,
            term_months=300,
            prepayment_privilege_percent=20,
        )
        ```
    """

    name: str
    balance: Decimal
    annual_rate: Decimal | None = None
    rate_type: RateType = RateType.FIXED
    term_months: int | None = None
    renewal_date: date | None = None
    renewal_rate: Decimal | None = None
    renewal_term_months: int | None = None
    annual_lump_sum_amount: Decimal | None = None
    annual_lump_sum_month: int | None = None
    prepayment_privilege_percent: Decimal | None = None
    credit_limit: Decimal | None = None
    metadata: dict = field(default_factory=dict, compare=False)

    def __post_init__(self):
        # Normalize numeric inputs so callers can pass int/float/str
        object.__setattr__(self, "balance", to_decimal(self.balance))
        object.__setattr__(self, "annual_rate", optional_decimal(self.annual_rate))
        object.__setattr__(self, "rate_type", RateType(self.rate_type))
        object.__setattr__(self, "renewal_rate", optional_decimal(self.renewal_rate))
        object.__setattr__(
            self, "annual_lump_sum_amount", optional_decimal(self.annual_lump_sum_amount)
        )
        object.__setattr__(
            self,
            "prepayment_privilege_percent",
            optional_decimal(self.prepayment_privilege_percent),
        )
        object.__setattr__(self, "credit_limit", optional_decimal(self.credit_limit))
        if self.renewal_date is not None:
            object.__setattr__(self, "renewal_date", parse_month(self.renewal_date))

    def rate_or(self, default: Decimal) -> Decimal:
        """Annual rate, or ``default`` when the snapshot has none."""
        return self.annual_rate if self.annual_rate is not None else default

    def term_or_default(self) -> int:
        return int(self.term_months) if self.term_months else DEFAULT_TERM_MONTHS

    @property
    def has_lump_sum(self) -> bool:
        return (
            self.annual_lump_sum_amount is not None
            and self.annual_lump_sum_amount > 0
            and self.annual_lump_sum_month is not None
        )

    def validate(self) -> list[str]:
        """Return human-readable problems with this snapshot (empty when valid)."""
        problems = []
        if self.balance < 0:
            problems.append("balance must not be negative")
        if self.annual_rate is not None and self.annual_rate < 0:
            problems.append("annual_rate must not be negative")
        if self.term_months is not None:
            term = to_int(self.term_months)
            if term is None:
                problems.append("term_months must be an integer")
            elif term < 0:
                problems.append("term_months must not be negative")
        if self.annual_lump_sum_month is not None:
            lump_month = to_int(self.annual_lump_sum_month)
            if lump_month is None:
                problems.append("annual_lump_sum_month must be an integer")
            elif not 1 <= lump_month <= 12:
                problems.append("annual_lump_sum_month must be between 1 and 12")
        if self.annual_lump_sum_amount is not None and self.annual_lump_sum_amount < 0:
            problems.append("annual_lump_sum_amount must not be negative")
        if self.prepayment_privilege_percent is not None and not (
            0 <= self.prepayment_privilege_percent <= 100
        ):
            problems.append("prepayment_privilege_percent must be between 0 and 100")
        if self.credit_limit is not None and self.credit_limit < 0:
            problems.append("credit_limit must not be negative")
        if self.renewal_term_months is not None:
            renewal_term = to_int(self.renewal_term_months)
            if renewal_term is None:
                problems.append("renewal_term_months must be an integer")
            elif renewal_term <= 0:
                problems.append("renewal_term_months must be positive")
        return problems

    @classmethod
    def from_dict(cls, data: dict) -> DebtInstrument:
        """Build an instrument from a plain mapping (YAML/JSON payloads)."""
        known = {
            "name",
            "balance",
            "annual_rate",
            "rate_type",
            "term_months",
            "renewal_date",
            "renewal_rate",
            "renewal_term_months",
            "annual_lump_sum_amount",
            "annual_lump_sum_month",
            "prepayment_privilege_percent",
            "credit_limit",
        }
        unknown = set(data) - known - {"metadata"}
        if unknown:
            raise ValueError(f"Unknown instrument field(s): {', '.join(sorted(unknown))}")
        kwargs = {k: v for k, v in data.items() if k in known}
        kwargs.setdefault("name", "Unnamed")
        if "balance" not in kwargs:
            raise ValueError("Instrument requires a balance")
        return cls(**kwargs, metadata=dict(data.get("metadata") or {}))

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "balance": str(self.balance),
            "annual_rate": None if self.annual_rate is None else str(self.annual_rate),
            "rate_type": self.rate_type.value,
            "term_months": self.term_months,
            "renewal_date": self.renewal_date.isoformat() if self.renewal_date else None,
            "renewal_rate": None if self.renewal_rate is None else str(self.renewal_rate),
            "renewal_term_months": self.renewal_term_months,
            "annual_lump_sum_amount": (
                None
                if self.annual_lump_sum_amount is None
                else str(self.annual_lump_sum_amount)
            ),
            "annual_lump_sum_month": self.annual_lump_sum_month,
            "prepayment_privilege_percent": (
                None
                if self.prepayment_privilege_percent is None
                else str(self.prepayment_privilege_percent)
            ),
            "credit_limit": None if self.credit_limit is None else str(self.credit_limit),
        }
