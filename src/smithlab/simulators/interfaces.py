"""
Simulation context and the scenario policy protocol.

The monthly skeleton (renewals, lump sums, amortization, prepayment caps,
tax classification, termination) lives in :mod:`smithlab.simulators.driver`.
What differs between scenarios is small and lives in a policy object:
where prepayment money comes from, and what the HELOC does.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from smithlab.core.auto_stop import AutoStopRule
from smithlab.core.currency import CAD, Currency, get_currency
from smithlab.core.instruments import DEFAULT_MORTGAGE_RATE, DebtInstrument
from smithlab.core.kinds import ScenarioKind
from smithlab.core.ledger import payoff_month
from smithlab.core.utils import ZERO, month_start

if TYPE_CHECKING:
    from smithlab.core.strategy import StrategyConfig


@dataclass(frozen=True)
class SimulationContext:
    """
    Everything a scenario run needs, resolved once up front.

    Attributes:
        strategy_id: Owner of the produced ledger entries
        start: First simulated calendar month
        months: Horizon in months
        primary: Primary residence mortgage (or None)
        rental: Rental property mortgage (or None)
        heloc: Line of credit (or None)
        rental_income: Monthly rental income
        rental_expenses: Monthly rental expenses
        marginal_rate: Rate applied to deductible interest
        heloc_rate: Annual HELOC rate
        heloc_limit: Opening HELOC credit limit
        heloc_readvanceable: Whether the limit grows with repaid principal
        heloc_readvance_cap: Ceiling for a readvanceable limit
        rules: Auto-stop rules in evaluation order
        baseline_primary_interest: Baseline primary interest per month, at
            full precision, used for the Smith cumulative net benefit
        currency: Currency used to round ledger fields
    """

    strategy_id: str
    start: date
    months: int
    primary: DebtInstrument | None = None
    rental: DebtInstrument | None = None
    heloc: DebtInstrument | None = None
    rental_income: Decimal = ZERO
    rental_expenses: Decimal = ZERO
    marginal_rate: Decimal = ZERO
    heloc_rate: Decimal = ZERO
    heloc_limit: Decimal = ZERO
    heloc_readvanceable: bool = False
    heloc_readvance_cap: Decimal = ZERO
    rules: tuple[AutoStopRule, ...] = ()
    baseline_primary_interest: tuple[Decimal, ...] = ()
    currency: Currency = CAD
    default_mortgage_rate: Decimal = DEFAULT_MORTGAGE_RATE

    @classmethod
    def from_config(
        cls,
        config: StrategyConfig,
        start: date,
        baseline_primary_interest: tuple[Decimal, ...] = (),
    ) -> SimulationContext:
        """Resolve rates, limits and defaults from a strategy configuration."""
        jurisdiction = config.get_jurisdiction()
        return cls(
            strategy_id=config.id,
            start=month_start(start),
            months=int(config.simulation_months),
            primary=config.primary_mortgage,
            rental=config.rental_mortgage,
            heloc=config.heloc,
            rental_income=config.rental_income,
            rental_expenses=config.rental_expenses,
            marginal_rate=config.effective_marginal_tax_rate(),
            heloc_rate=config.effective_heloc_rate(),
            heloc_limit=config.effective_heloc_limit(),
            heloc_readvanceable=bool(config.heloc_readvanceable),
            heloc_readvance_cap=config.readvanceable_max_limit(),
            rules=tuple(config.auto_stop_rules),
            baseline_primary_interest=tuple(baseline_primary_interest),
            currency=get_currency(jurisdiction.currency),
        )

    def baseline_interest_at(self, month_index: int) -> Decimal:
        if 0 <= month_index < len(self.baseline_primary_interest):
            return self.baseline_primary_interest[month_index]
        return ZERO


@dataclass(frozen=True)
class MonthInputs:
    """What a policy may look at when deciding one month."""

    month_index: int
    calendar_month: date
    rental_income: Decimal
    rental_expenses: Decimal
    primary_balance: Decimal
    cumulative_primary_repaid: Decimal


@dataclass(frozen=True)
class HelocActivity:
    """
    HELOC movements for one month, at full precision.

    ``expenses_from_rental`` is the part of the rental expenses the HELOC did
    not cover and that rental income therefore paid.
    """

    draw: Decimal = ZERO
    balance: Decimal = ZERO
    interest: Decimal = ZERO
    payment: Decimal = ZERO
    credit_limit: Decimal = ZERO
    interest_from_rental: Decimal = ZERO
    interest_from_pocket: Decimal = ZERO
    expenses_from_rental: Decimal = ZERO

    @classmethod
    def idle(cls, month: MonthInputs) -> HelocActivity:
        """No HELOC use: rental income pays every expense."""
        return cls(expenses_from_rental=month.rental_expenses)


@runtime_checkable
class ScenarioPolicy(Protocol):
    """
    Contract for scenario policies.

    A fresh policy instance is created for every run; policies may keep
    running state (the HELOC balance) between months of that run.
    """

    kind: ScenarioKind
    accepts_lump_sums: bool
    heloc_interest_deductible: bool
    evaluates_rules: bool

    def heloc_month(self, ctx: SimulationContext, month: MonthInputs) -> HelocActivity:
        """Advance the HELOC by one month and report what happened."""
        ...

    def prepayment_request(
        self, ctx: SimulationContext, month: MonthInputs, heloc: HelocActivity
    ) -> Decimal:
        """Prepayment the policy wants to make before caps and lump sums."""
        ...


@dataclass
class ScenarioRun:
    """Output of one scenario run."""

    kind: ScenarioKind
    entries: list = field(default_factory=list)
    primary_interest: list[Decimal] = field(default_factory=list)

    @property
    def payoff_month(self) -> int | None:
        """First month number whose primary balance is zero, if any."""
        return payoff_month(self.entries)

    @property
    def stopped(self) -> bool:
        return bool(self.entries) and self.entries[-1].strategy_stopped
