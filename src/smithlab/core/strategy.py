"""
Strategy configuration for SmithLab.

A :class:`StrategyConfig` is what a household edits: which debts take part,
rental cash flows, HELOC overrides, the tax situation and the auto-stop
rules. It is the single input of the orchestrator and the place where the
orchestrator caches the summary of the last run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from .auto_stop import AutoStopRule
from .errors import ConfigError, ConfigValidationError
from .instruments import (
    DEFAULT_HELOC_LIMIT,
    DEFAULT_HELOC_RATE,
    READVANCEABLE_MAX_RATIO,
    DebtInstrument,
)
from .jurisdiction import (
    CANADIAN_PROVINCES,
    Jurisdiction,
    effective_marginal_rate,
    get_jurisdiction,
    resolve_province,
)
from .kinds import ScenarioKind, StrategyKind, StrategyStatus
from .utils import ZERO, optional_decimal, to_decimal, to_int

logger = logging.getLogger(__name__)

MIN_SIMULATION_MONTHS = 1
MAX_SIMULATION_MONTHS = 600
DEFAULT_HOUSEHOLD_INCOME = Decimal("100000")


@dataclass
class StrategyConfig:
    """
    A household's debt-optimization strategy.

    **Use Cases:**
    - Baseline only: see how long scheduled payments take
    - Modified Smith: compare baseline, prepay-only and the HELOC strategy
    - Tuning: change rules or HELOC caps and re-run

    Attributes:
        id: Unique identifier of the strategy
        name: Display name
        household_id: Owner of the strategy
        strategy_kind: ``baseline`` or ``modified_smith``
        jurisdiction: Country code used for tax lookups
        province: Province code; ``None`` uses the default province
        household_income: Annual income used to find the marginal rate
        primary_mortgage: Principal residence mortgage
        heloc: Line of credit used to fund rental expenses
        rental_mortgage: Rental property mortgage
        rental_income: Monthly rental income
        rental_expenses: Monthly rental expenses (excluding the mortgage)
        heloc_rate: Annual HELOC rate override
        heloc_max_limit: Cap on the HELOC credit limit
        heloc_readvanceable: Whether repaid primary principal raises the HELOC limit
        simulation_months: Months to simulate (1-600)
        auto_stop_rules: Ordered rules evaluated on each Smith month
        status: Lifecycle status
        total_interest_saved: Cached summary of the last run
        total_tax_benefit: Cached summary of the last run
        net_benefit: Cached summary of the last run
        months_accelerated: Cached summary of the last run
        last_simulated_at: Timestamp of the last successful run

    **Example:**
        ```python
        from smithlab.core.instruments import DebtInstrument
        from smithlab.core.strategy import StrategyConfig

        config = StrategyConfig(
            id="smith-1",
            name="Smith plan",
            strategy_kind="modified_smith",
            province="ON",
            primary_mortgage=DebtInstrument("Home", 400_000, 0.05, term_months=300),
            heloc=DebtInstrument("HELOC", 0, 0.07, credit_limit=100_000),
            rental_mortgage=DebtInstrument("Rental", 200_000, 0.055, term_months=300),
            rental_income=2_500,
            rental_expenses=500,
        )
        config.assert_valid()
        ```
    """

    id: str
    name: str = "Debt optimization strategy"
    household_id: str | None = None
    strategy_kind: StrategyKind = StrategyKind.MODIFIED_SMITH
    jurisdiction: str = "CA"
    province: str | None = None
    household_income: Decimal = DEFAULT_HOUSEHOLD_INCOME
    primary_mortgage: DebtInstrument | None = None
    heloc: DebtInstrument | None = None
    rental_mortgage: DebtInstrument | None = None
    rental_income: Decimal = ZERO
    rental_expenses: Decimal = ZERO
    heloc_rate: Decimal | None = None
    heloc_max_limit: Decimal | None = None
    heloc_readvanceable: bool = False
    simulation_months: int = 300
    auto_stop_rules: list[AutoStopRule] = field(default_factory=list)
    status: StrategyStatus = StrategyStatus.DRAFT
    total_interest_saved: Decimal | None = None
    total_tax_benefit: Decimal | None = None
    net_benefit: Decimal | None = None
    months_accelerated: int | None = None
    last_simulated_at: datetime | None = None

    def __post_init__(self):
        try:
            self.strategy_kind = StrategyKind(self.strategy_kind)
        except ValueError as e:
            raise ConfigError(f"Unknown strategy kind '{self.strategy_kind}'") from e
        try:
            self.status = StrategyStatus(self.status)
        except ValueError as e:
            raise ConfigError(f"Unknown strategy status '{self.status}'") from e
        self.jurisdiction = (self.jurisdiction or "CA").upper()
        self.province = self.province.upper() if self.province else None
        self.household_income = to_decimal(
            self.household_income, DEFAULT_HOUSEHOLD_INCOME
        )
        self.rental_income = to_decimal(self.rental_income)
        self.rental_expenses = to_decimal(self.rental_expenses)
        self.heloc_rate = optional_decimal(self.heloc_rate)
        self.heloc_max_limit = optional_decimal(self.heloc_max_limit)
        self.auto_stop_rules = list(self.auto_stop_rules or [])

    # === Validation ===

    def validate(self) -> dict[str, list[str]]:
        """
        Collect field-level validation errors.

        Returns:
            Mapping of field name to messages; empty when the configuration is valid
        """
        errors: dict[str, list[str]] = {}

        def add(name: str, msg: str) -> None:
            errors.setdefault(name, []).append(msg)

        if not (self.name or "").strip():
            add("name", "can't be blank")
        months = to_int(self.simulation_months)
        if months is None:
            add("simulation_months", "must be an integer")
        elif not MIN_SIMULATION_MONTHS <= months <= MAX_SIMULATION_MONTHS:
            add(
                "simulation_months",
                f"must be between {MIN_SIMULATION_MONTHS} and {MAX_SIMULATION_MONTHS}",
            )
        if self.rental_income < 0:
            add("rental_income", "must not be negative")
        if self.rental_expenses < 0:
            add("rental_expenses", "must not be negative")
        if self.household_income < 0:
            add("household_income", "must not be negative")
        if self.heloc_max_limit is not None and self.heloc_max_limit < 0:
            add("heloc_max_limit", "must not be negative")
        if self.heloc_rate is not None and self.heloc_rate < 0:
            add("heloc_rate", "must not be negative")

        jurisdiction = None
        try:
            jurisdiction = self.get_jurisdiction()
        except ConfigError as e:
            add("jurisdiction", str(e))

        if (
            self.province
            and self.jurisdiction == "CA"
            and self.province not in CANADIAN_PROVINCES
        ):
            add("province", f"'{self.province}' is not a Canadian province or territory")

        for label in ("primary_mortgage", "heloc", "rental_mortgage"):
            instrument = getattr(self, label)
            if instrument is not None:
                for problem in instrument.validate():
                    add(label, problem)

        if self.strategy_kind is StrategyKind.MODIFIED_SMITH:
            if self.primary_mortgage is None:
                add("primary_mortgage", "is required for Modified Smith strategy")
            if self.heloc is None:
                add("heloc", "is required for Modified Smith strategy")
            if self.rental_mortgage is None:
                add("rental_mortgage", "is required for Modified Smith strategy")
            if jurisdiction is not None and not jurisdiction.supports_smith_manoeuvre:
                add(
                    "strategy_kind",
                    "Smith Manoeuvre is not supported in this jurisdiction",
                )

        for i, rule in enumerate(self.auto_stop_rules):
            for problem in rule.validate():
                add(f"auto_stop_rules[{i}]", problem)

        return errors

    def is_valid(self) -> bool:
        return not self.validate()

    def assert_valid(self) -> None:
        """Raise :class:`ConfigValidationError` when :meth:`validate` finds problems."""
        errors = self.validate()
        if errors:
            raise ConfigValidationError(self.id, errors)

    # === Derived values ===

    def get_jurisdiction(self) -> Jurisdiction:
        return get_jurisdiction(self.jurisdiction)

    def effective_province(self) -> str:
        """Province used for tax lookups, after falling back to the default."""
        return resolve_province(self.get_jurisdiction(), self.province)

    def effective_marginal_tax_rate(self) -> Decimal:
        """Combined marginal rate applied to deductible interest."""
        return effective_marginal_rate(
            self.get_jurisdiction(), self.household_income, self.province
        )

    def scenarios(self) -> list[ScenarioKind]:
        return self.strategy_kind.scenarios()

    def effective_heloc_rate(self) -> Decimal:
        """Strategy override, then the HELOC's own rate, then the default."""
        if self.heloc_rate is not None:
            return self.heloc_rate
        if self.heloc is not None and self.heloc.annual_rate is not None:
            return self.heloc.annual_rate
        return DEFAULT_HELOC_RATE

    def effective_heloc_limit(self) -> Decimal:
        """Opening HELOC credit limit, capped by ``heloc_max_limit``."""
        base = DEFAULT_HELOC_LIMIT
        if self.heloc is not None and self.heloc.credit_limit is not None:
            base = self.heloc.credit_limit
        if self.heloc_max_limit is not None:
            return min(base, self.heloc_max_limit)
        return base

    def readvanceable_max_limit(self) -> Decimal:
        """Ceiling for a readvanceable HELOC's growing limit."""
        if self.heloc_max_limit is not None:
            return self.heloc_max_limit
        primary = self.primary_mortgage.balance if self.primary_mortgage else ZERO
        return primary * READVANCEABLE_MAX_RATIO

    # === Lifecycle ===

    def transition_to(self, status: StrategyStatus | str) -> None:
        """
        Move to a new lifecycle status.

        Raises:
            ConfigError: If the transition is not allowed
        """
        target = StrategyStatus(status)
        if not self.status.can_transition_to(target):
            raise ConfigError(
                f"Strategy {self.id} cannot move from {self.status.value} "
                f"to {target.value}"
            )
        logger.debug("Strategy %s: %s -> %s", self.id, self.status.value, target.value)
        self.status = target

    def activate(self) -> None:
        self.transition_to(StrategyStatus.ACTIVE)

    def complete(self) -> None:
        self.transition_to(StrategyStatus.COMPLETED)

    def summary(self) -> dict:
        """Cached results of the last run as plain values."""
        return {
            "total_interest_saved": _num(self.total_interest_saved),
            "total_tax_benefit": _num(self.total_tax_benefit),
            "net_benefit": _num(self.net_benefit),
            "months_accelerated": self.months_accelerated,
            "last_simulated_at": (
                self.last_simulated_at.isoformat() if self.last_simulated_at else None
            ),
            "status": self.status.value,
        }


def _num(value: Decimal | None) -> float | None:
    return None if value is None else float(value)
