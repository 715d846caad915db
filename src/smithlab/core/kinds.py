"""
SmithLab kind constants (closed enumerations).
"""

from __future__ import annotations

from enum import Enum


class ScenarioKind(str, Enum):
    """The three scenarios a strategy run can produce ledgers for."""

    BASELINE = "baseline"  # scheduled payments only
    PREPAY_ONLY = "prepay_only"  # rental surplus prepays the primary mortgage
    MODIFIED_SMITH = "modified_smith"  # HELOC-financed rental expenses

    @classmethod
    def all_kinds(cls) -> list[ScenarioKind]:
        """Enumerate all scenario kinds in simulation order."""
        return [cls.BASELINE, cls.PREPAY_ONLY, cls.MODIFIED_SMITH]


class StrategyKind(str, Enum):
    """Strategy types a household can configure."""

    BASELINE = "baseline"
    MODIFIED_SMITH = "modified_smith"

    @property
    def label(self) -> str:
        return {
            StrategyKind.BASELINE: "Baseline (No Optimization)",
            StrategyKind.MODIFIED_SMITH: "Modified Smith Manoeuvre",
        }[self]

    def scenarios(self) -> list[ScenarioKind]:
        """Scenarios simulated for this strategy kind, in dependency order."""
        if self is StrategyKind.BASELINE:
            return [ScenarioKind.BASELINE]
        return ScenarioKind.all_kinds()


class StrategyStatus(str, Enum):
    """Lifecycle of a strategy configuration."""

    DRAFT = "draft"
    SIMULATED = "simulated"
    ACTIVE = "active"
    COMPLETED = "completed"

    def can_transition_to(self, target: StrategyStatus) -> bool:
        return target in _STATUS_TRANSITIONS[self]


_STATUS_TRANSITIONS: dict[StrategyStatus, frozenset[StrategyStatus]] = {
    StrategyStatus.DRAFT: frozenset({StrategyStatus.SIMULATED}),
    StrategyStatus.SIMULATED: frozenset(
        {StrategyStatus.SIMULATED, StrategyStatus.ACTIVE}
    ),
    StrategyStatus.ACTIVE: frozenset(
        {StrategyStatus.SIMULATED, StrategyStatus.COMPLETED}
    ),
    StrategyStatus.COMPLETED: frozenset(),
}


class RateType(str, Enum):
    FIXED = "fixed"
    VARIABLE = "variable"


class RuleKind(str, Enum):
    """Closed set of auto-stop rule kinds."""

    HELOC_LIMIT_PERCENTAGE = "heloc_limit_percentage"
    HELOC_BALANCE_THRESHOLD = "heloc_balance_threshold"
    PRIMARY_PAID_OFF = "primary_paid_off"
    ALL_DEBT_PAID_OFF = "all_debt_paid_off"
    MAX_MONTHS = "max_months"
    NEGATIVE_CASH_FLOW = "negative_cash_flow"
    HELOC_INTEREST_EXCEEDS_BENEFIT = "heloc_interest_exceeds_benefit"
    CUMULATIVE_COST_EXCEEDS_BENEFIT = "cumulative_cost_exceeds_benefit"
    HELOC_INTEREST_CEILING = "heloc_interest_ceiling"
    TAX_REFUND_COVERAGE_RATIO = "tax_refund_coverage_ratio"
    MANUAL_STOP_DATE = "manual_stop_date"

    @classmethod
    def all_kinds(cls) -> list[RuleKind]:
        """Enumerate all rule kinds (for validation and docs)."""
        return list(cls)


class RuleUnit(str, Enum):
    PERCENTAGE = "percentage"
    AMOUNT = "amount"
    MONTHS = "months"
    DATE = "date"
