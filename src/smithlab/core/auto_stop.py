"""
Auto-stop rules for the Modified Smith scenario.

A rule is a pure predicate over one ledger entry. The simulator evaluates the
enabled rules, in order, after each month's entry is built; the first rule
that triggers stamps the entry as stopped and ends the scenario.

Every :class:`~smithlab.core.kinds.RuleKind` has exactly one predicate in
:data:`RULE_PREDICATES`. The table is checked at import time so adding a kind
without a predicate fails loudly.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from .errors import ConfigError
from .kinds import RuleKind, RuleUnit
from .ledger import LedgerEntry
from .utils import HUNDRED, optional_decimal, parse_month

DEFAULT_HELOC_LIMIT_PERCENT = Decimal("95")

_STATIC_DESCRIPTIONS: dict[RuleKind, str] = {
    RuleKind.PRIMARY_PAID_OFF: "Stop when primary mortgage is paid off",
    RuleKind.ALL_DEBT_PAID_OFF: "Stop when all debt is paid off",
    RuleKind.NEGATIVE_CASH_FLOW: "Stop if net cash flow becomes negative",
    RuleKind.HELOC_INTEREST_EXCEEDS_BENEFIT: "Stop if HELOC interest exceeds tax benefit",
    RuleKind.CUMULATIVE_COST_EXCEEDS_BENEFIT: (
        "Stop if cumulative HELOC cost exceeds cumulative benefit"
    ),
}

# Units a rule may declare; None is always accepted
ALLOWED_UNITS: dict[RuleKind, frozenset[RuleUnit]] = {
    RuleKind.HELOC_LIMIT_PERCENTAGE: frozenset({RuleUnit.PERCENTAGE}),
    RuleKind.HELOC_BALANCE_THRESHOLD: frozenset({RuleUnit.AMOUNT}),
    RuleKind.PRIMARY_PAID_OFF: frozenset(),
    RuleKind.ALL_DEBT_PAID_OFF: frozenset(),
    RuleKind.MAX_MONTHS: frozenset({RuleUnit.MONTHS}),
    RuleKind.NEGATIVE_CASH_FLOW: frozenset(),
    RuleKind.HELOC_INTEREST_EXCEEDS_BENEFIT: frozenset(),
    RuleKind.CUMULATIVE_COST_EXCEEDS_BENEFIT: frozenset(),
    RuleKind.HELOC_INTEREST_CEILING: frozenset({RuleUnit.AMOUNT}),
    RuleKind.TAX_REFUND_COVERAGE_RATIO: frozenset({RuleUnit.PERCENTAGE}),
    RuleKind.MANUAL_STOP_DATE: frozenset({RuleUnit.DATE}),
}


@dataclass(frozen=True)
class AutoStopRule:
    """
    Early-termination rule for the Modified Smith scenario.

    Attributes:
        kind: Which predicate to apply
        threshold: Numeric threshold; meaning depends on ``kind``
        unit: Declared unit of ``threshold``
        enabled: Disabled rules are never evaluated
        params: Extra parameters (``stop_date`` for ``manual_stop_date``)

    **Example:**
        ```python
        from smithlab.core.auto_stop import AutoStopRule

        rules = [
            AutoStopRule("heloc_limit_percentage", threshold=90, unit="percentage"),
            AutoStopRule("max_months", threshold=120, unit="months"),
        ]
        ```
    """

    kind: RuleKind
    threshold: Decimal | None = None
    unit: RuleUnit | None = None
    enabled: bool = True
    params: Mapping[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self):
        try:
            object.__setattr__(self, "kind", RuleKind(self.kind))
        except ValueError as e:
            raise ConfigError(f"Unknown auto-stop rule kind '{self.kind}'") from e
        if self.unit is not None:
            try:
                object.__setattr__(self, "unit", RuleUnit(self.unit))
            except ValueError as e:
                raise ConfigError(f"Unknown auto-stop rule unit '{self.unit}'") from e
        object.__setattr__(self, "threshold", optional_decimal(self.threshold))
        object.__setattr__(self, "params", dict(self.params or {}))

    def triggered(self, entry: LedgerEntry) -> bool:
        """True when the rule is enabled and its predicate holds for ``entry``."""
        if not self.enabled:
            return False
        return RULE_PREDICATES[self.kind](self, entry)

    @property
    def description(self) -> str:
        """Human-readable description, used as the stop reason."""
        t = self.threshold
        kind = self.kind
        if kind is RuleKind.HELOC_LIMIT_PERCENTAGE:
            pct = t if t is not None else DEFAULT_HELOC_LIMIT_PERCENT
            return f"Stop when HELOC reaches {_fmt_number(pct)}% of credit limit"
        if kind is RuleKind.HELOC_BALANCE_THRESHOLD:
            return f"Stop when HELOC balance reaches ${_fmt_amount(t)}"
        if kind is RuleKind.MAX_MONTHS:
            return f"Stop after {int(t or 0)} months"
        if kind is RuleKind.HELOC_INTEREST_CEILING:
            return f"Stop when monthly HELOC interest exceeds ${_fmt_amount(t)}"
        if kind is RuleKind.TAX_REFUND_COVERAGE_RATIO:
            return (
                f"Stop if tax refund covers less than {_fmt_number(t)}% "
                "of HELOC interest"
            )
        if kind is RuleKind.MANUAL_STOP_DATE:
            return f"Stop on {self.params.get('stop_date')}"
        return _STATIC_DESCRIPTIONS[kind]

    def validate(self) -> list[str]:
        """Return human-readable problems with this rule (empty when valid)."""
        problems = []
        allowed = ALLOWED_UNITS[self.kind]
        if self.unit is not None and self.unit not in allowed:
            expected = ", ".join(sorted(u.value for u in allowed)) or "no unit"
            problems.append(
                f"unit '{self.unit.value}' is not valid for {self.kind.value} "
                f"(expected {expected})"
            )
        t = self.threshold
        if t is not None:
            if t < 0:
                problems.append("threshold must not be negative")
            elif RuleUnit.PERCENTAGE in allowed and t > HUNDRED:
                problems.append("percentage threshold must be between 0 and 100")
        if self.kind is RuleKind.MANUAL_STOP_DATE:
            raw = self.params.get("stop_date")
            if raw is None:
                problems.append("stop_date is required for manual_stop_date")
            else:
                try:
                    parse_month(raw)
                except ValueError:
                    problems.append(f"stop_date '{raw}' is not a valid date")
        return problems

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AutoStopRule:
        """Build a rule from a mapping (YAML/JSON payloads)."""
        if "kind" not in data:
            raise ConfigError("Auto-stop rule requires a 'kind'")
        params = dict(data.get("params") or {})
        if "stop_date" in data:
            params.setdefault("stop_date", data["stop_date"])
        return cls(
            kind=data["kind"],
            threshold=data.get("threshold"),
            unit=data.get("unit"),
            enabled=bool(data.get("enabled", True)),
            params=params,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "threshold": None if self.threshold is None else str(self.threshold),
            "unit": None if self.unit is None else self.unit.value,
            "enabled": self.enabled,
            "params": {k: str(v) for k, v in self.params.items()},
        }


@dataclass(frozen=True)
class StopDecision:
    """Outcome of evaluating a rule list against one entry."""

    triggered: bool
    rule: AutoStopRule | None = None

    @property
    def reason(self) -> str | None:
        return self.rule.description if self.rule else None


def evaluate_rules(rules: Iterable[AutoStopRule], entry: LedgerEntry) -> StopDecision:
    """Evaluate rules in order; the first enabled rule that triggers wins."""
    for rule in rules:
        if rule.triggered(entry):
            return StopDecision(True, rule)
    return StopDecision(False, None)


def _fmt_number(value: Decimal | None) -> str:
    if value is None:
        return "?"
    normalized = value.normalize()
    return f"{normalized:f}"


def _fmt_amount(value: Decimal | None) -> str:
    if value is None:
        return "?"
    return f"{int(value):,}"


# === Predicates ===


def _heloc_limit_percentage(rule: AutoStopRule, e: LedgerEntry) -> bool:
    if e.heloc_credit_limit <= 0:
        return False
    threshold = (
        rule.threshold if rule.threshold is not None else DEFAULT_HELOC_LIMIT_PERCENT
    )
    return e.heloc_balance / e.heloc_credit_limit * HUNDRED >= threshold


def _heloc_balance_threshold(rule: AutoStopRule, e: LedgerEntry) -> bool:
    return rule.threshold is not None and e.heloc_balance >= rule.threshold


def _primary_paid_off(rule: AutoStopRule, e: LedgerEntry) -> bool:
    return e.primary_mortgage_paid_off


def _all_debt_paid_off(rule: AutoStopRule, e: LedgerEntry) -> bool:
    return e.all_debt_paid_off


def _max_months(rule: AutoStopRule, e: LedgerEntry) -> bool:
    return rule.threshold is not None and e.month_number >= int(rule.threshold)


def _negative_cash_flow(rule: AutoStopRule, e: LedgerEntry) -> bool:
    return e.net_rental_cash_flow < 0


def _heloc_interest_exceeds_benefit(rule: AutoStopRule, e: LedgerEntry) -> bool:
    return e.heloc_interest > e.tax_benefit


def _cumulative_cost_exceeds_benefit(rule: AutoStopRule, e: LedgerEntry) -> bool:
    return e.cumulative_net_benefit < 0


def _heloc_interest_ceiling(rule: AutoStopRule, e: LedgerEntry) -> bool:
    return rule.threshold is not None and e.heloc_interest > rule.threshold


def _tax_refund_coverage_ratio(rule: AutoStopRule, e: LedgerEntry) -> bool:
    if rule.threshold is None or e.heloc_interest <= 0:
        return False
    return e.tax_benefit / e.heloc_interest * HUNDRED < rule.threshold


def _manual_stop_date(rule: AutoStopRule, e: LedgerEntry) -> bool:
    raw = rule.params.get("stop_date")
    if raw is None:
        return False
    return e.calendar_month >= parse_month(raw)


RULE_PREDICATES: dict[RuleKind, Callable[[AutoStopRule, LedgerEntry], bool]] = {
    RuleKind.HELOC_LIMIT_PERCENTAGE: _heloc_limit_percentage,
    RuleKind.HELOC_BALANCE_THRESHOLD: _heloc_balance_threshold,
    RuleKind.PRIMARY_PAID_OFF: _primary_paid_off,
    RuleKind.ALL_DEBT_PAID_OFF: _all_debt_paid_off,
    RuleKind.MAX_MONTHS: _max_months,
    RuleKind.NEGATIVE_CASH_FLOW: _negative_cash_flow,
    RuleKind.HELOC_INTEREST_EXCEEDS_BENEFIT: _heloc_interest_exceeds_benefit,
    RuleKind.CUMULATIVE_COST_EXCEEDS_BENEFIT: _cumulative_cost_exceeds_benefit,
    RuleKind.HELOC_INTEREST_CEILING: _heloc_interest_ceiling,
    RuleKind.TAX_REFUND_COVERAGE_RATIO: _tax_refund_coverage_ratio,
    RuleKind.MANUAL_STOP_DATE: _manual_stop_date,
}

_missing = set(RuleKind) - set(RULE_PREDICATES)
if _missing:  # pragma: no cover - guards against adding a kind without a predicate
    raise RuntimeError(
        f"Auto-stop rule kinds without predicates: {sorted(k.value for k in _missing)}"
    )
