"""
Summary metrics comparing scenario ledgers.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from decimal import Decimal

from smithlab.core.kinds import ScenarioKind
from smithlab.core.ledger import LedgerEntry, payoff_month
from smithlab.core.utils import ZERO


def mortgage_interest(entries: Sequence[LedgerEntry]) -> Decimal:
    """Primary plus rental mortgage interest (HELOC excluded)."""
    return sum(
        (e.primary_mortgage_interest + e.rental_mortgage_interest for e in entries),
        ZERO,
    )


def heloc_interest(entries: Sequence[LedgerEntry]) -> Decimal:
    return sum((e.heloc_interest for e in entries), ZERO)


@dataclass(frozen=True)
class SummaryMetrics:
    """
    Headline comparison of a strategy against the baseline.

    Attributes:
        total_interest_saved: Baseline minus strategy mortgage interest
            (primary + rental, HELOC excluded)
        total_tax_benefit: Cumulative tax benefit of the strategy's last entry
        total_heloc_interest: HELOC interest paid over the strategy run
        net_benefit: Interest saved + tax benefit - HELOC interest
        months_accelerated: Baseline payoff month minus strategy payoff month,
            when both pay off within the horizon
        payoff_months: Primary payoff month per scenario (None when not reached)
        final_entries: Last entry per scenario
        strategy_scenario: Scenario compared against the baseline
        stopped: Whether an auto-stop rule ended the strategy run
        stop_reason: Description of the rule that stopped it
        stop_month: Month number of the stop
    """

    total_interest_saved: Decimal = ZERO
    total_tax_benefit: Decimal = ZERO
    total_heloc_interest: Decimal = ZERO
    net_benefit: Decimal = ZERO
    months_accelerated: int | None = None
    payoff_months: dict[ScenarioKind, int | None] = field(default_factory=dict)
    final_entries: dict[ScenarioKind, LedgerEntry] = field(default_factory=dict)
    strategy_scenario: ScenarioKind | None = None
    stopped: bool = False
    stop_reason: str | None = None
    stop_month: int | None = None

    def to_dict(self) -> dict:
        return {
            "total_interest_saved": float(self.total_interest_saved),
            "total_tax_benefit": float(self.total_tax_benefit),
            "total_heloc_interest": float(self.total_heloc_interest),
            "net_benefit": float(self.net_benefit),
            "months_accelerated": self.months_accelerated,
            "payoff_months": {k.value: v for k, v in self.payoff_months.items()},
            "final_entries": {
                k.value: v.to_summary_dict() for k, v in self.final_entries.items()
            },
            "strategy_scenario": (
                self.strategy_scenario.value if self.strategy_scenario else None
            ),
            "stopped": self.stopped,
            "stop_reason": self.stop_reason,
            "stop_month": self.stop_month,
        }


def summary_metrics(
    entries_by_scenario: Mapping[ScenarioKind, Sequence[LedgerEntry]],
) -> SummaryMetrics:
    """
    Compute headline metrics from scenario ledgers.

    The strategy scenario is ``modified_smith`` when present, otherwise the
    most aggressive scenario available. Without a baseline ledger the
    comparison fields stay at zero.
    """
    present = {
        ScenarioKind(kind): list(entries)
        for kind, entries in entries_by_scenario.items()
        if entries
    }
    if not present:
        return SummaryMetrics()

    payoffs = {kind: payoff_month(entries) for kind, entries in present.items()}
    finals = {kind: entries[-1] for kind, entries in present.items()}

    strategy_kind = next(
        kind for kind in reversed(ScenarioKind.all_kinds()) if kind in present
    )
    strategy = present[strategy_kind]
    baseline = present.get(ScenarioKind.BASELINE)

    saved = ZERO
    accelerated = None
    if baseline is not None:
        saved = mortgage_interest(baseline) - mortgage_interest(strategy)
        b_pay, s_pay = payoffs[ScenarioKind.BASELINE], payoffs[strategy_kind]
        if b_pay is not None and s_pay is not None:
            accelerated = b_pay - s_pay

    tax = finals[strategy_kind].cumulative_tax_benefit
    heloc = heloc_interest(strategy)
    last = finals[strategy_kind]

    return SummaryMetrics(
        total_interest_saved=saved,
        total_tax_benefit=tax,
        total_heloc_interest=heloc,
        net_benefit=saved + tax - heloc,
        months_accelerated=accelerated,
        payoff_months=payoffs,
        final_entries=finals,
        strategy_scenario=strategy_kind,
        stopped=last.strategy_stopped,
        stop_reason=last.stop_reason,
        stop_month=last.month_number if last.strategy_stopped else None,
    )
