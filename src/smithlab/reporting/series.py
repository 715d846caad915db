"""
Chart series payloads.

Every series is a list of ``{"date": "YYYY-MM-DD", "value": float}`` points,
ready to serialize as JSON for a charting front end.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence

import pandas as pd

from smithlab.core.kinds import ScenarioKind
from smithlab.core.ledger import LedgerEntry

from .frame import scenario_frames
from .summary import summary_metrics

Series = list[dict]


def to_points(column: pd.Series) -> Series:
    """Convert a date-indexed column into ``{date, value}`` points."""
    return [
        {"date": ts.date().isoformat(), "value": float(value)}
        for ts, value in column.items()
    ]


class ChartSeriesBuilder:
    """
    Builds named chart series from scenario ledgers.

    The "strategy" side of comparisons is the Modified Smith ledger; when a
    strategy was only simulated as a baseline, strategy series are empty.

    **Example:**
        ```python
        from smithlab.reporting.series import ChartSeriesBuilder

        builder = ChartSeriesBuilder(result.entries)
        payload = builder.all_series()
        payload["debt_comparison"]["baseline"][0]
        # {'date': '2026-01-01', 'value': 399323.15}
        ```
    """

    def __init__(
        self,
        entries_by_scenario: Mapping[ScenarioKind, Sequence[LedgerEntry]],
        strategy_scenario: ScenarioKind = ScenarioKind.MODIFIED_SMITH,
    ):
        self.entries_by_scenario = {
            ScenarioKind(kind): list(entries)
            for kind, entries in entries_by_scenario.items()
        }
        self.strategy_scenario = ScenarioKind(strategy_scenario)
        self._frames = scenario_frames(self.entries_by_scenario)

    def series(self, scenario: ScenarioKind | str, field: str) -> Series:
        """Time series of one ledger field for one scenario."""
        frame = self._frames.get(ScenarioKind(scenario))
        if frame is None or frame.empty:
            return []
        if field not in frame.columns:
            raise KeyError(f"Unknown ledger field '{field}'")
        return to_points(frame[field])

    def _pair(self, field: str) -> dict[str, Series]:
        return {
            "baseline": self.series(ScenarioKind.BASELINE, field),
            "strategy": self.series(self.strategy_scenario, field),
        }

    def debt_comparison(self) -> dict[str, Series]:
        """Primary mortgage balance: baseline vs strategy."""
        return self._pair("primary_mortgage_balance")

    def total_debt(self) -> dict[str, Series]:
        return self._pair("total_debt")

    def cumulative_tax_benefit(self) -> Series:
        return self.series(self.strategy_scenario, "cumulative_tax_benefit")

    def monthly_tax_benefit(self) -> Series:
        return self.series(self.strategy_scenario, "tax_benefit")

    def heloc_balance(self) -> Series:
        return self.series(self.strategy_scenario, "heloc_balance")

    def interest_breakdown(self) -> dict[str, Series]:
        """Deductible vs non-deductible interest of the strategy."""
        return {
            "deductible": self.series(self.strategy_scenario, "deductible_interest"),
            "non_deductible": self.series(
                self.strategy_scenario, "non_deductible_interest"
            ),
        }

    def net_cost_comparison(self) -> dict[str, Series]:
        """
        Net monthly cost (interest paid minus tax benefit) for every scenario.

        Keys are ``baseline``, ``prepay_only`` and ``strategy``; scenarios that
        were not simulated map to empty lists.
        """
        return {
            "baseline": self.series(ScenarioKind.BASELINE, "net_cost"),
            "prepay_only": self.series(ScenarioKind.PREPAY_ONLY, "net_cost"),
            "strategy": self.series(self.strategy_scenario, "net_cost"),
        }

    def cash_flow(self) -> Series:
        return self.series(self.strategy_scenario, "net_rental_cash_flow")

    def all_series(self) -> dict:
        """All named series combined for a dashboard."""
        return {
            "debt_comparison": self.debt_comparison(),
            "total_debt": self.total_debt(),
            "cumulative_tax_benefit": self.cumulative_tax_benefit(),
            "monthly_tax_benefit": self.monthly_tax_benefit(),
            "heloc_balance": self.heloc_balance(),
            "interest_breakdown": self.interest_breakdown(),
            "net_cost_comparison": self.net_cost_comparison(),
            "cash_flow": self.cash_flow(),
        }

    def summary_metrics(self) -> dict:
        """Headline metrics for display, as plain values."""
        return summary_metrics(self.entries_by_scenario).to_dict()

    def to_json(self, indent: int | None = 2) -> str:
        return json.dumps(
            {"series": self.all_series(), "summary": self.summary_metrics()},
            indent=indent,
        )
