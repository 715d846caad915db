"""
Tests for ledger DataFrames and chart series payloads.
"""

import json

import numpy as np
import pandas as pd
import pytest

from smithlab.core.kinds import ScenarioKind
from smithlab.core.ledger import MONEY_FIELDS, LedgerEntry
from smithlab.reporting import (
    ChartSeriesBuilder,
    comparison_frame,
    ledger_frame,
    scenario_frames,
    to_points,
)
from smithlab.simulators import run_scenarios

BASELINE = ScenarioKind.BASELINE
PREPAY = ScenarioKind.PREPAY_ONLY
SMITH = ScenarioKind.MODIFIED_SMITH


@pytest.fixture
def entries(config_factory, start):
    runs = run_scenarios(config_factory(simulation_months=24), start)
    return {kind: run.entries for kind, run in runs.items()}


class TestLedgerFrame:
    """Test DataFrame conversion."""

    def test_shape_and_index(self, entries):
        df = ledger_frame(entries[SMITH])
        assert len(df) == 24
        assert isinstance(df.index, pd.DatetimeIndex)
        assert df.index.name == "calendar_month"
        assert df.index[0] == pd.Timestamp("2026-01-01")
        assert list(df.columns) == LedgerEntry.field_names() + ["net_cost"]

    def test_money_columns_are_floats(self, entries):
        df = ledger_frame(entries[SMITH])
        for name in MONEY_FIELDS:
            assert df[name].dtype == np.float64
        assert df["heloc_draw"].iloc[0] == 500.0

    def test_net_cost(self, entries):
        df = ledger_frame(entries[SMITH])
        row = df.iloc[1]
        expected = (
            row["primary_mortgage_interest"]
            + row["rental_mortgage_interest"]
            + row["heloc_interest"]
            - row["tax_benefit"]
        )
        assert row["net_cost"] == pytest.approx(expected)

    def test_empty_input(self):
        df = ledger_frame([])
        assert df.empty
        assert "net_cost" in df.columns
        assert df.index.name == "calendar_month"

    def test_scenario_frames_keep_simulation_order(self, entries):
        frames = scenario_frames({SMITH: entries[SMITH], BASELINE: entries[BASELINE]})
        assert list(frames) == [BASELINE, SMITH]

    def test_comparison_frame(self, entries):
        df = comparison_frame(entries, "primary_mortgage_balance")
        assert list(df.columns) == ["baseline", "prepay_only", "modified_smith"]
        last = df.iloc[-1]
        assert last["baseline"] > last["prepay_only"] > last["modified_smith"]

    def test_comparison_frame_without_ledgers(self):
        assert comparison_frame({}, "total_debt").empty


class TestChartSeries:
    """Test named chart series."""

    def test_point_format(self, entries):
        builder = ChartSeriesBuilder(entries)
        points = builder.series(BASELINE, "primary_mortgage_balance")
        assert len(points) == 24
        assert points[0]["date"] == "2026-01-01"
        assert points[1]["date"] == "2026-02-01"
        assert points[0]["value"] == pytest.approx(399323.15, abs=0.05)

    def test_to_points(self):
        column = pd.Series(
            [1.5, 2.5], index=pd.DatetimeIndex(["2026-01-01", "2026-02-01"])
        )
        assert to_points(column) == [
            {"date": "2026-01-01", "value": 1.5},
            {"date": "2026-02-01", "value": 2.5},
        ]

    def test_unknown_field(self, entries):
        with pytest.raises(KeyError, match="Unknown ledger field"):
            ChartSeriesBuilder(entries).series(SMITH, "vibes")

    def test_missing_scenario_is_empty(self, entries):
        builder = ChartSeriesBuilder({BASELINE: entries[BASELINE]})
        assert builder.heloc_balance() == []
        assert builder.debt_comparison()["strategy"] == []
        assert len(builder.debt_comparison()["baseline"]) == 24

    def test_named_series(self, entries):
        builder = ChartSeriesBuilder(entries)
        assert set(builder.interest_breakdown()) == {"deductible", "non_deductible"}
        assert set(builder.net_cost_comparison()) == {
            "baseline",
            "prepay_only",
            "strategy",
        }
        tax = [p["value"] for p in builder.cumulative_tax_benefit()]
        assert tax == sorted(tax)
        assert builder.heloc_balance()[0]["value"] == 500.0
        assert len(builder.cash_flow()) == 24
        assert len(builder.monthly_tax_benefit()) == 24
        assert len(builder.total_debt()["strategy"]) == 24

    def test_all_series_keys(self, entries):
        payload = ChartSeriesBuilder(entries).all_series()
        assert set(payload) == {
            "debt_comparison",
            "total_debt",
            "cumulative_tax_benefit",
            "monthly_tax_benefit",
            "heloc_balance",
            "interest_breakdown",
            "net_cost_comparison",
            "cash_flow",
        }

    def test_to_json(self, entries):
        data = json.loads(ChartSeriesBuilder(entries).to_json())
        assert set(data) == {"series", "summary"}
        assert data["summary"]["strategy_scenario"] == "modified_smith"
