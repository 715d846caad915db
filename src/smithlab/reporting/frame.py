"""
Tabular views of ledger entries.

Reporting works on pandas DataFrames with one row per ledger month, indexed by
calendar month. Money columns are floats: the frames feed charts and CSV
exports, not further ledger arithmetic.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

import numpy as np
import pandas as pd

from smithlab.core.kinds import ScenarioKind
from smithlab.core.ledger import MONEY_FIELDS, LedgerEntry


def ledger_frame(entries: Sequence[LedgerEntry]) -> pd.DataFrame:
    """
    Convert ledger entries into a DataFrame.

    Args:
        entries: Entries of one scenario, in month order

    Returns:
        DataFrame indexed by ``calendar_month`` (``datetime64``) with one column
        per ledger field plus derived ``net_cost`` (total interest minus tax
        benefit). Empty input yields an empty frame with the same columns.

    **Example:**
        ```python
        from smithlab.reporting.frame import ledger_frame

        df = ledger_frame(result.entries[ScenarioKind.MODIFIED_SMITH])
        df["heloc_balance"].max()
        ```
    """
    columns = LedgerEntry.field_names() + ["net_cost"]
    if not entries:
        empty = pd.DataFrame(columns=columns)
        empty.index = pd.DatetimeIndex([], name="calendar_month")
        return empty

    rows = [entry.to_dict() for entry in entries]
    df = pd.DataFrame(rows)
    df["net_cost"] = (
        df["primary_mortgage_interest"]
        + df["rental_mortgage_interest"]
        + df["heloc_interest"]
        - df["tax_benefit"]
    )
    df.index = pd.DatetimeIndex(pd.to_datetime(df["calendar_month"]), name="calendar_month")
    df["calendar_month"] = df.index.date
    for name in MONEY_FIELDS:
        df[name] = df[name].astype(np.float64)
    return df[columns]


def scenario_frames(
    entries_by_scenario: Mapping[ScenarioKind, Sequence[LedgerEntry]],
) -> dict[ScenarioKind, pd.DataFrame]:
    """One DataFrame per scenario, in simulation order."""
    return {
        kind: ledger_frame(entries_by_scenario[kind])
        for kind in ScenarioKind.all_kinds()
        if kind in entries_by_scenario
    }


def comparison_frame(
    entries_by_scenario: Mapping[ScenarioKind, Sequence[LedgerEntry]], field: str
) -> pd.DataFrame:
    """
    Side-by-side view of one field across scenarios.

    Columns are scenario names; months a scenario did not reach are NaN.
    """
    frames = scenario_frames(entries_by_scenario)
    if not frames:
        return pd.DataFrame()
    return pd.concat(
        {kind.value: frame[field] for kind, frame in frames.items()}, axis=1
    )
