"""
Ledger entries and ledger storage.

A ledger is the ordered list of monthly entries a simulator produced for one
(strategy, scenario) pair. Entries are immutable; a re-run replaces the whole
partition. Storage is behind the :class:`LedgerStore` protocol so the engine
does not care whether entries end up in memory, a database or a file.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import asdict, dataclass, fields
from datetime import date
from decimal import Decimal
from typing import Protocol, runtime_checkable

from .kinds import ScenarioKind
from .utils import ZERO

MONEY_FIELDS: tuple[str, ...] = (
    "rental_income",
    "rental_expenses",
    "net_rental_cash_flow",
    "heloc_draw",
    "heloc_balance",
    "heloc_interest",
    "heloc_payment",
    "heloc_credit_limit",
    "heloc_interest_from_rental",
    "heloc_interest_from_pocket",
    "primary_mortgage_balance",
    "primary_mortgage_payment",
    "primary_mortgage_principal",
    "primary_mortgage_interest",
    "primary_mortgage_prepayment",
    "rental_mortgage_balance",
    "rental_mortgage_payment",
    "rental_mortgage_principal",
    "rental_mortgage_interest",
    "deductible_interest",
    "non_deductible_interest",
    "tax_benefit",
    "cumulative_tax_benefit",
    "cumulative_net_benefit",
    "total_debt",
)


@dataclass(frozen=True)
class LedgerEntry:
    """
    One month of one scenario.

    Money fields are ``Decimal`` values rounded to cents. ``month_number`` is
    1-based: month 1 is the first simulated month and its ``calendar_month``
    is the simulation start month.

    Invariants maintained by the simulators:
    - every balance is >= 0
    - ``total_debt`` equals the sum of the three balances
    - ``cumulative_tax_benefit`` never decreases within a scenario
    - an entry with ``strategy_stopped`` is the last entry of its ledger
    """

    strategy_id: str
    scenario: ScenarioKind
    month_number: int
    calendar_month: date
    rental_income: Decimal = ZERO
    rental_expenses: Decimal = ZERO
    net_rental_cash_flow: Decimal = ZERO
    heloc_draw: Decimal = ZERO
    heloc_balance: Decimal = ZERO
    heloc_interest: Decimal = ZERO
    heloc_payment: Decimal = ZERO
    heloc_credit_limit: Decimal = ZERO
    heloc_interest_from_rental: Decimal = ZERO
    heloc_interest_from_pocket: Decimal = ZERO
    primary_mortgage_balance: Decimal = ZERO
    primary_mortgage_payment: Decimal = ZERO
    primary_mortgage_principal: Decimal = ZERO
    primary_mortgage_interest: Decimal = ZERO
    primary_mortgage_prepayment: Decimal = ZERO
    rental_mortgage_balance: Decimal = ZERO
    rental_mortgage_payment: Decimal = ZERO
    rental_mortgage_principal: Decimal = ZERO
    rental_mortgage_interest: Decimal = ZERO
    deductible_interest: Decimal = ZERO
    non_deductible_interest: Decimal = ZERO
    tax_benefit: Decimal = ZERO
    cumulative_tax_benefit: Decimal = ZERO
    cumulative_net_benefit: Decimal = ZERO
    total_debt: Decimal = ZERO
    prepayment_capped: bool = False
    strategy_stopped: bool = False
    stop_reason: str | None = None

    @property
    def total_monthly_payment(self) -> Decimal:
        """Scheduled mortgage payments plus prepayment and HELOC interest paid."""
        return (
            self.primary_mortgage_payment
            + self.primary_mortgage_prepayment
            + self.rental_mortgage_payment
            + self.heloc_payment
        )

    @property
    def total_interest_paid(self) -> Decimal:
        return (
            self.primary_mortgage_interest
            + self.rental_mortgage_interest
            + self.heloc_interest
        )

    @property
    def primary_mortgage_paid_off(self) -> bool:
        return self.primary_mortgage_balance <= 0

    @property
    def all_debt_paid_off(self) -> bool:
        return self.total_debt <= 0

    def to_summary_dict(self) -> dict:
        """Compact float-valued view for display and JSON export."""
        return {
            "month": self.month_number,
            "calendar_month": self.calendar_month.isoformat(),
            "primary_balance": float(self.primary_mortgage_balance),
            "rental_balance": float(self.rental_mortgage_balance),
            "heloc_balance": float(self.heloc_balance),
            "total_debt": float(self.total_debt),
            "tax_benefit": float(self.tax_benefit),
            "cumulative_tax_benefit": float(self.cumulative_tax_benefit),
            "strategy_stopped": self.strategy_stopped,
            "stop_reason": self.stop_reason,
        }

    def to_dict(self) -> dict:
        """Full record with JSON-friendly values."""
        data = asdict(self)
        data["scenario"] = self.scenario.value
        data["calendar_month"] = self.calendar_month.isoformat()
        for name in MONEY_FIELDS:
            data[name] = float(data[name])
        return data

    @classmethod
    def field_names(cls) -> list[str]:
        return [f.name for f in fields(cls)]


def payoff_month(entries: Sequence[LedgerEntry]) -> int | None:
    """Month number of the first entry whose primary balance is zero."""
    for entry in entries:
        if entry.primary_mortgage_balance <= 0:
            return entry.month_number
    return None


@runtime_checkable
class LedgerStore(Protocol):
    """
    Contract for ledger persistence.

    ``replace`` must be atomic across every scenario passed in: a reader
    either sees the previous run for all of them or the new run for all of
    them, never a mix.
    """

    def replace(
        self,
        strategy_id: str,
        entries_by_scenario: Mapping[ScenarioKind, Sequence[LedgerEntry]],
    ) -> None:
        """Delete existing entries for the given scenarios and insert the new ones."""
        ...

    def entries(self, strategy_id: str, scenario: ScenarioKind) -> list[LedgerEntry]:
        """Entries of one scenario ordered by month number."""
        ...

    def scenarios(self, strategy_id: str) -> list[ScenarioKind]:
        """Scenarios that currently have entries for the strategy."""
        ...

    def clear(self, strategy_id: str) -> None:
        """Remove every entry for the strategy."""
        ...


class InMemoryLedgerStore:
    """Thread-safe in-process ledger store."""

    def __init__(self):
        self._lock = threading.Lock()
        self._data: dict[str, dict[ScenarioKind, tuple[LedgerEntry, ...]]] = {}

    def replace(
        self,
        strategy_id: str,
        entries_by_scenario: Mapping[ScenarioKind, Sequence[LedgerEntry]],
    ) -> None:
        staged = {
            ScenarioKind(scenario): tuple(
                sorted(entries, key=lambda e: e.month_number)
            )
            for scenario, entries in entries_by_scenario.items()
        }
        for scenario, entries in staged.items():
            _check_partition(strategy_id, scenario, entries)
        with self._lock:
            current = dict(self._data.get(strategy_id, {}))
            current.update(staged)
            self._data[strategy_id] = current

    def entries(self, strategy_id: str, scenario: ScenarioKind) -> list[LedgerEntry]:
        with self._lock:
            return list(
                self._data.get(strategy_id, {}).get(ScenarioKind(scenario), ())
            )

    def scenarios(self, strategy_id: str) -> list[ScenarioKind]:
        with self._lock:
            present = self._data.get(strategy_id, {})
            return [kind for kind in ScenarioKind.all_kinds() if present.get(kind)]

    def all_entries(self, strategy_id: str) -> dict[ScenarioKind, list[LedgerEntry]]:
        """Snapshot of every scenario for the strategy."""
        with self._lock:
            return {
                kind: list(entries)
                for kind, entries in self._data.get(strategy_id, {}).items()
            }

    def clear(self, strategy_id: str) -> None:
        with self._lock:
            self._data.pop(strategy_id, None)


def _check_partition(
    strategy_id: str, scenario: ScenarioKind, entries: Iterable[LedgerEntry]
) -> None:
    seen: set[int] = set()
    for entry in entries:
        if entry.strategy_id != strategy_id or entry.scenario != scenario:
            raise ValueError(
                f"Entry for ({entry.strategy_id}, {entry.scenario.value}) "
                f"cannot be stored under ({strategy_id}, {scenario.value})"
            )
        if entry.month_number in seen:
            raise ValueError(
                f"Duplicate month {entry.month_number} in {scenario.value} ledger"
            )
        seen.add(entry.month_number)
