"""
Tests for ledger entries and the in-memory ledger store.
"""

import threading
from datetime import date
from decimal import Decimal

import pytest

from smithlab.core.kinds import ScenarioKind
from smithlab.core.ledger import InMemoryLedgerStore, LedgerEntry, LedgerStore
from smithlab.core.utils import add_months

BASELINE = ScenarioKind.BASELINE
PREPAY = ScenarioKind.PREPAY_ONLY
SMITH = ScenarioKind.MODIFIED_SMITH


def ledger(strategy_id, scenario, months, balance="1000"):
    return [
        LedgerEntry(
            strategy_id=strategy_id,
            scenario=scenario,
            month_number=n,
            calendar_month=add_months(date(2026, 1, 1), n - 1),
            primary_mortgage_balance=Decimal(balance),
            total_debt=Decimal(balance),
        )
        for n in range(1, months + 1)
    ]


class TestLedgerEntry:
    """Test derived entry values."""

    def test_totals(self):
        entry = LedgerEntry(
            "s1",
            SMITH,
            1,
            date(2026, 1, 1),
            primary_mortgage_payment=Decimal("2326.41"),
            primary_mortgage_prepayment=Decimal("2000"),
            rental_mortgage_payment=Decimal("1370.00"),
            heloc_payment=Decimal("10"),
            primary_mortgage_interest=Decimal("1649.57"),
            rental_mortgage_interest=Decimal("900.00"),
            heloc_interest=Decimal("2.92"),
        )
        assert entry.total_monthly_payment == Decimal("5706.41")
        assert entry.total_interest_paid == Decimal("2552.49")
        assert entry.primary_mortgage_paid_off
        assert entry.all_debt_paid_off

    def test_to_dict_is_json_friendly(self):
        entry = ledger("s1", SMITH, 1)[0]
        data = entry.to_dict()
        assert data["scenario"] == "modified_smith"
        assert data["calendar_month"] == "2026-01-01"
        assert data["primary_mortgage_balance"] == 1000.0
        assert data["strategy_stopped"] is False
        assert set(data) == set(LedgerEntry.field_names())

    def test_summary_dict(self):
        summary = ledger("s1", SMITH, 1)[0].to_summary_dict()
        assert summary["month"] == 1
        assert summary["total_debt"] == 1000.0


class TestInMemoryLedgerStore:
    """Test replace/read semantics."""

    def test_satisfies_protocol(self):
        assert isinstance(InMemoryLedgerStore(), LedgerStore)

    def test_replace_and_read(self):
        store = InMemoryLedgerStore()
        store.replace("s1", {BASELINE: ledger("s1", BASELINE, 3)})
        entries = store.entries("s1", BASELINE)
        assert [e.month_number for e in entries] == [1, 2, 3]
        assert store.entries("s1", SMITH) == []
        assert store.scenarios("s1") == [BASELINE]

    def test_entries_are_returned_in_month_order(self):
        store = InMemoryLedgerStore()
        store.replace("s1", {SMITH: list(reversed(ledger("s1", SMITH, 4)))})
        assert [e.month_number for e in store.entries("s1", "modified_smith")] == [
            1,
            2,
            3,
            4,
        ]

    def test_replace_swaps_only_given_scenarios(self):
        store = InMemoryLedgerStore()
        store.replace(
            "s1", {BASELINE: ledger("s1", BASELINE, 3), SMITH: ledger("s1", SMITH, 3)}
        )
        store.replace("s1", {SMITH: ledger("s1", SMITH, 2)})
        assert len(store.entries("s1", BASELINE)) == 3
        assert len(store.entries("s1", SMITH)) == 2

    def test_empty_list_clears_a_scenario(self):
        store = InMemoryLedgerStore()
        store.replace("s1", {PREPAY: ledger("s1", PREPAY, 2)})
        store.replace("s1", {PREPAY: []})
        assert store.scenarios("s1") == []

    def test_strategies_are_isolated(self):
        store = InMemoryLedgerStore()
        store.replace("a", {BASELINE: ledger("a", BASELINE, 2)})
        store.replace("b", {BASELINE: ledger("b", BASELINE, 5)})
        store.clear("a")
        assert store.entries("a", BASELINE) == []
        assert len(store.entries("b", BASELINE)) == 5

    def test_mismatched_entry_rejects_whole_replace(self):
        store = InMemoryLedgerStore()
        store.replace("s1", {BASELINE: ledger("s1", BASELINE, 3)})
        with pytest.raises(ValueError, match="cannot be stored"):
            store.replace(
                "s1",
                {BASELINE: ledger("s1", BASELINE, 1), SMITH: ledger("other", SMITH, 1)},
            )
        assert len(store.entries("s1", BASELINE)) == 3
        assert store.scenarios("s1") == [BASELINE]

    def test_duplicate_month_rejected(self):
        store = InMemoryLedgerStore()
        entries = ledger("s1", SMITH, 2) + ledger("s1", SMITH, 1)
        with pytest.raises(ValueError, match="Duplicate month 1"):
            store.replace("s1", {SMITH: entries})

    def test_readers_never_see_a_partial_replace(self):
        """Concurrent snapshots show one run for every scenario, never a mix."""
        store = InMemoryLedgerStore()
        runs = [
            {kind: ledger("s1", kind, 3, balance) for kind in ScenarioKind.all_kinds()}
            for balance in ("1000", "2000")
        ]
        store.replace("s1", runs[0])
        mixed = []

        def writer():
            for i in range(200):
                store.replace("s1", runs[i % 2])

        def reader():
            for _ in range(200):
                snapshot = store.all_entries("s1")
                balances = {
                    entries[0].primary_mortgage_balance for entries in snapshot.values()
                }
                if len(balances) != 1:
                    mixed.append(balances)

        threads = [threading.Thread(target=writer), threading.Thread(target=reader)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert mixed == []
