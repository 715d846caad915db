"""
Tax audit trail for the Modified Smith strategy.

Aggregates the strategy ledger per tax year into the sections a tax preparer
needs: rental income, interest deductions, the estimated tax benefit and a
record of what the HELOC was used for. Also exports the ledger row by row as
CSV for accounting software.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Sequence
from datetime import datetime
from decimal import Decimal

from smithlab.core.kinds import ScenarioKind
from smithlab.core.ledger import LedgerEntry
from smithlab.core.utils import ZERO

from .summary import SummaryMetrics, summary_metrics

CSV_HEADERS: tuple[str, ...] = (
    "Month",
    "Calendar Month",
    "Rental Income",
    "Rental Expenses",
    "Net Rental Cash Flow",
    "HELOC Draw",
    "HELOC Balance",
    "HELOC Interest",
    "Primary Mortgage Balance",
    "Primary Mortgage Interest",
    "Prepayment",
    "Rental Mortgage Balance",
    "Rental Mortgage Interest",
    "Deductible Interest",
    "Non-Deductible Interest",
    "Tax Benefit",
    "Cumulative Tax Benefit",
    "Total Debt",
)

HELOC_PURPOSE = "Rental property expense financing"
HELOC_COMPLIANCE_NOTE = (
    "All HELOC funds used exclusively for investment/rental property purposes "
    "as required for interest deductibility"
)
COMPLIANCE_REQUIREMENTS = (
    "HELOC funds used 100% for rental property purposes",
    "Clear audit trail maintained for all transactions",
    "Interest deductibility properly documented",
)
DISCLAIMER = (
    "This report is generated for informational purposes only and does not "
    "constitute tax advice. Consult with a qualified tax professional before "
    "claiming interest deductions. Borrowed funds must be used for "
    "income-producing purposes for interest to be deductible. Maintain all "
    "supporting documentation including loan statements, property records, "
    "and evidence of the investment purpose of borrowed funds."
)


def _total(entries: Sequence[LedgerEntry], field: str) -> Decimal:
    return sum((getattr(e, field) for e in entries), ZERO)


class AuditTrail:
    """
    Annual and multi-year audit reports over a strategy ledger.

    Args:
        strategy_name: Display name of the strategy
        strategy_kind: Strategy kind value (e.g. ``"modified_smith"``)
        entries: Ledger of the audited scenario, in month order
        jurisdiction: Jurisdiction display name
        province: Province used for the marginal rate
        marginal_rate: Marginal rate applied to deductible interest
        metrics: Summary metrics of the run, for the multi-year totals
        clock: Callable returning the report timestamp
    """

    def __init__(
        self,
        strategy_name: str,
        strategy_kind: str,
        entries: Sequence[LedgerEntry],
        jurisdiction: str = "Canada",
        province: str | None = None,
        marginal_rate: Decimal | None = None,
        metrics: SummaryMetrics | None = None,
        clock=datetime.now,
    ):
        self.strategy_name = strategy_name
        self.strategy_kind = strategy_kind
        self.entries = sorted(entries, key=lambda e: e.month_number)
        self.jurisdiction = jurisdiction
        self.province = province
        self.marginal_rate = marginal_rate
        self.metrics = metrics
        self._clock = clock

    @classmethod
    def from_result(cls, config, result, clock=datetime.now) -> AuditTrail:
        """Audit the strategy scenario of an orchestrator result."""
        scenario = result.metrics.strategy_scenario or ScenarioKind.BASELINE
        return cls(
            strategy_name=config.name,
            strategy_kind=config.strategy_kind.value,
            entries=result.entries.get(scenario, []),
            jurisdiction=config.get_jurisdiction().name,
            province=result.province,
            marginal_rate=result.marginal_rate,
            metrics=result.metrics,
            clock=clock,
        )

    def years(self) -> list[int]:
        return sorted({e.calendar_month.year for e in self.entries})

    def _entries_for(self, year: int | None) -> list[LedgerEntry]:
        if year is None:
            return list(self.entries)
        return [e for e in self.entries if e.calendar_month.year == year]

    def annual_report(self, year: int) -> dict | None:
        """
        Tax-year report for ``year``.

        Returns:
            Nested report dict, or ``None`` when the ledger has no entries in
            that year
        """
        entries = self._entries_for(year)
        if not entries:
            return None

        return {
            "year": year,
            "strategy_name": self.strategy_name,
            "strategy_type": self.strategy_kind,
            "jurisdiction": self.jurisdiction,
            "rental_income": {
                "total_gross_income": _total(entries, "rental_income"),
                "total_expenses": _total(entries, "rental_expenses"),
                "net_rental_income": _total(entries, "net_rental_cash_flow"),
            },
            "interest_deductions": {
                "heloc_interest": _total(entries, "heloc_interest"),
                "rental_mortgage_interest": _total(entries, "rental_mortgage_interest"),
                "total_deductible_interest": _total(entries, "deductible_interest"),
                "non_deductible_interest": _total(entries, "non_deductible_interest"),
            },
            "tax_benefit": {
                "province": self.province,
                "marginal_tax_rate": self.marginal_rate,
                "estimated_tax_savings": _total(entries, "tax_benefit"),
            },
            "heloc_usage": {
                "purpose": HELOC_PURPOSE,
                "total_draws": _total(entries, "heloc_draw"),
                "year_end_balance": entries[-1].heloc_balance,
                "interest_paid": _total(entries, "heloc_interest"),
                "compliance_note": HELOC_COMPLIANCE_NOTE,
            },
            "monthly_breakdown": [
                {
                    "month": e.calendar_month.strftime("%B %Y"),
                    "heloc_draw": e.heloc_draw,
                    "heloc_balance": e.heloc_balance,
                    "deductible_interest": e.deductible_interest,
                    "tax_benefit": e.tax_benefit,
                }
                for e in entries
            ],
            "generated_at": self._clock(),
            "disclaimer": DISCLAIMER,
        }

    def annual_summary(self, year: int) -> dict:
        entries = self._entries_for(year)
        last = entries[-1] if entries else None
        return {
            "year": year,
            "total_deductible_interest": _total(entries, "deductible_interest"),
            "total_tax_benefit": _total(entries, "tax_benefit"),
            "year_end_heloc_balance": last.heloc_balance if last else ZERO,
            "year_end_primary_mortgage": (
                last.primary_mortgage_balance if last else ZERO
            ),
        }

    def summary_report(self) -> dict | None:
        """Multi-year report; ``None`` when the ledger is empty."""
        if not self.entries:
            return None
        years = self.years()
        metrics = self.metrics or summary_metrics(
            {self.entries[0].scenario: self.entries}
        )
        return {
            "strategy_name": self.strategy_name,
            "strategy_type": self.strategy_kind,
            "total_simulation_period": f"{years[0]} to {years[-1]}",
            "totals": {
                "total_tax_benefit": self.entries[-1].cumulative_tax_benefit,
                "total_interest_saved": metrics.total_interest_saved,
                "months_accelerated": metrics.months_accelerated or 0,
                "total_heloc_interest_paid": _total(self.entries, "heloc_interest"),
                "total_deductible_interest": _total(
                    self.entries, "deductible_interest"
                ),
            },
            "annual_summaries": [self.annual_summary(y) for y in years],
            "compliance": {
                "strategy_compliant": True,
                "requirements_met": list(COMPLIANCE_REQUIREMENTS),
            },
            "generated_at": self._clock(),
        }

    def csv_rows(self, year: int | None = None) -> list[list]:
        """Ledger rows in CSV column order (without the header)."""
        return [
            [
                e.month_number,
                e.calendar_month.strftime("%Y-%m"),
                e.rental_income,
                e.rental_expenses,
                e.net_rental_cash_flow,
                e.heloc_draw,
                e.heloc_balance,
                e.heloc_interest,
                e.primary_mortgage_balance,
                e.primary_mortgage_interest,
                e.primary_mortgage_prepayment,
                e.rental_mortgage_balance,
                e.rental_mortgage_interest,
                e.deductible_interest,
                e.non_deductible_interest,
                e.tax_benefit,
                e.cumulative_tax_benefit,
                e.total_debt,
            ]
            for e in self._entries_for(year)
        ]

    def export_csv(self, year: int | None = None) -> str:
        """CSV document with a fixed header row and one row per ledger month."""
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(CSV_HEADERS)
        writer.writerows(self.csv_rows(year))
        return buffer.getvalue()
