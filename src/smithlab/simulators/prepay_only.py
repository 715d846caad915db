"""
Prepay-only scenario: rental surplus prepays the primary mortgage.
"""

from __future__ import annotations

from decimal import Decimal

from smithlab.core.kinds import ScenarioKind
from smithlab.core.utils import ZERO

from .interfaces import HelocActivity, MonthInputs, SimulationContext


class PrepayOnlyPolicy:
    """
    Surplus prepayment without tax engineering (scenario: 'prepay_only').

    Each month ``max(rental income - rental expenses, 0)`` goes to the primary
    mortgage, together with the configured annual lump sum. The driver caps
    the total by the outstanding balance and the annual prepayment privilege.
    The HELOC is never touched.
    """

    kind = ScenarioKind.PREPAY_ONLY
    accepts_lump_sums = True
    heloc_interest_deductible = False
    evaluates_rules = False

    def heloc_month(self, ctx: SimulationContext, month: MonthInputs) -> HelocActivity:
        return HelocActivity.idle(month)

    def prepayment_request(
        self, ctx: SimulationContext, month: MonthInputs, heloc: HelocActivity
    ) -> Decimal:
        return max(month.rental_income - month.rental_expenses, ZERO)
