"""
Baseline scenario: scheduled payments only.
"""

from __future__ import annotations

from decimal import Decimal

from smithlab.core.kinds import ScenarioKind
from smithlab.core.utils import ZERO

from .interfaces import HelocActivity, MonthInputs, SimulationContext


class BaselinePolicy:
    """
    Do-nothing comparison point (scenario: 'baseline').

    Mortgages amortize on schedule. There is no prepayment, no lump sum and
    no HELOC use; the rental surplus is informational only.
    """

    kind = ScenarioKind.BASELINE
    accepts_lump_sums = False
    heloc_interest_deductible = False
    evaluates_rules = False

    def heloc_month(self, ctx: SimulationContext, month: MonthInputs) -> HelocActivity:
        return HelocActivity.idle(month)

    def prepayment_request(
        self, ctx: SimulationContext, month: MonthInputs, heloc: HelocActivity
    ) -> Decimal:
        return ZERO
