"""
Modified Smith Manoeuvre scenario.

Rental expenses are paid from the HELOC instead of from rental income. The
rental income that is freed up prepays the (non-deductible) primary
mortgage, while the new HELOC debt finances a rental property and its
interest is therefore deductible. Over time non-deductible debt is converted
into deductible debt.
"""

from __future__ import annotations

from decimal import Decimal

from smithlab.core.kinds import ScenarioKind
from smithlab.core.mortgage_math import monthly_interest_simple
from smithlab.core.utils import ZERO

from .interfaces import HelocActivity, MonthInputs, SimulationContext


class ModifiedSmithPolicy:
    """
    HELOC-financed rental expenses (scenario: 'modified_smith').

    Monthly HELOC mechanics, in order:

    - **Credit limit**: the opening limit, or for a readvanceable HELOC
      ``min(opening limit + primary principal repaid so far, cap)``
    - **Interest**: simple monthly interest on the opening balance,
      capitalized onto the HELOC while credit is available; any part that does
      not fit is paid in cash (``heloc_payment``), from rental surplus first
      and out of pocket for the rest
    - **Draw**: ``min(rental expenses, remaining credit)``; expenses the
      HELOC cannot cover are paid from rental income

    The prepayment request is the rental income left after those cash
    payments. The driver adds the annual lump sum and applies the caps.
    """

    kind = ScenarioKind.MODIFIED_SMITH
    accepts_lump_sums = True
    heloc_interest_deductible = True
    evaluates_rules = True

    def __init__(self):
        self.balance: Decimal | None = None

    def credit_limit(self, ctx: SimulationContext, month: MonthInputs) -> Decimal:
        if not ctx.heloc_readvanceable:
            return ctx.heloc_limit
        return min(
            ctx.heloc_limit + month.cumulative_primary_repaid, ctx.heloc_readvance_cap
        )

    def heloc_month(self, ctx: SimulationContext, month: MonthInputs) -> HelocActivity:
        if self.balance is None:
            self.balance = abs(ctx.heloc.balance) if ctx.heloc is not None else ZERO

        limit = self.credit_limit(ctx, month)
        interest = monthly_interest_simple(self.balance, ctx.heloc_rate)

        headroom = max(limit - self.balance, ZERO)
        capitalized = min(interest, headroom)
        payment = interest - capitalized
        headroom -= capitalized

        draw = min(month.rental_expenses, headroom)
        self.balance += capitalized + draw

        expenses_from_rental = month.rental_expenses - draw
        surplus = max(month.rental_income - expenses_from_rental, ZERO)
        from_rental = min(payment, surplus)

        return HelocActivity(
            draw=draw,
            balance=self.balance,
            interest=interest,
            payment=payment,
            credit_limit=limit,
            interest_from_rental=from_rental,
            interest_from_pocket=payment - from_rental,
            expenses_from_rental=expenses_from_rental,
        )

    def prepayment_request(
        self, ctx: SimulationContext, month: MonthInputs, heloc: HelocActivity
    ) -> Decimal:
        return max(
            month.rental_income
            - heloc.expenses_from_rental
            - heloc.interest_from_rental,
            ZERO,
        )
