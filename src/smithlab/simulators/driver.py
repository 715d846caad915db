"""
Shared month-by-month simulation driver.

One loop serves all three scenarios. Each month it:

1. resets the annual prepayment-privilege tally at the first month and every January
2. renews mortgages whose renewal month has come
3. splits each mortgage payment into interest and principal
4. lets the scenario policy move the HELOC and ask for a prepayment
5. adds the annual lump sum and caps the prepayment by balance and privilege
6. classifies interest as deductible or not and prices the tax benefit
7. builds the ledger entry, evaluates auto-stop rules, and stops when both
   mortgages are paid off

Money is carried at full ``Decimal`` precision and rounded only when written
to a :class:`~smithlab.core.ledger.LedgerEntry`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from decimal import Decimal

from smithlab.core.auto_stop import evaluate_rules
from smithlab.core.instruments import DEFAULT_RENEWAL_TERM_MONTHS, DebtInstrument
from smithlab.core.ledger import LedgerEntry
from smithlab.core.mortgage_math import level_payment, monthly_interest
from smithlab.core.utils import HUNDRED, ZERO, add_months, months_between

from .interfaces import MonthInputs, ScenarioPolicy, ScenarioRun, SimulationContext

logger = logging.getLogger(__name__)


class _Amortizer:
    """Running state of one semi-annually compounded mortgage."""

    def __init__(
        self,
        instrument: DebtInstrument | None,
        default_rate: Decimal,
        start,
        settle_below: Decimal,
    ):
        self.instrument = instrument
        self.settle_below = settle_below
        if instrument is None:
            self.balance = ZERO
            self.rate = ZERO
            self.term = 0
            self.payment = ZERO
            self.renewal_index = None
            self.renewal_every = None
            self.renewed = False
            return

        self.balance = abs(instrument.balance)
        self.rate = instrument.rate_or(default_rate)
        self.term = instrument.term_or_default()
        self.payment = level_payment(self.balance, self.rate, self.term)

        self.renewal_index = None
        self.renewal_every = None
        self.renewed = False
        if instrument.renewal_date is not None:
            self.renewal_index = months_between(start, instrument.renewal_date)
            self.renewal_every = instrument.renewal_term_months
        elif instrument.renewal_rate is not None:
            self.renewal_every = (
                instrument.renewal_term_months or DEFAULT_RENEWAL_TERM_MONTHS
            )
            self.renewal_index = self.renewal_every

    def renews_at(self, k: int) -> bool:
        """
        True in the first month on or after the renewal date, then every
        ``renewal_every`` months counted from that date.

        A renewal date at or before the start month renews in month 0.
        """
        first = self.renewal_index
        if first is None or k < first:
            return False
        if not self.renewed:
            return True
        every = self.renewal_every
        return bool(every) and (k - first) % every == 0

    def renew(self, k: int) -> None:
        inst = self.instrument
        self.renewed = True
        if inst.renewal_rate is not None:
            self.rate = inst.renewal_rate
        remaining = self.term - k
        if remaining > 0:
            self.payment = level_payment(self.balance, self.rate, remaining)

    def amortize(self) -> tuple[Decimal, Decimal, Decimal]:
        """Apply one scheduled payment; returns (interest, principal, payment)."""
        if self.balance <= 0:
            return ZERO, ZERO, ZERO
        interest = monthly_interest(self.balance, self.rate)
        principal = max(min(self.payment - interest, self.balance), ZERO)
        self.balance -= principal
        self.settle()
        return interest, principal, interest + principal

    def prepay(self, amount: Decimal) -> None:
        self.balance -= amount
        self.settle()

    def settle(self) -> None:
        if self.balance < self.settle_below:
            self.balance = ZERO


@dataclass
class _Totals:
    tax_benefit: Decimal = ZERO
    baseline_primary_interest: Decimal = ZERO
    primary_interest: Decimal = ZERO
    heloc_interest: Decimal = ZERO
    primary_repaid: Decimal = ZERO


def simulate_scenario(policy: ScenarioPolicy, ctx: SimulationContext) -> ScenarioRun:
    """
    Run one scenario to completion.

    Args:
        policy: Fresh policy instance for the scenario
        ctx: Resolved simulation inputs

    Returns:
        :class:`ScenarioRun` with ordered ledger entries and the full-precision
        primary interest of every month
    """
    q = ctx.currency.quantize
    settle_below = ctx.currency.half_unit
    primary = _Amortizer(ctx.primary, ctx.default_mortgage_rate, ctx.start, settle_below)
    rental = _Amortizer(ctx.rental, ctx.default_mortgage_rate, ctx.start, settle_below)

    original_primary = primary.balance
    privilege_limit = None
    if ctx.primary is not None and ctx.primary.prepayment_privilege_percent is not None:
        privilege_limit = original_primary * ctx.primary.prepayment_privilege_percent / HUNDRED

    run = ScenarioRun(kind=policy.kind)
    totals = _Totals()
    prepaid_this_year = ZERO

    for k in range(ctx.months):
        calendar_month = add_months(ctx.start, k)
        if k == 0 or calendar_month.month == 1:
            prepaid_this_year = ZERO

        for loan in (primary, rental):
            if loan.renews_at(k):
                loan.renew(k)
                logger.debug(
                    "%s: %s renews in %s at %s",
                    policy.kind.value,
                    loan.instrument.name,
                    calendar_month.isoformat(),
                    loan.rate,
                )

        primary_open = primary.balance
        rental_open = rental.balance
        p_interest, p_principal, p_payment = primary.amortize()
        r_interest, r_principal, r_payment = rental.amortize()

        month = MonthInputs(
            month_index=k,
            calendar_month=calendar_month,
            rental_income=ctx.rental_income,
            rental_expenses=ctx.rental_expenses,
            primary_balance=primary.balance,
            cumulative_primary_repaid=totals.primary_repaid,
        )
        heloc = policy.heloc_month(ctx, month)

        # Prepayment: policy request plus lump sum, capped by balance and privilege
        lump_sum = ZERO
        if policy.accepts_lump_sums and _lump_sum_due(ctx.primary, calendar_month):
            lump_sum = min(ctx.primary.annual_lump_sum_amount, primary.balance)
        requested = max(policy.prepayment_request(ctx, month, heloc), ZERO) + lump_sum
        prepayment = min(requested, primary.balance)
        capped = False
        if privilege_limit is not None:
            remaining_privilege = max(privilege_limit - prepaid_this_year, ZERO)
            if prepayment > remaining_privilege:
                prepayment = remaining_privilege
                capped = True
        if prepayment > 0:
            primary.prepay(prepayment)
            prepaid_this_year += prepayment
        totals.primary_repaid += p_principal + prepayment

        # Tax classification
        heloc_deductible = heloc.interest if policy.heloc_interest_deductible else ZERO
        deductible = r_interest + heloc_deductible
        non_deductible = p_interest + (heloc.interest - heloc_deductible)
        tax_benefit = deductible * ctx.marginal_rate
        totals.tax_benefit += tax_benefit
        totals.primary_interest += p_interest
        totals.baseline_primary_interest += ctx.baseline_interest_at(k)
        totals.heloc_interest += heloc.interest
        net_benefit = ZERO
        if ctx.baseline_primary_interest:
            net_benefit = (
                totals.baseline_primary_interest
                - totals.primary_interest
                + totals.tax_benefit
                - totals.heloc_interest
            )

        net_rental = (
            ctx.rental_income
            - heloc.expenses_from_rental
            - r_payment
            - heloc.interest_from_rental
        )

        primary_balance = q(primary.balance)
        rental_balance = q(rental.balance)
        heloc_balance = q(heloc.balance)

        entry = LedgerEntry(
            strategy_id=ctx.strategy_id,
            scenario=policy.kind,
            month_number=k + 1,
            calendar_month=calendar_month,
            rental_income=q(ctx.rental_income),
            rental_expenses=q(ctx.rental_expenses),
            net_rental_cash_flow=q(net_rental),
            heloc_draw=q(heloc.draw),
            heloc_balance=heloc_balance,
            heloc_interest=q(heloc.interest),
            heloc_payment=q(heloc.payment),
            heloc_credit_limit=q(heloc.credit_limit),
            heloc_interest_from_rental=q(heloc.interest_from_rental),
            heloc_interest_from_pocket=q(heloc.interest_from_pocket),
            primary_mortgage_balance=primary_balance,
            primary_mortgage_payment=q(p_payment) if primary_open > 0 else ZERO,
            primary_mortgage_principal=q(p_principal),
            primary_mortgage_interest=q(p_interest),
            primary_mortgage_prepayment=q(prepayment),
            rental_mortgage_balance=rental_balance,
            rental_mortgage_payment=q(r_payment) if rental_open > 0 else ZERO,
            rental_mortgage_principal=q(r_principal),
            rental_mortgage_interest=q(r_interest),
            deductible_interest=q(deductible),
            non_deductible_interest=q(non_deductible),
            tax_benefit=q(tax_benefit),
            cumulative_tax_benefit=q(totals.tax_benefit),
            cumulative_net_benefit=q(net_benefit),
            total_debt=primary_balance + rental_balance + heloc_balance,
            prepayment_capped=capped,
        )

        if policy.evaluates_rules and ctx.rules:
            decision = evaluate_rules(ctx.rules, entry)
            if decision.triggered:
                entry = _stamp_stopped(entry, decision.reason)

        run.entries.append(entry)
        run.primary_interest.append(p_interest)

        if entry.strategy_stopped:
            logger.debug(
                "%s stopped at month %d: %s",
                policy.kind.value,
                entry.month_number,
                entry.stop_reason,
            )
            break
        if primary.balance <= 0 and rental.balance <= 0:
            logger.debug(
                "%s: all mortgages paid off at month %d",
                policy.kind.value,
                entry.month_number,
            )
            break

    return run


def _lump_sum_due(instrument: DebtInstrument | None, calendar_month) -> bool:
    return (
        instrument is not None
        and instrument.has_lump_sum
        and int(instrument.annual_lump_sum_month) == calendar_month.month
    )


def _stamp_stopped(entry: LedgerEntry, reason: str | None) -> LedgerEntry:
    return replace(entry, strategy_stopped=True, stop_reason=reason)
