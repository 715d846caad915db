"""
Tests for auto-stop rule predicates, descriptions and validation.
"""

from datetime import date
from decimal import Decimal

import pytest

from smithlab.core.auto_stop import (
    RULE_PREDICATES,
    AutoStopRule,
    StopDecision,
    evaluate_rules,
)
from smithlab.core.errors import ConfigError
from smithlab.core.kinds import RuleKind, RuleUnit, ScenarioKind
from smithlab.core.ledger import MONEY_FIELDS, LedgerEntry


def make_entry(**values) -> LedgerEntry:
    """Smith entry with money defaults that keep every rule quiet."""
    params = {
        "strategy_id": "s1",
        "scenario": ScenarioKind.MODIFIED_SMITH,
        "month_number": 1,
        "calendar_month": date(2026, 1, 1),
        "primary_mortgage_balance": Decimal("300000"),
        "rental_mortgage_balance": Decimal("150000"),
        "total_debt": Decimal("450000"),
        "heloc_credit_limit": Decimal("100000"),
        "net_rental_cash_flow": Decimal("500"),
        "tax_benefit": Decimal("10"),
        "cumulative_net_benefit": Decimal("100"),
    }
    for name, value in values.items():
        params[name] = Decimal(str(value)) if name in MONEY_FIELDS else value
    return LedgerEntry(**params)


class TestRuleTable:
    """Test the predicate dispatch table."""

    def test_every_kind_has_a_predicate(self):
        assert set(RULE_PREDICATES) == set(RuleKind.all_kinds())

    def test_quiet_entry_triggers_nothing(self):
        rules = [
            AutoStopRule("heloc_limit_percentage", 95),
            AutoStopRule("heloc_balance_threshold", 50_000),
            AutoStopRule("primary_paid_off"),
            AutoStopRule("all_debt_paid_off"),
            AutoStopRule("max_months", 12),
            AutoStopRule("negative_cash_flow"),
            AutoStopRule("heloc_interest_exceeds_benefit"),
            AutoStopRule("cumulative_cost_exceeds_benefit"),
            AutoStopRule("heloc_interest_ceiling", 500),
            AutoStopRule("tax_refund_coverage_ratio", 25),
            AutoStopRule("manual_stop_date", params={"stop_date": "2030-01"}),
        ]
        assert evaluate_rules(rules, make_entry()) == StopDecision(False, None)


class TestPredicates:
    """Test each rule kind at its boundary."""

    def test_heloc_limit_percentage(self):
        rule = AutoStopRule("heloc_limit_percentage", threshold=95, unit="percentage")
        assert rule.triggered(make_entry(heloc_balance=95_000))
        assert not rule.triggered(make_entry(heloc_balance=94_999))

    def test_heloc_limit_percentage_defaults_to_95(self):
        rule = AutoStopRule("heloc_limit_percentage")
        assert rule.triggered(make_entry(heloc_balance=95_000))
        assert not rule.triggered(make_entry(heloc_balance=90_000))

    def test_heloc_limit_percentage_ignores_zero_limit(self):
        rule = AutoStopRule("heloc_limit_percentage", threshold=0)
        assert not rule.triggered(make_entry(heloc_balance=10, heloc_credit_limit=0))

    def test_heloc_balance_threshold(self):
        rule = AutoStopRule("heloc_balance_threshold", 50_000, "amount")
        assert rule.triggered(make_entry(heloc_balance=50_000))
        assert not rule.triggered(make_entry(heloc_balance=49_999.99))

    def test_primary_paid_off(self):
        rule = AutoStopRule("primary_paid_off")
        assert rule.triggered(make_entry(primary_mortgage_balance=0))

    def test_all_debt_paid_off(self):
        rule = AutoStopRule("all_debt_paid_off")
        assert rule.triggered(make_entry(total_debt=0))
        assert not rule.triggered(make_entry(primary_mortgage_balance=0))

    def test_max_months(self):
        rule = AutoStopRule("max_months", 6, "months")
        assert not rule.triggered(make_entry(month_number=5))
        assert rule.triggered(make_entry(month_number=6))

    def test_negative_cash_flow(self):
        rule = AutoStopRule("negative_cash_flow")
        assert rule.triggered(make_entry(net_rental_cash_flow=-0.01))
        assert not rule.triggered(make_entry(net_rental_cash_flow=0))

    def test_heloc_interest_exceeds_benefit(self):
        rule = AutoStopRule("heloc_interest_exceeds_benefit")
        assert rule.triggered(make_entry(heloc_interest=11, tax_benefit=10))
        assert not rule.triggered(make_entry(heloc_interest=10, tax_benefit=10))

    def test_cumulative_cost_exceeds_benefit(self):
        rule = AutoStopRule("cumulative_cost_exceeds_benefit")
        assert rule.triggered(make_entry(cumulative_net_benefit=-1))

    def test_heloc_interest_ceiling(self):
        rule = AutoStopRule("heloc_interest_ceiling", 400, "amount")
        assert rule.triggered(make_entry(heloc_interest=400.01))
        assert not rule.triggered(make_entry(heloc_interest=400))

    def test_tax_refund_coverage_ratio(self):
        rule = AutoStopRule("tax_refund_coverage_ratio", 30, "percentage")
        assert rule.triggered(make_entry(heloc_interest=100, tax_benefit=20))
        assert not rule.triggered(make_entry(heloc_interest=100, tax_benefit=30))

    def test_tax_refund_coverage_needs_heloc_interest(self):
        rule = AutoStopRule("tax_refund_coverage_ratio", 30)
        assert not rule.triggered(make_entry(heloc_interest=0, tax_benefit=0))

    def test_manual_stop_date(self):
        rule = AutoStopRule("manual_stop_date", params={"stop_date": "2026-06-15"})
        assert not rule.triggered(make_entry(calendar_month=date(2026, 5, 1)))
        assert rule.triggered(make_entry(calendar_month=date(2026, 6, 1)))
        assert rule.triggered(make_entry(calendar_month=date(2027, 1, 1)))

    def test_missing_threshold_never_triggers(self):
        for kind in ("heloc_balance_threshold", "max_months", "heloc_interest_ceiling"):
            rule = AutoStopRule(kind)
            assert not rule.triggered(make_entry(heloc_balance=10**9, month_number=600))

    def test_disabled_rule_never_triggers(self):
        rule = AutoStopRule("primary_paid_off", enabled=False)
        assert not rule.triggered(make_entry(primary_mortgage_balance=0))


class TestEvaluation:
    """Test rule ordering."""

    def test_first_matching_rule_wins(self):
        rules = [
            AutoStopRule("primary_paid_off", enabled=False),
            AutoStopRule("max_months", 3),
            AutoStopRule("heloc_balance_threshold", 1),
        ]
        decision = evaluate_rules(rules, make_entry(month_number=3, heloc_balance=5))
        assert decision.triggered
        assert decision.rule.kind is RuleKind.MAX_MONTHS
        assert decision.reason == "Stop after 3 months"

    def test_no_rules(self):
        decision = evaluate_rules([], make_entry())
        assert not decision.triggered
        assert decision.reason is None


class TestDescriptions:
    """Test human-readable stop reasons."""

    @pytest.mark.parametrize(
        "rule,expected",
        [
            (
                AutoStopRule("heloc_limit_percentage", 90),
                "Stop when HELOC reaches 90% of credit limit",
            ),
            (
                AutoStopRule("heloc_limit_percentage"),
                "Stop when HELOC reaches 95% of credit limit",
            ),
            (
                AutoStopRule("heloc_balance_threshold", 50_000),
                "Stop when HELOC balance reaches $50,000",
            ),
            (AutoStopRule("max_months", 120), "Stop after 120 months"),
            (
                AutoStopRule("heloc_interest_ceiling", 450),
                "Stop when monthly HELOC interest exceeds $450",
            ),
            (
                AutoStopRule("tax_refund_coverage_ratio", 27.5),
                "Stop if tax refund covers less than 27.5% of HELOC interest",
            ),
            (
                AutoStopRule("manual_stop_date", params={"stop_date": "2030-01-01"}),
                "Stop on 2030-01-01",
            ),
            (AutoStopRule("primary_paid_off"), "Stop when primary mortgage is paid off"),
            (AutoStopRule("negative_cash_flow"), "Stop if net cash flow becomes negative"),
        ],
    )
    def test_description(self, rule, expected):
        assert rule.description == expected


class TestValidation:
    """Test rule construction and validation."""

    def test_unknown_kind(self):
        with pytest.raises(ConfigError, match="Unknown auto-stop rule kind"):
            AutoStopRule("stop_when_bored")

    def test_unknown_unit(self):
        with pytest.raises(ConfigError, match="Unknown auto-stop rule unit"):
            AutoStopRule("max_months", 6, unit="fortnights")

    def test_valid_rule(self):
        assert AutoStopRule("max_months", 6, RuleUnit.MONTHS).validate() == []

    def test_wrong_unit_for_kind(self):
        problems = AutoStopRule("max_months", 6, "amount").validate()
        assert problems == [
            "unit 'amount' is not valid for max_months (expected months)"
        ]

    def test_unit_on_unitless_kind(self):
        problems = AutoStopRule("primary_paid_off", unit="amount").validate()
        assert "expected no unit" in problems[0]

    def test_percentage_out_of_range(self):
        problems = AutoStopRule("heloc_limit_percentage", 120).validate()
        assert problems == ["percentage threshold must be between 0 and 100"]

    def test_negative_threshold(self):
        assert AutoStopRule("heloc_interest_ceiling", -1).validate() == [
            "threshold must not be negative"
        ]

    def test_manual_stop_date_required(self):
        assert AutoStopRule("manual_stop_date").validate() == [
            "stop_date is required for manual_stop_date"
        ]

    def test_manual_stop_date_parseable(self):
        rule = AutoStopRule("manual_stop_date", params={"stop_date": "someday"})
        assert rule.validate() == ["stop_date 'someday' is not a valid date"]


class TestSerialization:
    """Test mapping round-trips."""

    def test_from_dict_moves_stop_date_into_params(self):
        rule = AutoStopRule.from_dict(
            {"kind": "manual_stop_date", "unit": "date", "stop_date": "2031-03"}
        )
        assert rule.params == {"stop_date": "2031-03"}
        assert rule.validate() == []

    def test_from_dict_requires_kind(self):
        with pytest.raises(ConfigError, match="requires a 'kind'"):
            AutoStopRule.from_dict({"threshold": 5})

    def test_to_dict(self):
        rule = AutoStopRule("heloc_limit_percentage", 90, "percentage", enabled=False)
        assert rule.to_dict() == {
            "kind": "heloc_limit_percentage",
            "threshold": "90",
            "unit": "percentage",
            "enabled": False,
            "params": {},
        }
        assert AutoStopRule.from_dict(rule.to_dict()) == rule
