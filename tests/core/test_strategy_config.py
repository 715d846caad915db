"""
Tests for strategy configuration: validation, derived values, lifecycle.
"""

from decimal import Decimal

import pytest

from smithlab.core.auto_stop import AutoStopRule
from smithlab.core.errors import ConfigError, ConfigValidationError
from smithlab.core.instruments import DebtInstrument
from smithlab.core.kinds import ScenarioKind, StrategyKind, StrategyStatus


class TestValidation:
    """Test field-level validation errors."""

    def test_reference_household_is_valid(self, config):
        assert config.validate() == {}
        assert config.is_valid()
        config.assert_valid()

    def test_blank_name(self, config_factory):
        errors = config_factory(name="  ").validate()
        assert errors["name"] == ["can't be blank"]

    @pytest.mark.parametrize("months", [0, 601])
    def test_simulation_months_range(self, config_factory, months):
        errors = config_factory(simulation_months=months).validate()
        assert errors["simulation_months"] == ["must be between 1 and 600"]

    @pytest.mark.parametrize("months", ["abc", None, 12.5])
    def test_simulation_months_must_be_an_integer(self, config_factory, months):
        errors = config_factory(simulation_months=months).validate()
        assert errors["simulation_months"] == ["must be an integer"]

    def test_simulation_months_accepts_integral_text(self, config_factory):
        assert "simulation_months" not in config_factory(
            simulation_months="120"
        ).validate()

    @pytest.mark.parametrize("months", [1, 600])
    def test_simulation_months_bounds_are_inclusive(self, config_factory, months):
        assert "simulation_months" not in config_factory(
            simulation_months=months
        ).validate()

    def test_negative_amounts(self, config_factory):
        errors = config_factory(
            rental_income=-1, rental_expenses=-1, heloc_max_limit=-5
        ).validate()
        assert set(errors) == {"rental_income", "rental_expenses", "heloc_max_limit"}

    def test_smith_requires_all_instruments(self, config_factory):
        errors = config_factory(
            primary_mortgage=None, heloc=None, rental_mortgage=None
        ).validate()
        for field in ("primary_mortgage", "heloc", "rental_mortgage"):
            assert errors[field] == ["is required for Modified Smith strategy"]

    def test_baseline_does_not_require_heloc(self, config_factory):
        config = config_factory(strategy_kind="baseline", heloc=None)
        assert config.validate() == {}

    def test_smith_not_supported_outside_canada(self, config_factory):
        errors = config_factory(jurisdiction="US", province=None).validate()
        assert errors["strategy_kind"] == [
            "Smith Manoeuvre is not supported in this jurisdiction"
        ]

    def test_unknown_jurisdiction(self, config_factory):
        errors = config_factory(jurisdiction="XX").validate()
        assert "Unknown jurisdiction 'XX'" in errors["jurisdiction"][0]
        assert "strategy_kind" not in errors

    def test_unknown_province(self, config_factory):
        errors = config_factory(province="ZZ").validate()
        assert errors["province"] == ["'ZZ' is not a Canadian province or territory"]

    def test_instrument_problems_are_reported_per_field(self, config_factory):
        primary = DebtInstrument(
            "Primary", 400_000, 0.05, annual_lump_sum_month=13, term_months=300
        )
        errors = config_factory(primary_mortgage=primary).validate()
        assert errors["primary_mortgage"] == [
            "annual_lump_sum_month must be between 1 and 12"
        ]

    @pytest.mark.parametrize(
        "field",
        ["term_months", "annual_lump_sum_month", "renewal_term_months"],
    )
    def test_non_integer_instrument_months(self, config_factory, field):
        primary = DebtInstrument("Primary", 400_000, 0.05, **{field: "x"})
        assert primary.validate() == [f"{field} must be an integer"]
        errors = config_factory(primary_mortgage=primary).validate()
        assert errors["primary_mortgage"] == [f"{field} must be an integer"]

    def test_rule_problems_are_reported_by_index(self, config_factory):
        rules = [
            AutoStopRule("max_months", 12, "months"),
            AutoStopRule("heloc_limit_percentage", 150, "percentage"),
        ]
        errors = config_factory(auto_stop_rules=rules).validate()
        assert list(errors) == ["auto_stop_rules[1]"]

    def test_assert_valid_raises_with_all_errors(self, config_factory):
        config = config_factory(name="", simulation_months=0)
        with pytest.raises(ConfigValidationError) as excinfo:
            config.assert_valid()
        assert set(excinfo.value.errors) == {"name", "simulation_months"}
        assert excinfo.value.strategy_id == "smith-test"
        assert str(excinfo.value).startswith("[Strategy smith-test] invalid configuration")

    def test_unknown_kind_is_a_config_error(self, config_factory):
        with pytest.raises(ConfigError, match="Unknown strategy kind"):
            config_factory(strategy_kind="smith_classic")


class TestDerivedValues:
    """Test HELOC and tax resolution."""

    def test_scenarios_per_kind(self, config_factory):
        assert config_factory().scenarios() == ScenarioKind.all_kinds()
        assert config_factory(strategy_kind="baseline").scenarios() == [
            ScenarioKind.BASELINE
        ]

    def test_marginal_rate(self, config):
        assert config.effective_marginal_tax_rate() == Decimal("0.2965")
        assert config.effective_province() == "ON"

    def test_province_defaults_to_ontario(self, config_factory):
        config = config_factory(province=None, household_income=50_000)
        assert config.effective_province() == "ON"
        assert config.effective_marginal_tax_rate() == Decimal("0.2005")

    def test_heloc_rate_precedence(self, config_factory):
        assert config_factory().effective_heloc_rate() == Decimal("0.07")
        assert config_factory(heloc_rate=0.065).effective_heloc_rate() == Decimal(
            "0.065"
        )
        no_rate = DebtInstrument("HELOC", 0, credit_limit=50_000)
        assert config_factory(heloc=no_rate).effective_heloc_rate() == Decimal("0.07")

    def test_heloc_limit(self, config_factory):
        assert config_factory().effective_heloc_limit() == Decimal("100000")
        assert config_factory(heloc_max_limit=60_000).effective_heloc_limit() == Decimal(
            "60000"
        )
        no_limit = DebtInstrument("HELOC", 0, 0.07)
        assert config_factory(heloc=no_limit).effective_heloc_limit() == Decimal(
            "100000"
        )

    def test_readvanceable_cap(self, config_factory):
        assert config_factory().readvanceable_max_limit() == Decimal("320000.0")
        assert config_factory(heloc_max_limit=150_000).readvanceable_max_limit() == (
            Decimal("150000")
        )


class TestLifecycle:
    """Test status transitions."""

    def test_draft_cannot_skip_simulation(self, config):
        with pytest.raises(ConfigError, match="cannot move from draft to active"):
            config.activate()

    def test_full_lifecycle(self, config):
        config.transition_to("simulated")
        config.activate()
        assert config.status is StrategyStatus.ACTIVE
        config.complete()
        assert config.status is StrategyStatus.COMPLETED
        assert not config.status.can_transition_to(StrategyStatus.SIMULATED)

    def test_summary_before_any_run(self, config):
        assert config.summary() == {
            "total_interest_saved": None,
            "total_tax_benefit": None,
            "net_benefit": None,
            "months_accelerated": None,
            "last_simulated_at": None,
            "status": "draft",
        }

    def test_kind_label(self):
        assert StrategyKind.MODIFIED_SMITH.label == "Modified Smith Manoeuvre"
