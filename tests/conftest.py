"""
Shared fixtures: the reference household used across the test suite.

$400,000 primary mortgage (5.0%, 300 months), $200,000 rental mortgage
(5.5%, 240 months), an empty HELOC with a $100,000 limit, $2,000 rental
income and $500 rental expenses, simulated from January 2026.
"""

from datetime import date

import pytest

from smithlab.core.auto_stop import AutoStopRule
from smithlab.core.errors import reset_warnings
from smithlab.core.instruments import DebtInstrument
from smithlab.core.strategy import StrategyConfig

START = date(2026, 1, 1)


def make_config(**overrides) -> StrategyConfig:
    """Reference Modified Smith household with field overrides."""
    params = {
        "id": "smith-test",
        "name": "Reference household",
        "strategy_kind": "modified_smith",
        "province": "ON",
        "household_income": 100_000,
        "primary_mortgage": DebtInstrument(
            "Primary Mortgage", 400_000, 0.05, term_months=300
        ),
        "heloc": DebtInstrument("HELOC", 0, 0.07, credit_limit=100_000),
        "rental_mortgage": DebtInstrument(
            "Rental Mortgage", 200_000, 0.055, term_months=240
        ),
        "rental_income": 2_000,
        "rental_expenses": 500,
        "simulation_months": 300,
        "auto_stop_rules": [AutoStopRule("primary_paid_off", enabled=False)],
    }
    params.update(overrides)
    return StrategyConfig(**params)


@pytest.fixture
def start():
    return START


@pytest.fixture
def config():
    return make_config()


@pytest.fixture
def config_factory():
    return make_config


@pytest.fixture(autouse=True)
def _fresh_warnings():
    reset_warnings()
    yield
    reset_warnings()
