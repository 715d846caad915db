"""
Scenario simulators for SmithLab.

Importing this package registers the default scenario policies.
"""

from .baseline import BaselinePolicy
from .driver import simulate_scenario
from .interfaces import (
    HelocActivity,
    MonthInputs,
    ScenarioPolicy,
    ScenarioRun,
    SimulationContext,
)
from .modified_smith import ModifiedSmithPolicy
from .prepay_only import PrepayOnlyPolicy
from .registry import PolicyRegistry, create_policy, register_defaults, run_scenarios

__all__ = [
    "BaselinePolicy",
    "HelocActivity",
    "ModifiedSmithPolicy",
    "MonthInputs",
    "PolicyRegistry",
    "PrepayOnlyPolicy",
    "ScenarioPolicy",
    "ScenarioRun",
    "SimulationContext",
    "create_policy",
    "register_defaults",
    "run_scenarios",
    "simulate_scenario",
]
