"""
Scenario policy registry and multi-scenario runner.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date

from smithlab.core.kinds import ScenarioKind

from .baseline import BaselinePolicy
from .driver import simulate_scenario
from .interfaces import ScenarioPolicy, ScenarioRun, SimulationContext
from .modified_smith import ModifiedSmithPolicy
from .prepay_only import PrepayOnlyPolicy

logger = logging.getLogger(__name__)

# Global registry: scenario kind -> policy class (instantiated once per run)
PolicyRegistry: dict[ScenarioKind, type] = {}


def register_defaults():
    """
    Register the default scenario policies.

    Registered Policies:
        - 'baseline': scheduled payments only
        - 'prepay_only': rental surplus prepays the primary mortgage
        - 'modified_smith': HELOC-financed rental expenses

    Note:
        This function is automatically called when the module is imported.
    """
    PolicyRegistry[ScenarioKind.BASELINE] = BaselinePolicy
    PolicyRegistry[ScenarioKind.PREPAY_ONLY] = PrepayOnlyPolicy
    PolicyRegistry[ScenarioKind.MODIFIED_SMITH] = ModifiedSmithPolicy


def create_policy(kind: ScenarioKind | str) -> ScenarioPolicy:
    """Instantiate a fresh policy for ``kind``."""
    kind = ScenarioKind(kind)
    if kind not in PolicyRegistry:
        raise KeyError(f"No policy registered for scenario '{kind.value}'")
    return PolicyRegistry[kind]()


def run_scenarios(
    config, start: date, scenarios: list[ScenarioKind] | None = None
) -> dict[ScenarioKind, ScenarioRun]:
    """
    Simulate the scenarios of a strategy in dependency order.

    The baseline always runs first when any other scenario is requested,
    because the other scenarios compare their primary interest against it.

    Args:
        config: A validated :class:`~smithlab.core.strategy.StrategyConfig`
        start: First simulated month
        scenarios: Scenarios to run; defaults to those of the strategy kind

    Returns:
        Mapping of scenario kind to its run, in simulation order
    """
    wanted = list(scenarios) if scenarios is not None else config.scenarios()
    base_ctx = SimulationContext.from_config(config, start)

    runs: dict[ScenarioKind, ScenarioRun] = {}
    baseline = simulate_scenario(create_policy(ScenarioKind.BASELINE), base_ctx)
    if ScenarioKind.BASELINE in wanted:
        runs[ScenarioKind.BASELINE] = baseline

    compared_ctx = replace(
        base_ctx, baseline_primary_interest=tuple(baseline.primary_interest)
    )
    for kind in ScenarioKind.all_kinds():
        if kind is ScenarioKind.BASELINE or kind not in wanted:
            continue
        runs[kind] = simulate_scenario(create_policy(kind), compared_ctx)
        logger.debug(
            "Strategy %s: %s produced %d entries",
            config.id,
            kind.value,
            len(runs[kind].entries),
        )
    return runs


# Auto-register when module is imported
register_defaults()
