"""
Strategy orchestration: validate, simulate every scenario, store atomically.

The orchestrator is the only component that writes ledgers. A run either
replaces every scenario ledger of the strategy in one store call or leaves the
store untouched:

1. validate the configuration (field-level errors, nothing simulated)
2. simulate all scenarios in memory, baseline first
3. replace the ledgers in one atomic store call
4. cache the summary on the configuration and mark it ``simulated``
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from smithlab.reporting.summary import SummaryMetrics, summary_metrics
from smithlab.simulators.registry import run_scenarios

from .auto_stop import StopDecision, evaluate_rules
from .errors import ConfigError, SimulationError
from .kinds import ScenarioKind, StrategyStatus
from .ledger import InMemoryLedgerStore, LedgerEntry, LedgerStore
from .strategy import StrategyConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SimulationResult:
    """
    Outcome of one orchestrated run.

    Attributes:
        strategy_id: The simulated strategy
        start: First simulated month
        entries: Ledger per scenario, in simulation order
        metrics: Headline comparison metrics
        marginal_rate: Rate applied to deductible interest
        province: Province used for the tax lookup
    """

    strategy_id: str
    start: date
    entries: dict[ScenarioKind, list[LedgerEntry]] = field(default_factory=dict)
    metrics: SummaryMetrics = field(default_factory=SummaryMetrics)
    marginal_rate: Decimal = Decimal("0")
    province: str | None = None

    def scenario(self, kind: ScenarioKind | str) -> list[LedgerEntry]:
        return self.entries.get(ScenarioKind(kind), [])


class StrategyOrchestrator:
    """
    Runs strategies and keeps their ledgers in a store.

    **Example:**
        ```python
        from datetime import date
        from smithlab.core.orchestrator import StrategyOrchestrator

        orchestrator = StrategyOrchestrator()
        result = orchestrator.run(config, start=date(2026, 1, 1))
        config.status          # StrategyStatus.SIMULATED
        result.metrics.months_accelerated
        ```
    """

    def __init__(
        self,
        store: LedgerStore | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store if store is not None else InMemoryLedgerStore()
        self._clock = clock

    def run(self, config: StrategyConfig, start: date) -> SimulationResult:
        """
        Simulate a strategy and replace its stored ledgers.

        Args:
            config: Strategy to simulate; its cached summary fields, status and
                ``last_simulated_at`` are updated on success
            start: First simulated month

        Returns:
            :class:`SimulationResult` for the run

        Raises:
            ConfigValidationError: If the configuration is invalid
            ConfigError: If the strategy cannot be re-simulated from its status
            SimulationError: If a simulator fails (the store is left untouched)
                or the ledgers cannot be stored
        """
        config.assert_valid()
        if not config.status.can_transition_to(StrategyStatus.SIMULATED):
            raise ConfigError(
                f"Strategy {config.id} is {config.status.value} and cannot be re-simulated"
            )

        logger.info(
            "Simulating strategy %s (%s) for %d months from %s",
            config.id,
            config.strategy_kind.value,
            config.simulation_months,
            start.isoformat(),
        )
        try:
            runs = run_scenarios(config, start)
            entries = {kind: run.entries for kind, run in runs.items()}
            metrics = summary_metrics(entries)
            marginal_rate = config.effective_marginal_tax_rate()
            province = config.effective_province()
        except ConfigError:
            raise
        except Exception as e:
            logger.exception("Simulation of strategy %s failed", config.id)
            raise SimulationError(config.id, f"{type(e).__name__}: {e}") from e

        # Scenarios this kind no longer produces are cleared in the same call
        try:
            self.store.replace(
                config.id,
                {kind: entries.get(kind, []) for kind in ScenarioKind.all_kinds()},
            )
        except Exception as e:
            logger.exception("Storing ledgers of strategy %s failed", config.id)
            raise SimulationError(
                config.id, f"could not store ledgers: {type(e).__name__}: {e}"
            ) from e

        config.total_interest_saved = metrics.total_interest_saved
        config.total_tax_benefit = metrics.total_tax_benefit
        config.net_benefit = metrics.net_benefit
        config.months_accelerated = metrics.months_accelerated
        config.last_simulated_at = self._clock()
        config.transition_to(StrategyStatus.SIMULATED)

        logger.info(
            "Strategy %s simulated: %s",
            config.id,
            ", ".join(f"{k.value}={len(v)} months" for k, v in entries.items()),
        )
        return SimulationResult(
            strategy_id=config.id,
            start=start,
            entries=entries,
            metrics=metrics,
            marginal_rate=marginal_rate,
            province=province,
        )

    def ledger(self, strategy_id: str, scenario: ScenarioKind | str) -> list[LedgerEntry]:
        """Stored ledger of one scenario."""
        return self.store.entries(strategy_id, ScenarioKind(scenario))

    def check_auto_stop_rules(
        self, config: StrategyConfig, entry: LedgerEntry
    ) -> StopDecision:
        """Evaluate the strategy's rules against a single entry."""
        return evaluate_rules(config.auto_stop_rules, entry)
