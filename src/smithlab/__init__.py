"""
SmithLab - Debt-Optimization Ledger Simulation

SmithLab simulates, month by month, how a household's mortgages and home-equity
line of credit evolve under three debt-reduction scenarios and compares them:

- **baseline**: scheduled mortgage payments only
- **prepay_only**: rental surplus prepays the primary mortgage
- **modified_smith**: the Modified Smith Manoeuvre; rental expenses are paid
  from a HELOC so its interest is tax deductible, while the freed-up rental
  income prepays the non-deductible primary mortgage

Key Features:
- **Canadian Mortgage Math**: semi-annual compounding for fixed-rate mortgages,
  simple monthly interest for HELOCs, Decimal arithmetic throughout
- **Tax Brackets**: federal + provincial marginal rates from YAML reference data
- **Auto-Stop Rules**: eleven rule kinds that end the strategy early
- **Atomic Ledgers**: every run replaces all scenario ledgers in one store call
- **Reporting**: pandas frames, chart series, summary metrics, audit trail, CSV

Quick Start:
    ```python
    from datetime import date
    from smithlab import DebtInstrument, StrategyConfig, StrategyOrchestrator

    config = StrategyConfig(
        id="smith-1",
        strategy_kind="modified_smith",
        province="ON",
        primary_mortgage=DebtInstrument("Home", 400_000, 0.05, term_months=300),
        heloc=DebtInstrument("HELOC", 0, 0.07, credit_limit=100_000),
        rental_mortgage=DebtInstrument("Rental", 200_000, 0.055, term_months=240),
        rental_income=2_000,
        rental_expenses=500,
    )

    result = StrategyOrchestrator().run(config, start=date(2026, 1, 1))
    print(result.metrics.months_accelerated)
    ```
"""

from .core.auto_stop import AutoStopRule
from .core.errors import ConfigError, ConfigValidationError, SimulationError
from .core.instruments import DebtInstrument
from .core.kinds import RuleKind, ScenarioKind, StrategyKind, StrategyStatus
from .core.ledger import InMemoryLedgerStore, LedgerEntry, LedgerStore
from .core.orchestrator import SimulationResult, StrategyOrchestrator
from .core.strategy import StrategyConfig
from .reporting import AuditTrail, ChartSeriesBuilder, summary_metrics

__version__ = "0.1.0"

__all__ = [
    "AuditTrail",
    "AutoStopRule",
    "ChartSeriesBuilder",
    "ConfigError",
    "ConfigValidationError",
    "DebtInstrument",
    "InMemoryLedgerStore",
    "LedgerEntry",
    "LedgerStore",
    "RuleKind",
    "ScenarioKind",
    "SimulationError",
    "SimulationResult",
    "StrategyConfig",
    "StrategyKind",
    "StrategyOrchestrator",
    "StrategyStatus",
    "summary_metrics",
]
