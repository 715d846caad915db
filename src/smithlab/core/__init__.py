"""
Core components of SmithLab: mortgage math, instruments, jurisdictions,
auto-stop rules, ledger entries and strategy configuration.
"""

from .auto_stop import AutoStopRule, StopDecision, evaluate_rules
from .errors import (
    ConfigError,
    ConfigValidationError,
    JurisdictionWarning,
    SimulationError,
    SmithLabWarning,
)
from .instruments import DebtInstrument
from .jurisdiction import Jurisdiction, get_jurisdiction, load_jurisdictions
from .kinds import RateType, RuleKind, RuleUnit, ScenarioKind, StrategyKind, StrategyStatus
from .ledger import InMemoryLedgerStore, LedgerEntry, LedgerStore
from .strategy import StrategyConfig

__all__ = [
    "AutoStopRule",
    "ConfigError",
    "ConfigValidationError",
    "DebtInstrument",
    "InMemoryLedgerStore",
    "Jurisdiction",
    "JurisdictionWarning",
    "LedgerEntry",
    "LedgerStore",
    "RateType",
    "RuleKind",
    "RuleUnit",
    "ScenarioKind",
    "SimulationError",
    "SmithLabWarning",
    "StopDecision",
    "StrategyConfig",
    "StrategyKind",
    "StrategyStatus",
    "evaluate_rules",
    "get_jurisdiction",
    "load_jurisdictions",
]
