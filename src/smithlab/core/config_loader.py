"""Utilities for loading strategy configurations from YAML/JSON sources."""

from __future__ import annotations

import json
from copy import deepcopy
from pathlib import Path
from typing import Any

import yaml

from .auto_stop import AutoStopRule
from .errors import ConfigError
from .instruments import DebtInstrument
from .strategy import StrategyConfig

__all__ = [
    "dump_strategy",
    "example_strategy",
    "load_strategy",
]

_INSTRUMENT_KEYS = ("primary_mortgage", "heloc", "rental_mortgage")
_SCALAR_KEYS = (
    "id",
    "name",
    "household_id",
    "strategy_kind",
    "jurisdiction",
    "province",
    "household_income",
    "rental_income",
    "rental_expenses",
    "heloc_rate",
    "heloc_max_limit",
    "heloc_readvanceable",
    "simulation_months",
    "status",
)


def load_strategy(
    source: str | Path | dict[str, Any], *, format: str | None = None
) -> StrategyConfig:
    """
    Parse a strategy definition from YAML/JSON/dict.

    The document mirrors :class:`StrategyConfig`: scalar fields at the top
    level, the three instruments as nested mappings and ``auto_stop_rules`` as
    a list of mappings. The result is not validated; call
    :meth:`StrategyConfig.validate` for field-level errors.

    Raises:
        FileNotFoundError: If ``source`` is a path that does not exist
        ConfigError: If the document is malformed
    """
    mapping, label = _read_source(source, format=format)

    unknown = set(mapping) - set(_SCALAR_KEYS) - set(_INSTRUMENT_KEYS) - {
        "auto_stop_rules"
    }
    if unknown:
        raise ConfigError(f"{label}: unknown field(s) {', '.join(sorted(unknown))}")
    if not mapping.get("id"):
        raise ConfigError(f"{label}: 'id' is required")

    kwargs: dict[str, Any] = {k: mapping[k] for k in _SCALAR_KEYS if k in mapping}
    province = kwargs.get("province")
    if province is not None and not isinstance(province, str):
        # YAML 1.1 reads an unquoted ON as a boolean
        raise ConfigError(
            f"{label}: province must be a string (got {province!r}; quote it, e.g. \"ON\")"
        )
    for key in _INSTRUMENT_KEYS:
        raw = mapping.get(key)
        if raw is None:
            continue
        data = _ensure_dict(raw, f"{label}::{key}")
        try:
            kwargs[key] = DebtInstrument.from_dict(data)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"{label}::{key}: {e}") from e

    rules = []
    for idx, raw in enumerate(_ensure_list(mapping.get("auto_stop_rules"), label)):
        data = _ensure_dict(raw, f"{label}::auto_stop_rules[{idx}]")
        try:
            rules.append(AutoStopRule.from_dict(data))
        except (TypeError, ValueError) as e:
            raise ConfigError(f"{label}::auto_stop_rules[{idx}]: {e}") from e
    kwargs["auto_stop_rules"] = rules

    try:
        return StrategyConfig(**kwargs)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{label}: {e}") from e


def dump_strategy(config: StrategyConfig) -> dict[str, Any]:
    """Serialize a configuration back into a JSON/YAML-friendly mapping."""
    data: dict[str, Any] = {
        "id": config.id,
        "name": config.name,
        "household_id": config.household_id,
        "strategy_kind": config.strategy_kind.value,
        "jurisdiction": config.jurisdiction,
        "province": config.province,
        "household_income": str(config.household_income),
        "rental_income": str(config.rental_income),
        "rental_expenses": str(config.rental_expenses),
        "heloc_rate": None if config.heloc_rate is None else str(config.heloc_rate),
        "heloc_max_limit": (
            None if config.heloc_max_limit is None else str(config.heloc_max_limit)
        ),
        "heloc_readvanceable": config.heloc_readvanceable,
        "simulation_months": config.simulation_months,
        "status": config.status.value,
    }
    for key in _INSTRUMENT_KEYS:
        instrument = getattr(config, key)
        if instrument is not None:
            data[key] = instrument.to_dict()
    data["auto_stop_rules"] = [rule.to_dict() for rule in config.auto_stop_rules]
    return data


def example_strategy() -> dict[str, Any]:
    """A complete Modified Smith strategy document."""
    return {
        "id": "smith-demo",
        "name": "Modified Smith demo",
        "strategy_kind": "modified_smith",
        "jurisdiction": "CA",
        "province": "ON",
        "household_income": 100000,
        "rental_income": 2000,
        "rental_expenses": 500,
        "heloc_readvanceable": False,
        "simulation_months": 300,
        "primary_mortgage": {
            "name": "Primary Mortgage",
            "balance": 400000,
            "annual_rate": 0.05,
            "term_months": 300,
            "prepayment_privilege_percent": 20,
        },
        "heloc": {
            "name": "HELOC",
            "balance": 0,
            "annual_rate": 0.07,
            "credit_limit": 100000,
        },
        "rental_mortgage": {
            "name": "Rental Mortgage",
            "balance": 200000,
            "annual_rate": 0.055,
            "term_months": 240,
        },
        "auto_stop_rules": [
            {"kind": "heloc_limit_percentage", "threshold": 95, "unit": "percentage"},
            {"kind": "primary_paid_off", "enabled": False},
        ],
    }


def _read_source(
    source: str | Path | dict[str, Any], *, format: str | None
) -> tuple[dict[str, Any], str]:
    if isinstance(source, dict):
        return deepcopy(source), "<mapping>"

    path = Path(source)
    if not path.exists():
        raise FileNotFoundError(path)

    fmt = (format or path.suffix.lstrip(".")).lower()
    text = path.read_text(encoding="utf-8")
    try:
        if fmt in {"yaml", "yml", ""}:
            data = yaml.safe_load(text)
        elif fmt == "json":
            data = json.loads(text)
        else:
            raise ConfigError(f"Unsupported strategy format '{fmt}' for {path}")
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigError(f"Cannot parse {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Strategy root must be a mapping (source={path})")
    return data, str(path)


def _ensure_dict(value: Any, ctx: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"{ctx} must be a mapping")
    return dict(value)


def _ensure_list(value: Any, ctx: str) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigError(f"{ctx} must be a list")
    return list(value)
