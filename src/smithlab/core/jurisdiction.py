"""
Tax jurisdictions and marginal-rate lookups.

Jurisdictions are reference data loaded from ``smithlab/data/jurisdictions.yaml``
(or a user-supplied file with the same layout). Each one carries a federal
bracket table, optional provincial tables, and the two flags that decide
whether the Modified Smith strategy is meaningful there: whether investment
interest is deductible and whether the strategy is supported at all.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError, JurisdictionWarning, warn_once
from .utils import ZERO, to_decimal

logger = logging.getLogger(__name__)

DATA_PATH = Path(__file__).resolve().parent.parent / "data" / "jurisdictions.yaml"

DEFAULT_PROVINCE = "ON"
FALLBACK_MARGINAL_RATE = Decimal("0.4")

CANADIAN_PROVINCES: dict[str, str] = {
    "AB": "Alberta",
    "BC": "British Columbia",
    "MB": "Manitoba",
    "NB": "New Brunswick",
    "NL": "Newfoundland and Labrador",
    "NS": "Nova Scotia",
    "NT": "Northwest Territories",
    "NU": "Nunavut",
    "ON": "Ontario",
    "PE": "Prince Edward Island",
    "QC": "Quebec",
    "SK": "Saskatchewan",
    "YT": "Yukon",
}


@dataclass(frozen=True)
class TaxBracket:
    """One marginal bracket: income above ``min`` is taxed at ``rate``."""

    min: Decimal
    rate: Decimal
    max: Decimal | None = None


def _walk(brackets: tuple[TaxBracket, ...], income: Decimal) -> Decimal:
    rate = ZERO
    for bracket in brackets:
        if income > bracket.min:
            rate = bracket.rate
    return rate


@dataclass(frozen=True)
class Jurisdiction:
    """
    A tax jurisdiction with progressive bracket tables.

    Attributes:
        code: Country code (e.g., 'CA')
        name: Display name
        currency: ISO currency code
        federal_brackets: Federal marginal brackets, ascending by ``min``
        provincial_brackets: Province code -> brackets
        interest_deductible: Whether investment loan interest is deductible
        supports_smith_manoeuvre: Whether the Modified Smith strategy applies
        metadata: Free-form reference information (tax year, source)

    **Example:**
        ```python
        from smithlab.core.jurisdiction import get_jurisdiction

        canada = get_jurisdiction("CA")
        canada.combined_marginal_rate(100_000, "ON")  # Decimal('0.2965')
        ```
    """

    code: str
    name: str
    currency: str = "CAD"
    federal_brackets: tuple[TaxBracket, ...] = ()
    provincial_brackets: dict[str, tuple[TaxBracket, ...]] = field(
        default_factory=dict
    )
    interest_deductible: bool = False
    supports_smith_manoeuvre: bool = False
    metadata: dict[str, Any] = field(default_factory=dict, compare=False)

    def federal_marginal_rate(self, income) -> Decimal:
        """Federal marginal rate for ``income``; 0 for an empty table."""
        return _walk(self.federal_brackets, to_decimal(income))

    def provincial_marginal_rate(self, income, province: str | None) -> Decimal:
        """Provincial marginal rate; 0 for a missing or unknown province."""
        if not province:
            return ZERO
        brackets = self.provincial_brackets.get(province.upper())
        if not brackets:
            return ZERO
        return _walk(brackets, to_decimal(income))

    def combined_marginal_rate(self, income, province: str | None) -> Decimal:
        """Federal plus provincial marginal rate."""
        return self.federal_marginal_rate(income) + self.provincial_marginal_rate(
            income, province
        )

    def marginal_rate(self, income, province: str | None = None) -> Decimal:
        """Federal rate when ``province`` is None, combined rate otherwise."""
        if province is None:
            return self.federal_marginal_rate(income)
        return self.combined_marginal_rate(income, province)

    def available_provinces(self) -> list[str]:
        """Province codes that have bracket data, sorted."""
        return sorted(code for code, rows in self.provincial_brackets.items() if rows)


def _parse_brackets(rows, where: str) -> tuple[TaxBracket, ...]:
    if rows is None:
        return ()
    if not isinstance(rows, list):
        raise ConfigError(f"{where}: brackets must be a list")
    parsed = []
    for i, row in enumerate(rows):
        if not isinstance(row, dict) or "min" not in row or "rate" not in row:
            raise ConfigError(f"{where}[{i}]: bracket needs 'min' and 'rate'")
        try:
            parsed.append(
                TaxBracket(
                    min=to_decimal(row["min"]),
                    rate=to_decimal(row["rate"]),
                    max=None if row.get("max") is None else to_decimal(row["max"]),
                )
            )
        except ValueError as e:
            raise ConfigError(f"{where}[{i}]: {e}") from e
    return tuple(sorted(parsed, key=lambda b: b.min))


def _parse_jurisdiction(code: str, payload: dict[str, Any]) -> Jurisdiction:
    if not isinstance(payload, dict):
        raise ConfigError(f"Jurisdiction {code}: expected a mapping")
    provincial = payload.get("provincial_brackets") or {}
    if not isinstance(provincial, dict):
        raise ConfigError(f"Jurisdiction {code}: provincial_brackets must be a mapping")
    return Jurisdiction(
        code=code.upper(),
        name=str(payload.get("name", code)),
        currency=str(payload.get("currency", "CAD")).upper(),
        federal_brackets=_parse_brackets(
            payload.get("federal_brackets"), f"{code}.federal_brackets"
        ),
        provincial_brackets={
            str(prov).upper(): _parse_brackets(rows, f"{code}.provincial_brackets.{prov}")
            for prov, rows in provincial.items()
        },
        interest_deductible=bool(payload.get("interest_deductible", False)),
        supports_smith_manoeuvre=bool(payload.get("supports_smith_manoeuvre", False)),
        metadata=dict(payload.get("metadata") or {}),
    )


def load_jurisdictions(path: str | Path | None = None) -> dict[str, Jurisdiction]:
    """
    Load jurisdictions from a YAML file.

    Args:
        path: File to read; defaults to the packaged reference data

    Returns:
        Mapping of upper-case country code to :class:`Jurisdiction`

    Raises:
        ConfigError: If the file is missing or malformed
    """
    source = Path(path) if path is not None else DATA_PATH
    try:
        text = source.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read jurisdiction data from {source}: {e}") from e
    try:
        document = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {source}: {e}") from e

    entries = document.get("jurisdictions")
    if not isinstance(entries, dict) or not entries:
        raise ConfigError(f"{source}: expected a non-empty 'jurisdictions' mapping")
    return {
        str(code).upper(): _parse_jurisdiction(str(code), payload)
        for code, payload in entries.items()
    }


@lru_cache(maxsize=1)
def _registry() -> dict[str, Jurisdiction]:
    return load_jurisdictions()


def get_jurisdiction(code: str) -> Jurisdiction:
    """
    Look up a packaged jurisdiction by country code.

    Raises:
        ConfigError: If the code is unknown
    """
    registry = _registry()
    key = (code or "").upper()
    if key not in registry:
        raise ConfigError(
            f"Unknown jurisdiction '{code}'. Available: {', '.join(sorted(registry))}"
        )
    return registry[key]


def default_jurisdiction() -> Jurisdiction:
    """The default jurisdiction (Canada)."""
    return get_jurisdiction("CA")


def resolve_province(jurisdiction: Jurisdiction, province: str | None) -> str:
    """
    Resolve the province used for tax lookups.

    Falls back to :data:`DEFAULT_PROVINCE` when no province is given or the
    requested one has no bracket data in ``jurisdiction``. A substitution of
    an explicitly requested province is logged and warned about once.
    """
    requested = (province or "").upper() or DEFAULT_PROVINCE
    if requested in jurisdiction.available_provinces():
        return requested
    if province:
        msg = (
            f"Province '{requested}' has no tax bracket data in {jurisdiction.name}; "
            f"falling back to {DEFAULT_PROVINCE}"
        )
        logger.warning(msg)
        warn_once(
            "province_fallback",
            f"{jurisdiction.code}:{requested}",
            msg,
            category=JurisdictionWarning,
        )
    return DEFAULT_PROVINCE


def effective_marginal_rate(
    jurisdiction: Jurisdiction, income, province: str | None
) -> Decimal:
    """
    Marginal rate used to price deductible interest.

    Returns 0 when the jurisdiction does not allow interest deductibility, the
    combined federal + provincial rate otherwise, and 0.40 when the tables
    yield nothing for this household.
    """
    if not jurisdiction.interest_deductible:
        return ZERO
    resolved = resolve_province(jurisdiction, province)
    rate = jurisdiction.combined_marginal_rate(income, resolved)
    return rate if rate > 0 else FALLBACK_MARGINAL_RATE
