"""
Error and warning classes for SmithLab.

This module defines the exception classes raised when a strategy configuration
is rejected or a simulation run fails, plus the warning categories used for
configuration oddities that do not stop a run.
"""

from __future__ import annotations

import warnings


class ConfigError(Exception):
    """
    Configuration error during strategy setup or loading.

    Raised for structural problems in a strategy definition: unknown
    jurisdiction codes, malformed YAML/JSON documents, unknown rule kinds or
    illegal status transitions.

    **Common Causes:**
    - Unknown jurisdiction code
    - Missing `kind` on an auto-stop rule
    - Moving a strategy from `draft` straight to `completed`

    **Example Usage:**
        ```python
        from smithlab.core.errors import ConfigError
        from smithlab.core.jurisdiction import get_jurisdiction

        try:
            get_jurisdiction("XX")
        except ConfigError as e:
            print(f"Configuration error: {e}")
        ```
    """

    pass


class ConfigValidationError(ConfigError):
    """
    Raised when a strategy configuration fails validation.

    Carries field-level messages so callers (forms, the CLI) can show every
    problem at once instead of failing on the first.

    Attributes:
        strategy_id: The ID of the strategy that failed validation
        errors: Mapping of field name to the list of messages for that field
    """

    def __init__(self, strategy_id: str | None, errors: dict[str, list[str]]):
        self.strategy_id = strategy_id
        self.errors = {field: list(msgs) for field, msgs in errors.items()}
        super().__init__(self._fmt())

    def _fmt(self) -> str:
        """Format the field errors into a single readable message."""
        parts = [f"{field}: {'; '.join(msgs)}" for field, msgs in self.errors.items()]
        preview = " | ".join(parts[:10])
        more = f" (+{len(parts)-10} more)" if len(parts) > 10 else ""
        return f"[Strategy {self.strategy_id}] invalid configuration: {preview}{more}"


class SimulationError(Exception):
    """
    Raised when a simulation run fails after validation passed.

    The orchestrator wraps any unexpected exception from the simulators into
    this error so the caller gets one descriptive failure. The ledger store is
    untouched when this is raised.

    Attributes:
        strategy_id: The ID of the strategy whose run failed
        scenario: The scenario being simulated when the failure happened, if known
    """

    def __init__(self, strategy_id: str, message: str, scenario: str | None = None):
        self.strategy_id = strategy_id
        self.scenario = scenario
        super().__init__(self._fmt(message))

    def _fmt(self, msg: str) -> str:
        """Format the error message with additional context."""
        suffix = f" | scenario: {self.scenario}" if self.scenario else ""
        return f"[Strategy {self.strategy_id}] simulation failed: {msg}{suffix}"


class SmithLabWarning(UserWarning):
    """Warning for SmithLab configuration issues."""


class JurisdictionWarning(SmithLabWarning):
    """Warning emitted when a jurisdiction or province lookup falls back to a default."""


# Global set to track warnings per key to avoid spam
_warned: set[tuple[str, str]] = set()


def warn_once(code: str, key: str, msg: str, *, category=SmithLabWarning) -> None:
    """Warn once per (key, code) to avoid spam."""
    marker = (key, code)
    if marker not in _warned:
        _warned.add(marker)
        warnings.warn(msg, category, stacklevel=3)


def reset_warnings() -> None:
    """Forget which warnings were already emitted (used by tests)."""
    _warned.clear()
