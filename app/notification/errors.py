"""Operation-level errors for the reminder engine.

Per-recipient problems never raise; they are reported in ``BatchResult``.
"""
from __future__ import annotations


class ReminderError(RuntimeError):
    """Base class for errors that abort a whole reminder operation."""


class InvalidThresholdError(ValueError):
    """Raised when ``threshold_days`` is negative or not an integer."""


class DataAccessError(ReminderError):
    """Raised when the membership store cannot be read or returns bad rows."""


class GatewayUnavailableError(ReminderError):
    """Raised when the messaging gateway is not configured at all."""


def validate_threshold(threshold_days: object) -> int:
    """Return *threshold_days* as an ``int`` or raise ``InvalidThresholdError``."""
    if isinstance(threshold_days, bool) or not isinstance(threshold_days, int):
        raise InvalidThresholdError(
            f"threshold_days must be an integer, got {type(threshold_days).__name__}"
        )
    if threshold_days < 0:
        raise InvalidThresholdError(
            f"threshold_days must be non-negative, got {threshold_days}"
        )
    return threshold_days
