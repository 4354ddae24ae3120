"""Constants for the append-only notification log."""
from __future__ import annotations

NOTIFICATION_TYPE_MEMBERSHIP_EXPIRY = "membership_expiry"

LOG_STATUS_SENT = "sent"
LOG_STATUS_FAILED = "failed"

VALID_LOG_STATUSES: frozenset[str] = frozenset({
    LOG_STATUS_SENT,
    LOG_STATUS_FAILED,
})
