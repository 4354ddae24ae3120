"""Append-only notification log writer.

``NotificationLogWriter.record()`` inserts one ``notifications_log`` row
per reminder attempt and commits it immediately.  Rows are never updated
or deleted.

Persistence here is best-effort: a store failure is logged and swallowed
so it can never be mistaken for a delivery failure or abort a batch.

Safety: message content and destination numbers are never logged, only
membership ids and statuses.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.audit.events import (
    LOG_STATUS_SENT,
    NOTIFICATION_TYPE_MEMBERSHIP_EXPIRY,
    VALID_LOG_STATUSES,
)
from app.db.models import NotificationLog

logger = logging.getLogger(__name__)


class NotificationLogWriter:
    """Persist reminder attempts to ``notifications_log``."""

    def __init__(self, db_session: Session | None) -> None:
        self.db = db_session

    def record(
        self,
        membership_id: str,
        channel_type: str | None,
        message: str | None,
        status: str,
        timestamp: datetime | None = None,
        *,
        member_id: str | None = None,
        batch_id: str | None = None,
        error_detail: str | None = None,
    ) -> NotificationLog | None:
        """Append one log row; return it, or ``None`` if it was not persisted.

        Raises ``ValueError`` only for a status outside ``sent``/``failed``,
        which is a programming error rather than a store failure.
        """
        if status not in VALID_LOG_STATUSES:
            raise ValueError(
                f"Invalid status {status!r}; must be one of {sorted(VALID_LOG_STATUSES)}"
            )
        if self.db is None:
            logger.warning("No notification log store; attempt for membership %s not recorded", membership_id)
            return None

        attempted_at = timestamp or datetime.now(timezone.utc)
        row = NotificationLog(
            batch_id=batch_id,
            member_id=member_id,
            membership_id=membership_id,
            type=NOTIFICATION_TYPE_MEMBERSHIP_EXPIRY,
            channel=channel_type,
            message_content=message,
            status=status,
            error_detail=error_detail,
            sent_at=attempted_at if status == LOG_STATUS_SENT else None,
        )
        try:
            self.db.add(row)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error(
                "Failed to record notification log for membership %s: %s",
                membership_id, exc.__class__.__name__,
            )
            return None

        logger.debug("Notification log recorded: membership=%s status=%s", membership_id, status)
        return row


def get_recent_entries(
    db_session: Session,
    *,
    limit: int = 50,
    batch_id: str | None = None,
) -> list[NotificationLog]:
    """Return the newest ``NotificationLog`` rows, optionally for one batch."""
    stmt = select(NotificationLog).order_by(NotificationLog.created_at.desc())
    if batch_id is not None:
        stmt = stmt.where(NotificationLog.batch_id == batch_id)
    return list(db_session.execute(stmt.limit(limit)).scalars().all())


def get_membership_history(db_session: Session, membership_id: str) -> list[NotificationLog]:
    """Return all log rows for *membership_id*, oldest first."""
    stmt = (
        select(NotificationLog)
        .where(NotificationLog.membership_id == membership_id)
        .order_by(NotificationLog.created_at.asc())
    )
    return list(db_session.execute(stmt).scalars().all())
