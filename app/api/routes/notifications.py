"""Notification log routes: recent attempts and per-membership history."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.audit.notification_log import get_membership_history, get_recent_entries
from app.db.models import NotificationLog

router = APIRouter(prefix="/notifications", tags=["notifications"])


def _serialize_entry(row: NotificationLog) -> dict:
    # message_content is omitted: it carries the member's name
    return {
        "id": str(row.id),
        "batch_id": row.batch_id,
        "member_id": row.member_id,
        "membership_id": row.membership_id,
        "type": row.type,
        "channel": row.channel,
        "status": row.status,
        "error_detail": row.error_detail,
        "sent_at": row.sent_at.isoformat() if row.sent_at else None,
        "created_at": row.created_at.isoformat() if row.created_at else None,
    }


@router.get("/recent", summary="Most recent reminder attempts")
def get_recent(
    limit: int = Query(default=50, ge=1, le=500),
    batch_id: str | None = None,
    db: Session = Depends(get_db),
):
    return [_serialize_entry(row) for row in get_recent_entries(db, limit=limit, batch_id=batch_id)]


@router.get("/{membership_id}/history", summary="Reminder history for a membership")
def get_history(membership_id: str, db: Session = Depends(get_db)):
    rows = get_membership_history(db, membership_id)
    if not rows:
        raise HTTPException(status_code=404, detail=f"No reminder history for membership {membership_id}")
    return [_serialize_entry(row) for row in rows]
