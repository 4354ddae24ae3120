"""Expiry reminder routes.

GET  /api/members/send-expiry-reminders?days=N   preview, sends nothing
POST /api/members/send-expiry-reminders          run a dispatch batch

Per-recipient failures are reported inside a 200 response; only
operation-level errors (bad threshold, store unreachable, gateway not
configured) produce an error status.
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field, StrictInt

from app.api.deps import get_dispatcher
from app.core.settings import get_settings
from app.notification.dispatcher import ReminderDispatcher
from app.notification.errors import DataAccessError, GatewayUnavailableError, InvalidThresholdError
from app.notification.responses import batch_payload, preview_payload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/members", tags=["reminders"])


class DispatchBody(BaseModel):
    days_threshold: StrictInt | None = Field(default=None, alias="daysThreshold")


def _threshold_or_default(value: int | None) -> int:
    return get_settings().default_threshold_days if value is None else value


@router.get("/send-expiry-reminders", summary="Preview memberships expiring soon")
def preview_expiring(
    days: int | None = Query(default=None),
    dispatcher: ReminderDispatcher = Depends(get_dispatcher),
):
    threshold = _threshold_or_default(days)
    try:
        entries = dispatcher.preview(threshold)
    except InvalidThresholdError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except DataAccessError as exc:
        logger.error("Preview failed: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return preview_payload(threshold, entries)


@router.post("/send-expiry-reminders", summary="Send expiry reminders")
def send_expiry_reminders(
    body: DispatchBody | None = None,
    dispatcher: ReminderDispatcher = Depends(get_dispatcher),
):
    threshold = _threshold_or_default(body.days_threshold if body else None)
    try:
        result = dispatcher.run_batch(threshold)
    except InvalidThresholdError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except DataAccessError as exc:
        logger.error("Reminder batch aborted: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    except GatewayUnavailableError as exc:
        logger.error("Reminder batch aborted: %s", exc)
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return batch_payload(result)
