"""Scheduled-job trigger for expiry reminders.

Usage:
    python -m app.tasks.expiry_reminders --days 7
    python -m app.tasks.expiry_reminders --days 3 --preview

Prints the same JSON shape the HTTP routes return.  Exits 1 on an
operation-level error (bad threshold, store unreachable, gateway not
configured); per-recipient failures still exit 0.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys

from app.audit.notification_log import NotificationLogWriter
from app.core.logging import setup_logging
from app.core.settings import get_settings
from app.db.session import session_scope
from app.notification.candidates import (
    DemoMembershipQueryGateway,
    SqlMembershipQueryGateway,
    make_clock,
)
from app.notification.dispatcher import ReminderDispatcher
from app.notification.errors import InvalidThresholdError, ReminderError
from app.notification.responses import batch_payload, preview_payload
from app.notification.whatsapp_sender import build_sender

logger = logging.getLogger(__name__)


def run(days: int, *, preview: bool = False) -> dict:
    """Run one preview or dispatch against the configured store and gateway."""
    settings = get_settings()
    clock = make_clock(settings.reminder_timezone)

    with session_scope() as db:
        if settings.demo_mode:
            gateway = DemoMembershipQueryGateway(clock)
        else:
            gateway = SqlMembershipQueryGateway(db, clock)
        dispatcher = ReminderDispatcher(
            gateway,
            build_sender(settings),
            NotificationLogWriter(db),
            clock=clock,
            concurrency=settings.dispatch_concurrency,
            default_region=settings.phone_default_region,
            send_timeout_s=settings.whatsapp_timeout_s,
        )
        if preview:
            return preview_payload(days, dispatcher.preview(days))
        return batch_payload(dispatcher.run_batch(days))


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Send membership expiry reminders")
    parser.add_argument(
        "--days",
        type=int,
        default=settings.default_threshold_days,
        help="remind members expiring within this many days (default: %(default)s)",
    )
    parser.add_argument("--preview", action="store_true", help="list candidates without sending")
    args = parser.parse_args(argv)

    setup_logging()
    try:
        payload = run(args.days, preview=args.preview)
    except (InvalidThresholdError, ReminderError) as exc:
        logger.error("Expiry reminder run failed: %s", exc)
        print(json.dumps({"error": str(exc)}))
        return 1

    print(json.dumps(payload, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
