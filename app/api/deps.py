"""FastAPI dependencies: database sessions and reminder engine factories."""
from __future__ import annotations

from collections.abc import Generator

from fastapi import Depends
from sqlalchemy.orm import Session

from app.audit.notification_log import NotificationLogWriter
from app.core.settings import get_settings
from app.db.session import get_session_factory
from app.notification.candidates import (
    DemoMembershipQueryGateway,
    MembershipQueryGateway,
    SqlMembershipQueryGateway,
    make_clock,
)
from app.notification.dispatcher import ReminderDispatcher
from app.notification.whatsapp_sender import MessageSender, build_sender


def get_db() -> Generator[Session, None, None]:
    """Yield a SQLAlchemy session; commit on success, rollback on error."""
    db = get_session_factory()()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_query_gateway(db: Session = Depends(get_db)) -> MembershipQueryGateway:
    """Return the demo roster when ``DEMO_MODE`` is on, else the live store."""
    settings = get_settings()
    clock = make_clock(settings.reminder_timezone)
    if settings.demo_mode:
        return DemoMembershipQueryGateway(clock)
    return SqlMembershipQueryGateway(db, clock)


def get_message_sender() -> MessageSender:
    return build_sender(get_settings())


def get_dispatcher(
    db: Session = Depends(get_db),
    query_gateway: MembershipQueryGateway = Depends(get_query_gateway),
    sender: MessageSender = Depends(get_message_sender),
) -> ReminderDispatcher:
    """Return a ReminderDispatcher wired to the current request's session."""
    settings = get_settings()
    return ReminderDispatcher(
        query_gateway,
        sender,
        NotificationLogWriter(db),
        clock=make_clock(settings.reminder_timezone),
        concurrency=settings.dispatch_concurrency,
        default_region=settings.phone_default_region,
        send_timeout_s=settings.whatsapp_timeout_s,
    )
