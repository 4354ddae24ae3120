"""Membership query gateway: who is due an expiry reminder.

Two implementations share the ``MembershipQueryGateway`` interface:

- ``SqlMembershipQueryGateway`` reads live ``gym_memberships`` joined with
  ``members``.
- ``DemoMembershipQueryGateway`` returns a fixed sample roster relative to
  today, used when ``DEMO_MODE`` is on.

Both return ``ExpiryCandidate`` records ordered soonest-expiring first, with
``expiry_date`` in ``[today, today + threshold_days]`` inclusive.
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date, datetime, timedelta
from typing import Protocol
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.db.models import GymMembership, Member
from app.notification.errors import DataAccessError, validate_threshold
from app.notification.models import (
    AddressKind,
    ContactAddress,
    ExpiryCandidate,
    MembershipCategory,
    days_until,
)

logger = logging.getLogger(__name__)

ACTIVE_STATUS = "active"
PLACEHOLDER_DISPLAY_NAME = "Member"

Clock = Callable[[], date]


def make_clock(timezone_name: str) -> Clock:
    """Return a callable giving today's date in *timezone_name*."""
    tz = ZoneInfo(timezone_name)
    return lambda: datetime.now(tz).date()


def expiry_window(today: date, threshold_days: int) -> tuple[date, date]:
    """Inclusive ``(start, end)`` dates for *threshold_days* from *today*."""
    try:
        return today, today + timedelta(days=threshold_days)
    except OverflowError:
        return today, date.max


class MembershipQueryGateway(Protocol):
    def find_expiring_memberships(self, threshold_days: int) -> list[ExpiryCandidate]:
        ...


# ---------------------------------------------------------------------------
# Row parsing
# ---------------------------------------------------------------------------

def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def build_contact_addresses(
    whatsapp_number: str | None,
    phone: str | None,
    email: str | None = None,
) -> tuple[ContactAddress, ...]:
    """Priority-ordered contact addresses; blank values are dropped."""
    addresses: list[ContactAddress] = []
    for kind, value in (
        (AddressKind.WHATSAPP, whatsapp_number),
        (AddressKind.PHONE, phone),
        (AddressKind.EMAIL, email),
    ):
        cleaned = _clean(value)
        if cleaned is not None:
            addresses.append(ContactAddress(kind=kind, value=cleaned))
    return tuple(addresses)


def candidate_from_row(membership: GymMembership, member: Member, today: date) -> ExpiryCandidate:
    """Validate a joined store row and convert it to an ``ExpiryCandidate``.

    Raises ``DataAccessError`` when the row has no usable ``end_date``.  A
    blank English name falls back to the Arabic name, then to ``Member``.
    """
    if membership.end_date is None:
        raise DataAccessError(f"Membership {membership.id} has no end_date")
    if not isinstance(membership.end_date, date):
        raise DataAccessError(f"Membership {membership.id} has a non-date end_date")
    name = _clean(member.name_en) or _clean(member.name_ar)
    if name is None:
        logger.warning("Member %s has no display name; using placeholder", member.id)
        name = PLACEHOLDER_DISPLAY_NAME

    return ExpiryCandidate(
        membership_id=str(membership.id),
        member_id=str(member.id),
        member_display_name=name,
        membership_category=MembershipCategory.parse(membership.type),
        expiry_date=membership.end_date,
        days_remaining=days_until(membership.end_date, today),
        preferred_channel_hint=_clean(member.notification_preference),
        contact_addresses=build_contact_addresses(
            member.whatsapp_number, member.phone, member.email
        ),
    )


# ---------------------------------------------------------------------------
# SQL implementation
# ---------------------------------------------------------------------------

class SqlMembershipQueryGateway:
    """Read active memberships expiring within a threshold from the database."""

    def __init__(self, db_session: Session, clock: Clock) -> None:
        self.db = db_session
        self.clock = clock

    def find_expiring_memberships(self, threshold_days: int) -> list[ExpiryCandidate]:
        threshold_days = validate_threshold(threshold_days)
        today = self.clock()
        start, end = expiry_window(today, threshold_days)

        stmt = (
            select(GymMembership, Member)
            .join(Member, GymMembership.member_id == Member.id)
            .where(
                GymMembership.status == ACTIVE_STATUS,
                GymMembership.end_date >= start,
                GymMembership.end_date <= end,
            )
            .order_by(GymMembership.end_date.asc(), Member.name_en.asc(), GymMembership.id.asc())
        )
        try:
            rows = self.db.execute(stmt).all()
        except SQLAlchemyError as exc:
            logger.error("Expiring membership query failed: %s", exc.__class__.__name__)
            raise DataAccessError(f"Membership store query failed: {exc}") from exc

        candidates = [candidate_from_row(membership, member, today) for membership, member in rows]
        logger.info(
            "Found %d membership(s) expiring within %d day(s) of %s",
            len(candidates), threshold_days, today.isoformat(),
        )
        return candidates


# ---------------------------------------------------------------------------
# Demo implementation
# ---------------------------------------------------------------------------

# (name, category, days from today, whatsapp, phone, preference)
_DEMO_ROSTER: tuple[tuple[str, str, int, str | None, str | None, str], ...] = (
    ("Ahmed Hassan", "monthly", 0, "+12125551211", None, "whatsapp"),
    ("Sara Ali", "quarterly", 2, None, "+12125551222", "whatsapp"),
    ("Omar Khaled", "yearly", 5, None, None, "email"),
    ("Mona Youssef", "monthly", 7, "+447911123456", "+12125551244", "whatsapp"),
    ("Karim Nabil", "personal_training", 12, "+12125551255", None, "whatsapp"),
    ("Laila Farouk", "yearly", 30, "+12125551266", None, "whatsapp"),
)


class DemoMembershipQueryGateway:
    """Fixed sample memberships, expiring relative to the clock's today."""

    def __init__(self, clock: Clock) -> None:
        self.clock = clock

    def find_expiring_memberships(self, threshold_days: int) -> list[ExpiryCandidate]:
        threshold_days = validate_threshold(threshold_days)
        today = self.clock()
        start, end = expiry_window(today, threshold_days)

        candidates: list[ExpiryCandidate] = []
        for index, (name, category, offset, whatsapp, phone, preference) in enumerate(_DEMO_ROSTER, start=1):
            expiry = today + timedelta(days=offset)
            if not start <= expiry <= end:
                continue
            candidates.append(
                ExpiryCandidate(
                    membership_id=f"demo-membership-{index}",
                    member_id=f"demo-member-{index}",
                    member_display_name=name,
                    membership_category=MembershipCategory.parse(category),
                    expiry_date=expiry,
                    days_remaining=days_until(expiry, today),
                    preferred_channel_hint=preference,
                    contact_addresses=build_contact_addresses(whatsapp, phone),
                )
            )
        candidates.sort(key=lambda c: (c.expiry_date, c.member_display_name))
        return candidates
