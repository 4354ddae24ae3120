"""Typed records flowing through the expiry reminder engine.

Store rows are parsed into these structures at the query boundary so
nothing downstream handles loosely-shaped dicts.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import StrEnum


class MembershipCategory(StrEnum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"
    OTHER = "other"

    @classmethod
    def parse(cls, raw: str | None) -> MembershipCategory:
        """Map a stored membership type to a category; unknown values become ``OTHER``."""
        if not raw:
            return cls.OTHER
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return cls.OTHER


class AddressKind(StrEnum):
    WHATSAPP = "whatsapp"
    PHONE = "phone"
    EMAIL = "email"


class ChannelType(StrEnum):
    WHATSAPP = "whatsapp"


class OutcomeStatus(StrEnum):
    SENT = "sent"
    FAILED = "failed"
    UNREACHABLE = "unreachable"


@dataclass(frozen=True)
class ContactAddress:
    kind: AddressKind
    value: str


@dataclass(frozen=True)
class Channel:
    """A resolved destination: delivery mechanism plus E.164 address."""

    channel_type: ChannelType
    destination: str


@dataclass(frozen=True)
class ExpiryCandidate:
    """A membership eligible for a reminder in the current threshold window."""

    membership_id: str
    member_id: str
    member_display_name: str
    membership_category: MembershipCategory
    expiry_date: date
    days_remaining: int
    preferred_channel_hint: str | None = None
    contact_addresses: tuple[ContactAddress, ...] = ()


@dataclass(frozen=True)
class SendResult:
    success: bool
    error: str | None = None


@dataclass(frozen=True)
class DispatchOutcome:
    membership_id: str
    member_id: str
    member_display_name: str
    status: OutcomeStatus
    days_remaining: int
    error_detail: str | None = None


@dataclass
class BatchResult:
    batch_id: str
    total_candidates: int = 0
    sent_count: int = 0
    failed_count: int = 0
    outcomes: list[DispatchOutcome] = field(default_factory=list)

    @property
    def overall_success(self) -> bool:
        return self.failed_count == 0


@dataclass(frozen=True)
class PreviewEntry:
    """A candidate annotated with reachability, for the read-only preview."""

    candidate: ExpiryCandidate
    days_remaining: int
    has_channel: bool


def days_until(expiry_date: date, today: date) -> int:
    """Whole days from *today* to *expiry_date*, floored at zero."""
    return max((expiry_date - today).days, 0)
