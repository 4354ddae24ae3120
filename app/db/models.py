from __future__ import annotations

from datetime import date, datetime, timezone
from uuid import UUID, uuid4

from sqlalchemy import Date, DateTime, ForeignKey, String, Text, func, text as sql_text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Member(Base):
    __tablename__ = "members"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    name_en: Mapped[str] = mapped_column(String(256), nullable=False)
    name_ar: Mapped[str | None] = mapped_column(String(256), nullable=True)
    email: Mapped[str | None] = mapped_column(String(512), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    whatsapp_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    notification_preference: Mapped[str | None] = mapped_column(
        String(32), nullable=True, default="whatsapp", server_default=sql_text("'whatsapp'")
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())

    memberships: Mapped[list[GymMembership]] = relationship(back_populates="member")


class GymMembership(Base):
    __tablename__ = "gym_memberships"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    member_id: Mapped[UUID] = mapped_column(ForeignKey("members.id", ondelete="CASCADE"), nullable=False)
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default="active", server_default=sql_text("'active'")
    )
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())

    member: Mapped[Member] = relationship(back_populates="memberships")


class NotificationLog(Base):
    """Append-only record of every expiry reminder attempt.

    ``channel`` is NULL when no usable contact address was found, i.e. no
    send was attempted.  ``status`` is two-valued: ``sent`` or ``failed``.
    """

    __tablename__ = "notifications_log"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    batch_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    member_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    membership_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    type: Mapped[str] = mapped_column(
        String(64), nullable=False, default="membership_expiry", server_default=sql_text("'membership_expiry'")
    )
    channel: Mapped[str | None] = mapped_column(String(32), nullable=True)
    message_content: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    error_detail: Mapped[str | None] = mapped_column(Text, nullable=True)
    sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now()
    )
