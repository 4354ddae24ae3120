#!/usr/bin/env python3
"""Seed demo data: members with memberships expiring over the next month.

Usage:
    python scripts/seed_demo.py          # uses DATABASE_URL from env / .env
    DATABASE_URL=... python scripts/seed_demo.py
"""
from __future__ import annotations

import sys
from datetime import date, timedelta
from uuid import uuid4

from sqlalchemy import create_engine
from sqlalchemy.orm import Session

# Ensure project root is on sys.path
sys.path.insert(0, ".")

from app.core.settings import get_settings
from app.db.base import Base
from app.db.models import GymMembership, Member


def seed(session: Session) -> None:
    """Insert demo members and one membership each."""
    today = date.today()

    demo_people = [
        # (name_en, name_ar, whatsapp, phone, email, type, days_to_expiry, status)
        ("Ahmed Hassan", "أحمد حسن", "+12125551211", None, "ahmed@example.com", "monthly", 0, "active"),
        ("Sara Ali", "سارة علي", None, "+12125551222", "sara@example.com", "quarterly", 2, "active"),
        ("Omar Khaled", "عمر خالد", None, None, "omar@example.com", "yearly", 5, "active"),
        ("Mona Youssef", None, "+447911123456", None, None, "monthly", 7, "active"),
        ("Karim Nabil", None, "+12125551255", None, None, "personal_training", 12, "active"),
        ("Laila Farouk", None, "+12125551266", None, None, "yearly", 30, "active"),
        ("Youssef Adel", None, "+12125551277", None, None, "monthly", 3, "expired"),
    ]

    for name_en, name_ar, whatsapp, phone, email, kind, days, status in demo_people:
        member = Member(
            id=uuid4(),
            name_en=name_en,
            name_ar=name_ar,
            whatsapp_number=whatsapp,
            phone=phone,
            email=email,
            notification_preference="whatsapp" if (whatsapp or phone) else "email",
        )
        session.add(member)
        session.add(
            GymMembership(
                id=uuid4(),
                member=member,
                type=kind,
                status=status,
                start_date=today - timedelta(days=30),
                end_date=today + timedelta(days=days),
            )
        )

    session.commit()
    print(f"Seeded {len(demo_people)} members with memberships.")


def main() -> None:
    settings = get_settings()
    engine = create_engine(settings.database_url)
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        seed(session)


if __name__ == "__main__":
    main()
