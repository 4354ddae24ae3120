"""Reminder message templates.

Rendering is a pure function of (name, category, days remaining) so a
re-run produces byte-identical text.
"""
from __future__ import annotations

from string import Template

from app.notification.models import MembershipCategory

CATEGORY_LABELS: dict[MembershipCategory, str] = {
    MembershipCategory.MONTHLY: "Monthly Membership",
    MembershipCategory.QUARTERLY: "Quarterly Membership",
    MembershipCategory.YEARLY: "Yearly Membership",
}
DEFAULT_LABEL = "Gym Membership"

_EXPIRING_TEMPLATE = Template(
    "Hi $name,\n\n"
    "Your $label expires in $days_text. "
    "Renew at the front desk or reply to this message to keep your access uninterrupted.\n\n"
    "See you at the gym!"
)

_EXPIRING_TODAY_TEMPLATE = Template(
    "Hi $name,\n\n"
    "Your $label expires today. "
    "Renew at the front desk or reply to this message to keep your access uninterrupted.\n\n"
    "See you at the gym!"
)


def category_label(category: MembershipCategory | str) -> str:
    """Display name for *category*; anything unrecognised is ``Gym Membership``."""
    return CATEGORY_LABELS.get(MembershipCategory.parse(str(category)), DEFAULT_LABEL)


def render_reminder(name: str, category: MembershipCategory | str, days_remaining: int) -> str:
    """Build the reminder text for one member."""
    if days_remaining < 0:
        raise ValueError(f"days_remaining must be non-negative, got {days_remaining}")

    label = category_label(category)
    if days_remaining == 0:
        return _EXPIRING_TODAY_TEMPLATE.substitute(name=name, label=label)

    days_text = "1 day" if days_remaining == 1 else f"{days_remaining} days"
    return _EXPIRING_TEMPLATE.substitute(name=name, label=label, days_text=days_text)
