"""Tests for app/notification/templates.py."""
from __future__ import annotations

import pytest

from app.notification.models import MembershipCategory
from app.notification.templates import category_label, render_reminder


class TestCategoryLabel:
    @pytest.mark.parametrize(
        ("category", "label"),
        [
            (MembershipCategory.MONTHLY, "Monthly Membership"),
            (MembershipCategory.QUARTERLY, "Quarterly Membership"),
            (MembershipCategory.YEARLY, "Yearly Membership"),
            (MembershipCategory.OTHER, "Gym Membership"),
        ],
    )
    def test_known_categories(self, category, label) -> None:
        assert category_label(category) == label

    def test_unknown_raw_value_falls_back(self) -> None:
        assert category_label("personal_training") == "Gym Membership"


class TestRenderReminder:
    def test_embeds_name_label_and_days(self) -> None:
        text = render_reminder("Alice", MembershipCategory.YEARLY, 4)
        assert "Alice" in text
        assert "Yearly Membership" in text
        assert "4 days" in text

    def test_singular_day(self) -> None:
        text = render_reminder("Alice", MembershipCategory.MONTHLY, 1)
        assert "1 day." in text
        assert "1 days" not in text

    def test_expires_today(self) -> None:
        text = render_reminder("Alice", MembershipCategory.MONTHLY, 0)
        assert "expires today" in text
        assert "0 days" not in text

    def test_large_value_embedded_verbatim(self) -> None:
        assert "365 days" in render_reminder("Bob", MembershipCategory.OTHER, 365)

    def test_deterministic(self) -> None:
        first = render_reminder("Alice", MembershipCategory.QUARTERLY, 3)
        second = render_reminder("Alice", MembershipCategory.QUARTERLY, 3)
        assert first == second

    def test_dollar_in_name_is_not_substituted(self) -> None:
        assert "$ally" in render_reminder("$ally", MembershipCategory.MONTHLY, 2)

    def test_negative_days_rejected(self) -> None:
        with pytest.raises(ValueError, match="non-negative"):
            render_reminder("Alice", MembershipCategory.MONTHLY, -1)
