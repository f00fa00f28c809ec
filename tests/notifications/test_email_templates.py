from __future__ import annotations

import pytest

from src.timetracker.timetracker.core.enums import NotificationKind
from src.timetracker.timetracker.notifications.templates import render


@pytest.mark.parametrize("kind", list(NotificationKind))
def test_every_kind_renders(kind):
    subject, html = render(kind, {})

    assert subject
    assert "Timetracker system" in html


def test_vacation_approved_shows_balance_only_when_given():
    _, with_balance = render(NotificationKind.VACATION_APPROVED, {"new_balance": 5, "approver_name": "Jane"})
    _, without = render(NotificationKind.VACATION_APPROVED, {"new_balance": None})

    assert "Remaining Vacation Balance:</strong> 5 days" in with_balance
    assert "Jane" in with_balance
    assert "Remaining Vacation Balance" not in without


def test_values_are_escaped():
    _, html = render(NotificationKind.VACATION_SUBMITTED, {"reason": "<script>x</script>"})

    assert "<script>" not in html
    assert "&lt;script&gt;" in html


def test_accepts_kind_string():
    subject, _ = render("timesheet-rejected", {})

    assert subject == "Timesheet Requires Revision"
