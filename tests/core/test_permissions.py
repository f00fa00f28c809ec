from __future__ import annotations

import pytest

from src.timetracker.timetracker.core.enums import Role
from src.timetracker.timetracker.core.permissions import has_permission, role_rank


@pytest.mark.parametrize(
    "actor, required, expected",
    [
        (Role.EMPLOYEE, Role.EMPLOYEE, True),
        (Role.EMPLOYEE, Role.MANAGER, False),
        (Role.MANAGER, Role.EMPLOYEE, True),
        (Role.MANAGER, Role.ADMIN, False),
        (Role.ADMIN, Role.MANAGER, True),
        (Role.ADMIN, Role.ADMIN, True),
    ],
)
def test_role_hierarchy(actor, required, expected):
    assert has_permission(actor, required) is expected


def test_accepts_role_strings():
    assert has_permission("ADMIN", "MANAGER")
    assert not has_permission("EMPLOYEE", "MANAGER")


def test_unknown_role_is_treated_as_lowest():
    assert role_rank("SUPERUSER") == 0
    assert role_rank(None) == 0
    assert not has_permission("SUPERUSER", Role.MANAGER)
    assert has_permission("SUPERUSER", Role.EMPLOYEE)
