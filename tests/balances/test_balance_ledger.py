from __future__ import annotations

import pytest

from src.timetracker.timetracker.balances.ledger import BalanceLedger
from src.timetracker.timetracker.core.enums import Province
from src.timetracker.timetracker.core.exceptions import InsufficientBalanceError, ValidationError
from src.timetracker.timetracker.users.model import Profile


def _profile(balance: int) -> Profile:
    return Profile(user_id=7, full_name="A", province=Province.ONTARIO, vacation_balance=balance)


def test_debit_computes_new_balance():
    debit = BalanceLedger().debit(_profile(10), 5)

    assert debit.user_id == 7
    assert debit.previous_balance == 10
    assert debit.new_balance == 5


def test_debit_can_spend_entire_balance():
    assert BalanceLedger().debit(_profile(3), 3).new_balance == 0


def test_debit_over_balance_raises():
    with pytest.raises(InsufficientBalanceError):
        BalanceLedger().debit(_profile(10), 12)


def test_negative_days_rejected():
    with pytest.raises(ValidationError):
        BalanceLedger().debit(_profile(10), -1)


def test_missing_profile_has_no_balance():
    with pytest.raises(InsufficientBalanceError):
        BalanceLedger().debit(None, 1)
    assert BalanceLedger.can_cover(None, 0)
    assert not BalanceLedger.can_cover(None, 1)


def test_can_cover():
    assert BalanceLedger.can_cover(_profile(5), 5)
    assert not BalanceLedger.can_cover(_profile(5), 6)
