from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.exceptions import InsufficientBalanceError, ValidationError
from ..users.model import Profile


@dataclass(frozen=True)
class BalanceDebit:
    """A vacation-balance debit, computed but not yet committed.

    The vacation repository commits it in the same transaction as the
    approval it belongs to, guarded by `previous_balance >= days`.
    """

    user_id: int
    days: int
    previous_balance: int
    new_balance: int


class BalanceLedger:
    """Vacation balance accounting.

    A debit is irreversible: approved requests are terminal, so there is no
    credit or refund operation.
    """

    def debit(self, profile: Optional[Profile], days: int) -> BalanceDebit:
        days = int(days)
        if days < 0:
            raise ValidationError("Days to debit cannot be negative")

        # A user without a profile has nothing to spend.
        balance = profile.vacation_balance if profile else 0
        new_balance = balance - days
        if profile is None or new_balance < 0:
            raise InsufficientBalanceError("Employee has insufficient vacation balance")

        return BalanceDebit(
            user_id=profile.user_id,
            days=days,
            previous_balance=balance,
            new_balance=new_balance,
        )

    @staticmethod
    def can_cover(profile: Optional[Profile], days: int) -> bool:
        """Pre-check used at request time; nothing is debited."""

        balance = profile.vacation_balance if profile else 0
        return int(days) <= balance
