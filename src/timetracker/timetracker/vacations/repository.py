from __future__ import annotations

from datetime import date, datetime
from typing import Mapping, Optional, Protocol, Sequence

from ..balances.ledger import BalanceDebit
from ..core.enums import RequestType, VacationStatus
from .model import ApprovalOutcome, VacationRequest, VacationSummary


class VacationRepository(Protocol):
    def create(
        self,
        *,
        user_id: int,
        request_type: RequestType,
        start_date: date,
        end_date: date,
        days_requested: int,
        reason: str,
        submitted_at: datetime,
    ) -> int:
        raise NotImplementedError

    def get(self, request_id: int) -> Optional[VacationRequest]:
        raise NotImplementedError

    def find_overlapping(
        self,
        user_id: int,
        start_date: date,
        end_date: date,
        *,
        exclude_request_id: Optional[int] = None,
    ) -> Optional[VacationRequest]:
        """First PENDING/APPROVED request of the user sharing a day with [start, end]."""

        raise NotImplementedError

    def list_requests(
        self,
        *,
        user_id: Optional[int] = None,
        status: Optional[VacationStatus] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> Sequence[VacationRequest]:
        raise NotImplementedError

    def count_requests(self, *, user_id: Optional[int] = None, status: Optional[VacationStatus] = None) -> int:
        raise NotImplementedError

    def list_pending(self, *, exclude_user_id: Optional[int] = None, limit: int = 10) -> Sequence[VacationRequest]:
        """PENDING requests, most recent submission first."""

        raise NotImplementedError

    def count_pending(self, *, exclude_user_id: Optional[int] = None) -> int:
        raise NotImplementedError

    # Conditional transitions on PENDING.
    def update_pending(
        self,
        request_id: int,
        *,
        request_type: RequestType,
        start_date: date,
        end_date: date,
        days_requested: int,
        reason: str,
    ) -> bool:
        raise NotImplementedError

    def approve(
        self,
        request_id: int,
        *,
        reviewer_id: int,
        reviewed_at: datetime,
        comments: Optional[str],
        debit: Optional[BalanceDebit] = None,
    ) -> ApprovalOutcome:
        """Approve and apply the debit (if any) in one transaction.

        Nothing is written unless both the status change and the debit succeed.
        """

        raise NotImplementedError

    def reject(self, request_id: int, *, reviewer_id: int, reviewed_at: datetime, comments: Optional[str]) -> bool:
        raise NotImplementedError

    def delete_pending(self, request_id: int) -> bool:
        raise NotImplementedError

    # Aggregation
    def summarize_for_user(self, user_id: int, *, since: datetime) -> Mapping[VacationStatus, VacationSummary]:
        raise NotImplementedError

    def list_recent_for_user(self, user_id: int, *, since: datetime, limit: int) -> Sequence[VacationRequest]:
        raise NotImplementedError

    def count_all(self) -> int:
        raise NotImplementedError
