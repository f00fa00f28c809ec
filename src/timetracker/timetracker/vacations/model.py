from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Optional

from ..core.enums import RequestType, VacationStatus


@dataclass(frozen=True)
class VacationRequest:
    request_id: int
    user_id: int
    request_type: RequestType
    start_date: date
    end_date: date
    days_requested: int
    status: VacationStatus
    reason: str
    submitted_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    reviewed_by_id: Optional[int] = None
    review_comments: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def consumes_balance(self) -> bool:
        return self.request_type == RequestType.VACATION


@dataclass(frozen=True)
class VacationChanges:
    """Partial update of a pending request; None means unchanged."""

    request_type: Optional[RequestType] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    reason: Optional[str] = None


@dataclass(frozen=True)
class VacationSummary:
    count: int = 0
    total_days: int = 0


class ApprovalOutcome(str, Enum):
    APPROVED = "APPROVED"
    # Request left PENDING before the update ran.
    STALE = "STALE"
    # Balance guard failed inside the approval transaction.
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"


@dataclass(frozen=True)
class VacationReview:
    request: VacationRequest
    new_balance: Optional[int] = None
