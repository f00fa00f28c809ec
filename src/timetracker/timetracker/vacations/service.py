from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional

from ..balances.ledger import BalanceDebit, BalanceLedger
from ..common.datetime_utils import now_local
from ..common.pagination import Page, normalize_paging
from ..core.enums import RequestType, ReviewDecision, Role, VacationStatus
from ..core.exceptions import (
    AuthorizationError,
    InsufficientBalanceError,
    InsufficientPermissionError,
    InvalidStateError,
    NotFoundError,
    NotOwnerError,
    OverlappingRequestError,
    SelfApprovalError,
)
from ..core.permissions import Actor, has_permission
from ..notifications.service import NotificationService
from ..users.repository import UserRepository
from .model import ApprovalOutcome, VacationChanges, VacationRequest, VacationReview
from .repository import VacationRepository
from .rules import days_requested, require_reason

logger = logging.getLogger(__name__)


class VacationService:
    """Time-off requests: PENDING -> APPROVED | REJECTED.

    Only VACATION requests touch the balance, and only on approval.
    """

    def __init__(
        self,
        vacations: VacationRepository,
        users: UserRepository,
        ledger: BalanceLedger,
        notifier: NotificationService,
    ):
        self._vacations = vacations
        self._users = users
        self._ledger = ledger
        self._notifier = notifier

    def _require(self, request_id: int) -> VacationRequest:
        req = self._vacations.get(int(request_id))
        if not req:
            raise NotFoundError("Vacation request not found")
        return req

    @staticmethod
    def _require_owner(actor: Actor, req: VacationRequest) -> None:
        if req.user_id != actor.user_id:
            raise NotOwnerError("You can only modify your own vacation requests")

    @staticmethod
    def _require_pending(req: VacationRequest, action: str) -> None:
        if req.status != VacationStatus.PENDING:
            raise InvalidStateError(f"Only pending requests can be {action}")

    def _require_no_overlap(
        self,
        user_id: int,
        start_date: date,
        end_date: date,
        exclude_request_id: Optional[int] = None,
    ) -> None:
        clash = self._vacations.find_overlapping(user_id, start_date, end_date, exclude_request_id=exclude_request_id)
        if clash:
            raise OverlappingRequestError(
                f"Request overlaps an existing {clash.status.value.lower()} request "
                f"({clash.start_date.isoformat()} to {clash.end_date.isoformat()})"
            )

    def _require_coverable(self, user_id: int, days: int) -> None:
        if not self._ledger.can_cover(self._users.get_profile(user_id), days):
            raise InsufficientBalanceError("Insufficient vacation balance")

    def create(
        self,
        actor: Actor,
        *,
        request_type: RequestType,
        start_date: date,
        end_date: date,
        reason: str,
        now: Optional[datetime] = None,
    ) -> VacationRequest:
        request_type = RequestType(request_type)
        days = days_requested(start_date, end_date)
        reason = require_reason(reason)
        self._require_no_overlap(actor.user_id, start_date, end_date)
        if request_type == RequestType.VACATION:
            self._require_coverable(actor.user_id, days)

        request_id = self._vacations.create(
            user_id=actor.user_id,
            request_type=request_type,
            start_date=start_date,
            end_date=end_date,
            days_requested=days,
            reason=reason,
            submitted_at=now or now_local(),
        )
        created = self._require(request_id)
        logger.info(
            "Vacation request created: request_id=%s user_id=%s type=%s days=%s",
            request_id,
            actor.user_id,
            request_type.value,
            days,
        )
        self._notifier.vacation_submitted(created)
        return created

    def get(self, actor: Actor, request_id: int) -> VacationRequest:
        req = self._require(request_id)
        if req.user_id != actor.user_id and not has_permission(actor.role, Role.MANAGER):
            raise AuthorizationError("Access denied")
        return req

    def list_requests(
        self,
        actor: Actor,
        *,
        status: Optional[VacationStatus] = None,
        user_id: Optional[int] = None,
        page: Optional[int] = 1,
        limit: Optional[int] = None,
    ) -> Page[VacationRequest]:
        if not has_permission(actor.role, Role.MANAGER):
            user_id = actor.user_id

        page, limit, offset = normalize_paging(page, limit)
        items = self._vacations.list_requests(user_id=user_id, status=status, limit=limit, offset=offset)
        total = self._vacations.count_requests(user_id=user_id, status=status)
        return Page(items=items, page=page, limit=limit, total=total)

    def update(self, actor: Actor, request_id: int, changes: VacationChanges) -> VacationRequest:
        req = self._require(request_id)
        self._require_owner(actor, req)
        self._require_pending(req, "updated")

        request_type = RequestType(changes.request_type) if changes.request_type is not None else req.request_type
        start_date = changes.start_date or req.start_date
        end_date = changes.end_date or req.end_date
        reason = require_reason(changes.reason) if changes.reason is not None else req.reason

        dates_changed = (start_date, end_date) != (req.start_date, req.end_date)
        type_changed = request_type != req.request_type

        days = req.days_requested
        if dates_changed:
            days = days_requested(start_date, end_date)
            self._require_no_overlap(actor.user_id, start_date, end_date, exclude_request_id=req.request_id)
        if request_type == RequestType.VACATION and (dates_changed or type_changed):
            self._require_coverable(actor.user_id, days)

        ok = self._vacations.update_pending(
            req.request_id,
            request_type=request_type,
            start_date=start_date,
            end_date=end_date,
            days_requested=days,
            reason=reason,
        )
        if not ok:
            raise InvalidStateError("Only pending requests can be updated")

        logger.info("Vacation request updated: request_id=%s user_id=%s", req.request_id, actor.user_id)
        return self._require(req.request_id)

    def review(
        self,
        actor: Actor,
        request_id: int,
        *,
        decision: ReviewDecision,
        comments: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> VacationReview:
        if not has_permission(actor.role, Role.MANAGER):
            raise InsufficientPermissionError("Access denied. Manager role required.")

        req = self._require(request_id)
        self._require_pending(req, "approved or rejected")
        if req.user_id == actor.user_id:
            raise SelfApprovalError("Cannot approve or reject your own vacation request")

        decision = ReviewDecision(decision)
        comments = (comments or "").strip() or None
        reviewed_at = now or now_local()
        new_balance: Optional[int] = None

        if decision == ReviewDecision.APPROVE:
            debit: Optional[BalanceDebit] = None
            if req.consumes_balance:
                debit = self._ledger.debit(self._users.get_profile(req.user_id), req.days_requested)

            outcome = self._vacations.approve(
                req.request_id,
                reviewer_id=actor.user_id,
                reviewed_at=reviewed_at,
                comments=comments,
                debit=debit,
            )
            if outcome == ApprovalOutcome.STALE:
                raise InvalidStateError("Only pending requests can be approved or rejected")
            if outcome == ApprovalOutcome.INSUFFICIENT_BALANCE:
                raise InsufficientBalanceError("Employee has insufficient vacation balance")

            if debit is not None:
                profile = self._users.get_profile(req.user_id)
                new_balance = profile.vacation_balance if profile else debit.new_balance
        else:
            if not self._vacations.reject(req.request_id, reviewer_id=actor.user_id, reviewed_at=reviewed_at, comments=comments):
                raise InvalidStateError("Only pending requests can be approved or rejected")

        reviewed = self._require(req.request_id)
        logger.info(
            "Vacation request reviewed: request_id=%s status=%s reviewer=%s new_balance=%s",
            reviewed.request_id,
            reviewed.status.value,
            actor.user_id,
            new_balance,
        )
        self._notifier.vacation_reviewed(reviewed, new_balance=new_balance)
        return VacationReview(request=reviewed, new_balance=new_balance)

    def delete(self, actor: Actor, request_id: int) -> None:
        req = self._require(request_id)
        self._require_owner(actor, req)
        self._require_pending(req, "deleted")

        if not self._vacations.delete_pending(req.request_id):
            raise InvalidStateError("Only pending requests can be deleted")
        logger.info("Vacation request deleted: request_id=%s user_id=%s", req.request_id, actor.user_id)
