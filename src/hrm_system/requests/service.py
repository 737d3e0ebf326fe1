from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..common.validators import require_length
from ..core.constants import REASON_MAX_LENGTH, REASON_MIN_LENGTH
from ..core.enums import RequestStatus, RequestType, Role
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..teams.repository import TeamRepository
from .model import WorkRequest
from .repository import WorkRequestRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestDraft:
    type: RequestType
    start_date: date
    end_date: date
    reason: str
    is_half_day: bool = False


def validate_draft(draft: RequestDraft) -> RequestDraft:
    if draft.end_date < draft.start_date:
        raise ValidationError("End date must be on or after start date")
    if draft.is_half_day and draft.start_date != draft.end_date:
        raise ValidationError("A half-day request must start and end on the same day")
    reason = require_length(draft.reason, "Reason", REASON_MIN_LENGTH, REASON_MAX_LENGTH)
    return RequestDraft(
        type=draft.type,
        start_date=draft.start_date,
        end_date=draft.end_date,
        reason=reason,
        is_half_day=draft.is_half_day,
    )


class RequestService:
    """Use cases: work requests (leave, WFH, late, early, overtime) and their approval."""

    def __init__(self, requests: WorkRequestRepository, teams: TeamRepository):
        self._requests = requests
        self._teams = teams

    def _get(self, request_id: int) -> WorkRequest:
        req = self._requests.get_by_id(int(request_id))
        if not req:
            raise NotFoundError("Request not found")
        return req

    def _led_team_ids(self, user_id: int) -> set[int]:
        return {t.team_id for t in self._teams.list_led_by(int(user_id))}

    def can_approve(self, *, approver_id: int, approver_role: Role, req: WorkRequest) -> bool:
        if req.user_id == int(approver_id):
            return False
        if approver_role.is_manager:
            return True
        if approver_role != Role.LEADER:
            return False
        # a leader's request (or a manager's) goes to ADMIN/HR
        if req.requester_role in {Role.LEADER, Role.ADMIN, Role.HR}:
            return False
        return req.team_id is not None and req.team_id in self._led_team_ids(approver_id)

    def create_request(self, *, current_user_id: int, draft: RequestDraft) -> WorkRequest:
        draft = validate_draft(draft)
        request_id = self._requests.create(
            user_id=int(current_user_id),
            type=draft.type,
            start_date=draft.start_date,
            end_date=draft.end_date,
            is_half_day=draft.is_half_day,
            reason=draft.reason,
        )
        logger.info("work request %s (%s) created by user %s", request_id, draft.type.value, current_user_id)
        return self._get(request_id)

    def _own_pending(self, current_user_id: int, request_id: int) -> WorkRequest:
        req = self._get(request_id)
        if req.user_id != int(current_user_id):
            raise AuthorizationError("You can only change your own requests")
        if req.status != RequestStatus.PENDING:
            raise ConflictError("Only pending requests can be changed")
        return req

    def update_request(self, *, current_user_id: int, request_id: int, draft: RequestDraft) -> WorkRequest:
        req = self._own_pending(current_user_id, request_id)
        draft = validate_draft(draft)
        if not self._requests.update(
            request_id=req.request_id,
            type=draft.type,
            start_date=draft.start_date,
            end_date=draft.end_date,
            is_half_day=draft.is_half_day,
            reason=draft.reason,
        ):
            raise ConflictError("Request was decided meanwhile")
        return self._get(req.request_id)

    def cancel_request(self, *, current_user_id: int, request_id: int) -> None:
        req = self._own_pending(current_user_id, request_id)
        if not self._requests.soft_delete(request_id=req.request_id):
            raise ConflictError("Request was decided meanwhile")

    def _decide(
        self,
        *,
        current_user_id: int,
        current_role: Role,
        request_id: int,
        status: RequestStatus,
        rejection_reason: Optional[str],
    ) -> WorkRequest:
        req = self._get(request_id)
        if req.status != RequestStatus.PENDING:
            raise ConflictError("Request has already been decided")
        if not self.can_approve(approver_id=current_user_id, approver_role=current_role, req=req):
            raise AuthorizationError("You are not allowed to decide this request")

        if not self._requests.decide(
            request_id=req.request_id,
            status=status,
            approver_id=int(current_user_id),
            rejection_reason=rejection_reason,
        ):
            raise ConflictError("Request has already been decided")
        logger.info("work request %s %s by user %s", req.request_id, status.value.lower(), current_user_id)
        return self._get(req.request_id)

    def approve_request(self, *, current_user_id: int, current_role: Role, request_id: int) -> WorkRequest:
        return self._decide(
            current_user_id=current_user_id,
            current_role=current_role,
            request_id=request_id,
            status=RequestStatus.APPROVED,
            rejection_reason=None,
        )

    def reject_request(
        self,
        *,
        current_user_id: int,
        current_role: Role,
        request_id: int,
        rejection_reason: str,
    ) -> WorkRequest:
        reason = require_length(rejection_reason, "Rejection reason", REASON_MIN_LENGTH, REASON_MAX_LENGTH)
        return self._decide(
            current_user_id=current_user_id,
            current_role=current_role,
            request_id=request_id,
            status=RequestStatus.REJECTED,
            rejection_reason=reason,
        )

    def get_request(self, *, current_user_id: int, current_role: Role, request_id: int) -> WorkRequest:
        req = self._get(request_id)
        if req.user_id == int(current_user_id) or current_role.is_manager:
            return req
        if self.can_approve(approver_id=current_user_id, approver_role=current_role, req=req):
            return req
        raise AuthorizationError("You are not allowed to view this request")

    def list_sent(
        self,
        *,
        current_user_id: int,
        status: Optional[RequestStatus] = None,
        type: Optional[RequestType] = None,
    ) -> list[WorkRequest]:
        return list(self._requests.list_by_user(int(current_user_id), status=status, type=type))

    def list_received(self, *, current_user_id: int, current_role: Role) -> list[WorkRequest]:
        """Pending requests the current user may decide."""
        if current_role.is_manager:
            pending = self._requests.list_pending()
        elif current_role == Role.LEADER:
            pending = self._requests.list_pending(team_ids=sorted(self._led_team_ids(current_user_id)))
        else:
            return []
        return [r for r in pending if self.can_approve(approver_id=current_user_id, approver_role=current_role, req=r)]
