from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import RequestStatus, RequestType
from .model import WorkRequest


class WorkRequestRepository(Protocol):
    def create(
        self,
        *,
        user_id: int,
        type: RequestType,
        start_date: date,
        end_date: date,
        is_half_day: bool,
        reason: str,
    ) -> int:
        raise NotImplementedError

    def get_by_id(self, request_id: int) -> Optional[WorkRequest]:
        raise NotImplementedError

    def update(
        self,
        *,
        request_id: int,
        type: RequestType,
        start_date: date,
        end_date: date,
        is_half_day: bool,
        reason: str,
    ) -> bool:
        """Only while PENDING."""

        raise NotImplementedError

    def soft_delete(self, *, request_id: int) -> bool:
        """Only while PENDING."""

        raise NotImplementedError

    def decide(
        self,
        *,
        request_id: int,
        status: RequestStatus,
        approver_id: int,
        rejection_reason: Optional[str] = None,
    ) -> bool:
        """Compare-and-set from PENDING."""

        raise NotImplementedError

    def list_by_user(
        self,
        user_id: int,
        *,
        status: Optional[RequestStatus] = None,
        type: Optional[RequestType] = None,
    ) -> Sequence[WorkRequest]:
        raise NotImplementedError

    def list_pending(self, *, team_ids: Optional[Sequence[int]] = None) -> Sequence[WorkRequest]:
        raise NotImplementedError

    def list_approved_in_range(self, user_ids: Sequence[int], *, start: date, end: date) -> Sequence[WorkRequest]:
        """Approved requests overlapping [start, end]."""

        raise NotImplementedError
