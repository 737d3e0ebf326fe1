from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence

from ..core.enums import RequestStatus
from .model import ProfileUpdateRequest


class ProfileRequestRepository(Protocol):
    def create(self, *, user_id: int, data_changes: Mapping[str, Any], previous_data: Mapping[str, Any]) -> int:
        raise NotImplementedError

    def get_by_id(self, request_id: int) -> Optional[ProfileUpdateRequest]:
        raise NotImplementedError

    def find_pending_for_user(self, user_id: int) -> Optional[ProfileUpdateRequest]:
        raise NotImplementedError

    def list_requests(
        self,
        *,
        status: Optional[RequestStatus] = None,
        user_id: Optional[int] = None,
    ) -> Sequence[ProfileUpdateRequest]:
        raise NotImplementedError

    def approve(self, *, request_id: int, reviewer_id: int, profile_changes: Mapping[str, Any]) -> bool:
        """Apply the profile changes and mark APPROVED in one transaction; False if no longer PENDING."""

        raise NotImplementedError

    def reject(self, *, request_id: int, reviewer_id: int, rejection_reason: str) -> bool:
        raise NotImplementedError
