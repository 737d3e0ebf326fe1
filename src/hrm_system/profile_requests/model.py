from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from ..core.enums import RequestStatus
from ..users.model import to_camel


@dataclass(frozen=True)
class ProfileUpdateRequest:
    """A pending profile diff.

    `data_changes` holds the requested values and `previous_data` the values of
    the same fields when the request was made, both keyed by profile column
    with dates as ISO strings.
    """

    request_id: int
    user_id: int
    status: RequestStatus
    data_changes: dict[str, Any] = field(default_factory=dict)
    previous_data: dict[str, Any] = field(default_factory=dict)
    reviewer_id: Optional[int] = None
    rejection_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    full_name: Optional[str] = None
    reviewer_name: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.request_id,
            "userId": self.user_id,
            "fullName": self.full_name,
            "status": self.status.value,
            "dataChanges": {to_camel(k): v for k, v in self.data_changes.items()},
            "previousData": {to_camel(k): v for k, v in self.previous_data.items()},
            "reviewerId": self.reviewer_id,
            "reviewerName": self.reviewer_name,
            "rejectionReason": self.rejection_reason,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
