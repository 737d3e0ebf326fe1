from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import RequestStatus, RequestType, Role


@dataclass(frozen=True)
class WorkRequest:
    request_id: int
    user_id: int
    type: RequestType
    start_date: date
    end_date: date
    reason: str
    status: RequestStatus
    is_half_day: bool = False
    approver_id: Optional[int] = None
    rejection_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    # requester snapshot, joined for approval rules and listings
    full_name: Optional[str] = None
    requester_role: Optional[Role] = None
    team_id: Optional[int] = None
    approver_name: Optional[str] = None

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    def to_dict(self) -> dict:
        return {
            "id": self.request_id,
            "userId": self.user_id,
            "fullName": self.full_name,
            "teamId": self.team_id,
            "type": self.type.value,
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat(),
            "isHalfDay": self.is_half_day,
            "reason": self.reason,
            "status": self.status.value,
            "approverId": self.approver_id,
            "approverName": self.approver_name,
            "rejectionReason": self.rejection_reason,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
