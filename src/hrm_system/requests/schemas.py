from __future__ import annotations

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field

from ..core.enums import RequestStatus, RequestType
from .service import RequestDraft


class RequestBody(BaseModel):
    type: RequestType
    startDate: date
    endDate: date
    reason: str = Field(max_length=500)
    isHalfDay: bool = False

    def to_draft(self) -> RequestDraft:
        return RequestDraft(
            type=self.type,
            start_date=self.startDate,
            end_date=self.endDate,
            reason=self.reason,
            is_half_day=self.isHalfDay,
        )


class RejectBody(BaseModel):
    rejectionReason: str


class RequestQuery(BaseModel):
    status: Optional[RequestStatus] = None
    type: Optional[RequestType] = None
