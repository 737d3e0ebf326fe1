from __future__ import annotations

from datetime import date
from typing import Any, Optional

from pydantic import BaseModel, Field

from ..core.enums import RequestStatus

_COLUMNS = {
    "fullName": "full_name",
    "dob": "dob",
    "gender": "gender",
    "idCardNumber": "id_card_number",
    "address": "address",
    "joinDate": "join_date",
    "unionJoinDate": "union_join_date",
    "unionPosition": "union_position",
    "avatarUrl": "avatar_url",
}


class ProfileChangesBody(BaseModel):
    fullName: Optional[str] = Field(default=None, max_length=150)
    dob: Optional[date] = None
    gender: Optional[str] = Field(default=None, max_length=20)
    idCardNumber: Optional[str] = Field(default=None, max_length=50)
    address: Optional[str] = Field(default=None, max_length=255)
    joinDate: Optional[date] = None
    unionJoinDate: Optional[date] = None
    unionPosition: Optional[str] = Field(default=None, max_length=100)
    avatarUrl: Optional[str] = Field(default=None, max_length=500)

    def to_changes(self) -> dict[str, Any]:
        """Only the fields present in the payload, keyed by profile column."""
        return {_COLUMNS[k]: v for k, v in self.model_dump(exclude_unset=True).items()}


class ReviewQuery(BaseModel):
    status: Optional[RequestStatus] = None


class RejectBody(BaseModel):
    rejectionReason: str
