from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from ..core.enums import Role, UserStatus


class UserCreate(BaseModel):
    employeeCode: str = Field(min_length=1, max_length=50)
    email: str = Field(min_length=3, max_length=150)
    password: str = Field(min_length=8)
    fullName: str = Field(min_length=1, max_length=150)
    roleName: Role = Role.DEV
    phone: Optional[str] = Field(default=None, max_length=20)
    teamId: Optional[int] = None
    careerBandId: Optional[int] = None


class UserUpdate(BaseModel):
    email: Optional[str] = Field(default=None, min_length=3, max_length=150)
    fullName: Optional[str] = Field(default=None, min_length=1, max_length=150)
    phone: Optional[str] = Field(default=None, max_length=20)
    roleName: Optional[Role] = None
    status: Optional[UserStatus] = None
    teamId: Optional[int] = None
    careerBandId: Optional[int] = None

    def to_changes(self) -> dict:
        mapping = {
            "email": "email",
            "fullName": "full_name",
            "phone": "phone",
            "roleName": "role",
            "status": "status",
            "teamId": "team_id",
            "careerBandId": "career_band_id",
        }
        sent = self.model_dump(exclude_unset=True)
        return {mapping[k]: v for k, v in sent.items()}


class UserQuery(BaseModel):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)
    status: Optional[UserStatus] = None
    teamId: Optional[int] = None
    roleName: Optional[Role] = None
    search: Optional[str] = None
