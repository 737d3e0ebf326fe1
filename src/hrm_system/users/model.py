from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import date, datetime
from typing import Optional

from ..core.enums import Role, UserStatus


@dataclass(frozen=True)
class User:
    """Domain entity: employee account joined with its profile name.

    Note: plain data object, no DB access here.
    """

    user_id: int
    employee_code: str
    email: str
    password_hash: str
    role: Role
    status: UserStatus
    full_name: str = ""
    phone: Optional[str] = None
    team_id: Optional[int] = None
    career_band_id: Optional[int] = None
    created_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE

    def to_dict(self) -> dict:
        return {
            "id": self.user_id,
            "employeeCode": self.employee_code,
            "email": self.email,
            "phone": self.phone,
            "roleName": self.role.value,
            "status": self.status.value,
            "fullName": self.full_name,
            "teamId": self.team_id,
            "careerBandId": self.career_band_id,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class Profile:
    user_id: int
    full_name: str
    dob: Optional[date] = None
    gender: Optional[str] = None
    id_card_number: Optional[str] = None
    address: Optional[str] = None
    join_date: Optional[date] = None
    union_join_date: Optional[date] = None
    union_position: Optional[str] = None
    avatar_url: Optional[str] = None

    def to_dict(self) -> dict:
        out = {"userId": self.user_id}
        for name in PROFILE_FIELDS:
            v = getattr(self, name)
            out[to_camel(name)] = v.isoformat() if isinstance(v, date) else v
        return out


def to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(p.title() for p in rest)


# Profile columns a user may ask to change
PROFILE_FIELDS = tuple(f.name for f in fields(Profile) if f.name != "user_id")
PROFILE_DATE_FIELDS = ("dob", "join_date", "union_join_date")


@dataclass(frozen=True)
class CareerBand:
    career_band_id: int
    band_name: str
    title: str
    description: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.career_band_id,
            "bandName": self.band_name,
            "title": self.title,
            "description": self.description,
        }
