from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Role, VerificationType


@dataclass(frozen=True)
class Session:
    """Authenticated caller resolved from the bearer token of one request."""

    user_id: int
    email: str
    role: Role
    full_name: str
    team_id: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "id": self.user_id,
            "email": self.email,
            "roleName": self.role.value,
            "fullName": self.full_name,
            "teamId": self.team_id,
        }


@dataclass(frozen=True)
class VerificationToken:
    token_id: int
    user_id: int
    token: str
    type: VerificationType
    expires_at: datetime
    deleted_at: Optional[datetime] = None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at < now
