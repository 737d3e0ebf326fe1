from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Team:
    team_id: int
    team_name: str
    description: Optional[str] = None
    leader_id: Optional[int] = None
    leader_name: Optional[str] = None
    member_count: int = 0
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.team_id,
            "teamName": self.team_name,
            "description": self.description,
            "leaderId": self.leader_id,
            "leaderName": self.leader_name,
            "memberCount": self.member_count,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
