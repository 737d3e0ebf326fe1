from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class CompetencyGroup:
    group_id: int
    name: str
    description: Optional[str] = None
    competency_count: int = 0
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.group_id,
            "name": self.name,
            "description": self.description,
            "competencyCount": self.competency_count,
        }


@dataclass(frozen=True)
class CompetencyLevel:
    level_number: int
    behavioral_indicator: str

    def to_dict(self) -> dict:
        return {"levelNumber": self.level_number, "behavioralIndicator": self.behavioral_indicator}


@dataclass(frozen=True)
class Competency:
    competency_id: int
    group_id: int
    name: str
    description: Optional[str] = None
    group_name: Optional[str] = None
    levels: tuple[CompetencyLevel, ...] = ()

    def to_dict(self) -> dict:
        return {
            "id": self.competency_id,
            "groupId": self.group_id,
            "groupName": self.group_name,
            "name": self.name,
            "description": self.description,
            "levels": [lv.to_dict() for lv in sorted(self.levels, key=lambda x: x.level_number)],
        }


@dataclass(frozen=True)
class Requirement:
    career_band_id: int
    competency_id: int
    required_level: int
