from __future__ import annotations

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from ..core.enums import CycleStatus
from .model import ScoreEntry


class CycleBody(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    startDate: date
    endDate: date

    @model_validator(mode="after")
    def _check_range(self):
        if self.endDate <= self.startDate:
            raise ValueError("endDate must be after startDate")
        return self


class CycleQuery(BaseModel):
    status: Optional[CycleStatus] = None


class AssignUsersBody(BaseModel):
    userIds: Optional[list[int]] = None


class CreateAssessmentBody(BaseModel):
    userId: int
    cycleId: int


class ScoreBody(BaseModel):
    competencyId: int
    level: int
    note: Optional[str] = Field(default=None, max_length=1000)


class SaveScoresBody(BaseModel):
    scores: list[ScoreBody] = Field(default_factory=list)
    feedback: Optional[str] = None
    submit: bool = False

    def entries(self) -> list[ScoreEntry]:
        return [ScoreEntry(competency_id=s.competencyId, level=s.level, note=s.note) for s in self.scores]


class CycleFilterQuery(BaseModel):
    cycleId: Optional[int] = None


class GapReportQuery(BaseModel):
    cycleId: Optional[int] = None
    teamId: Optional[int] = None
