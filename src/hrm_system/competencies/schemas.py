from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from .model import CompetencyLevel


class GroupBody(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None


class LevelBody(BaseModel):
    levelNumber: int = Field(ge=1, le=5)
    behavioralIndicator: str = Field(min_length=1)


class CompetencyBody(BaseModel):
    groupId: int
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    levels: list[LevelBody] = Field(min_length=5, max_length=5)

    def level_models(self) -> list[CompetencyLevel]:
        return [
            CompetencyLevel(level_number=lv.levelNumber, behavioral_indicator=lv.behavioralIndicator)
            for lv in self.levels
        ]


class RequirementBody(BaseModel):
    careerBandId: int
    competencyId: int
    requiredLevel: Optional[int] = Field(default=None, ge=1, le=5)


class BulkRequirementBody(BaseModel):
    requirements: list[RequirementBody] = Field(min_length=1)
