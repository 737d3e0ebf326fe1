from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class TimesheetQuery(BaseModel):
    month: int = Field(ge=1, le=12)
    year: int = Field(ge=2000, le=2100)
    userId: Optional[int] = None


class TeamTimesheetQuery(BaseModel):
    month: int = Field(ge=1, le=12)
    year: int = Field(ge=2000, le=2100)
    teamId: Optional[int] = None


class HolidayQuery(BaseModel):
    year: int = Field(ge=2000, le=2100)
