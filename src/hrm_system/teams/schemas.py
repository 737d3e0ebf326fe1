from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class TeamCreate(BaseModel):
    teamName: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None
    leaderId: Optional[int] = None


class TeamUpdate(BaseModel):
    teamName: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None


class MemberBody(BaseModel):
    userId: int
