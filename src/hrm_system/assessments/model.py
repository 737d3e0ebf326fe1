from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AssessmentStatus, CycleStatus


@dataclass(frozen=True)
class AssessmentCycle:
    cycle_id: int
    name: str
    start_date: date
    end_date: date
    status: CycleStatus
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.cycle_id,
            "name": self.name,
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat(),
            "status": self.status.value,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class UserAssessment:
    """One per (user, cycle); never hard-deleted."""

    assessment_id: int
    user_id: int
    cycle_id: int
    status: AssessmentStatus
    self_score_avg: Optional[float] = None
    leader_score_avg: Optional[float] = None
    final_score_avg: Optional[float] = None
    feedback: Optional[str] = None
    created_at: Optional[datetime] = None
    full_name: Optional[str] = None
    cycle_name: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.assessment_id,
            "userId": self.user_id,
            "fullName": self.full_name,
            "cycleId": self.cycle_id,
            "cycleName": self.cycle_name,
            "status": self.status.value,
            "selfScoreAvg": self.self_score_avg,
            "leaderScoreAvg": self.leader_score_avg,
            "finalScoreAvg": self.final_score_avg,
            "feedback": self.feedback,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class AssessmentDetail:
    """One row per competency required for the user's band when the assessment was created.

    `required_level` is a snapshot of the requirements matrix at that moment.
    """

    detail_id: int
    assessment_id: int
    competency_id: int
    required_level: int
    self_level: Optional[int] = None
    leader_level: Optional[int] = None
    final_level: Optional[int] = None
    note: Optional[str] = None
    competency_name: Optional[str] = None
    group_id: Optional[int] = None
    group_name: Optional[str] = None

    @property
    def achieved_level(self) -> Optional[int]:
        # final once reconciled, self before that
        return self.final_level if self.final_level is not None else self.self_level


@dataclass(frozen=True)
class ScoreEntry:
    competency_id: int
    level: int
    note: Optional[str] = None
