"""Status Transition Controller for user assessments.

SELF_ASSESSING -> LEADER_ASSESSING -> DISCUSSION -> DONE. Each phase decides
who may write which level column and what must be filled before advancing.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Sequence

from ..common.validators import require_level
from ..core.enums import AssessmentStatus, Role
from ..core.exceptions import AuthorizationError, IncompleteDataError, ValidationError
from .model import AssessmentDetail, ScoreEntry, UserAssessment


@dataclass(frozen=True)
class Actor:
    user_id: int
    role: Role
    is_owner: bool = False
    is_team_leader: bool = False


class AssessmentPhase(ABC):
    """Strategy Pattern: one phase of the assessment workflow."""

    status: AssessmentStatus
    level_field: Optional[str] = None
    next_status: Optional[AssessmentStatus] = None

    @abstractmethod
    def can_write(self, actor: Actor) -> bool:
        raise NotImplementedError

    def level_of(self, detail: AssessmentDetail) -> Optional[int]:
        if self.level_field is None:
            return None
        return getattr(detail, self.level_field)

    def missing(self, details: Sequence[AssessmentDetail]) -> list[int]:
        return [d.competency_id for d in details if self.level_of(d) is None]


class SelfAssessingPhase(AssessmentPhase):
    status = AssessmentStatus.SELF_ASSESSING
    level_field = "self_level"
    next_status = AssessmentStatus.LEADER_ASSESSING

    def can_write(self, actor: Actor) -> bool:
        return actor.is_owner


class LeaderAssessingPhase(AssessmentPhase):
    status = AssessmentStatus.LEADER_ASSESSING
    level_field = "leader_level"
    next_status = AssessmentStatus.DISCUSSION

    def can_write(self, actor: Actor) -> bool:
        return actor.is_team_leader


class DiscussionPhase(AssessmentPhase):
    status = AssessmentStatus.DISCUSSION
    level_field = "final_level"
    next_status = AssessmentStatus.DONE

    def can_write(self, actor: Actor) -> bool:
        return actor.is_team_leader or (actor.role.is_manager and not actor.is_owner)


class DonePhase(AssessmentPhase):
    status = AssessmentStatus.DONE

    def can_write(self, actor: Actor) -> bool:
        return False


_PHASES: dict[AssessmentStatus, AssessmentPhase] = {
    p.status: p for p in (SelfAssessingPhase(), LeaderAssessingPhase(), DiscussionPhase(), DonePhase())
}


class StatusTransitionController:
    """Gatekeeper for score writes and status advances."""

    def phase_for(self, status: AssessmentStatus) -> AssessmentPhase:
        return _PHASES[status]

    def authorize_write(self, assessment: UserAssessment, actor: Actor) -> AssessmentPhase:
        phase = self.phase_for(assessment.status)
        if phase.level_field is None:
            raise AuthorizationError("Assessment is completed; scores can no longer be changed")
        if not phase.can_write(actor):
            raise AuthorizationError(f"You are not allowed to edit scores while the assessment is {assessment.status.value}")
        return phase

    def validate_entries(self, details: Sequence[AssessmentDetail], entries: Sequence[ScoreEntry]) -> list[ScoreEntry]:
        known = {d.competency_id for d in details}
        seen: set[int] = set()
        out = []
        for e in entries:
            if e.competency_id not in known:
                raise ValidationError(f"Competency {e.competency_id} is not part of this assessment")
            if e.competency_id in seen:
                raise ValidationError(f"Competency {e.competency_id} is scored twice")
            seen.add(e.competency_id)
            require_level(e.level, f"Level of competency {e.competency_id}")
            note = (e.note or "").strip() or None
            out.append(ScoreEntry(competency_id=e.competency_id, level=e.level, note=note))
        return out

    def next_status(self, assessment: UserAssessment, details: Sequence[AssessmentDetail]) -> AssessmentStatus:
        """Status to advance to; raises when the current phase still has empty rows."""
        phase = self.phase_for(assessment.status)
        if phase.next_status is None:
            raise AuthorizationError("Assessment is already completed")
        missing = phase.missing(details)
        if missing:
            ids = ", ".join(str(x) for x in missing)
            raise IncompleteDataError(
                f"Cannot leave {assessment.status.value}: missing scores for competencies {ids}",
                missing=missing,
            )
        return phase.next_status
