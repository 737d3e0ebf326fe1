from __future__ import annotations

from datetime import date
from typing import Mapping, Optional, Protocol, Sequence

from ..core.enums import AssessmentStatus, CycleStatus
from .model import AssessmentCycle, AssessmentDetail, ScoreEntry, UserAssessment


class CycleRepository(Protocol):
    def create(self, *, name: str, start_date: date, end_date: date) -> int:
        raise NotImplementedError

    def get_by_id(self, cycle_id: int) -> Optional[AssessmentCycle]:
        raise NotImplementedError

    def list_cycles(self, *, status: Optional[CycleStatus] = None) -> Sequence[AssessmentCycle]:
        raise NotImplementedError

    def get_active(self) -> Optional[AssessmentCycle]:
        raise NotImplementedError

    def update(self, *, cycle_id: int, name: str, start_date: date, end_date: date) -> bool:
        raise NotImplementedError

    def set_status(self, *, cycle_id: int, from_status: CycleStatus, to_status: CycleStatus) -> bool:
        """Compare-and-set. Moving to ACTIVE also fails while another cycle is ACTIVE."""

        raise NotImplementedError

    def delete(self, *, cycle_id: int) -> bool:
        raise NotImplementedError


class AssessmentRepository(Protocol):
    def create_with_details(self, *, user_id: int, cycle_id: int, requirements: Mapping[int, int]) -> Optional[int]:
        """Insert the assessment and one detail row per (competency -> required level).

        One transaction. Returns None when the user already has an assessment in the cycle.
        """

        raise NotImplementedError

    def get_by_id(self, assessment_id: int) -> Optional[UserAssessment]:
        raise NotImplementedError

    def find_for_user(self, *, user_id: int, cycle_id: int) -> Optional[UserAssessment]:
        raise NotImplementedError

    def list_details(self, assessment_id: int) -> Sequence[AssessmentDetail]:
        raise NotImplementedError

    def list_details_for(self, assessment_ids: Sequence[int]) -> Mapping[int, Sequence[AssessmentDetail]]:
        raise NotImplementedError

    def save_levels(
        self,
        *,
        assessment_id: int,
        expected_status: AssessmentStatus,
        level_field: str,
        entries: Sequence[ScoreEntry],
    ) -> bool:
        """Write one level column for the given rows, only while the status still matches."""

        raise NotImplementedError

    def set_feedback(self, *, assessment_id: int, expected_status: AssessmentStatus, feedback: Optional[str]) -> bool:
        raise NotImplementedError

    def advance_status(
        self,
        *,
        assessment_id: int,
        from_status: AssessmentStatus,
        to_status: AssessmentStatus,
        self_score_avg: Optional[float],
        leader_score_avg: Optional[float],
        final_score_avg: Optional[float],
    ) -> bool:
        """Compare-and-set on the status, storing the averages. Reaching DONE also stores row gaps."""

        raise NotImplementedError

    def list_by_cycle(self, cycle_id: int) -> Sequence[UserAssessment]:
        raise NotImplementedError

    def list_by_user(self, user_id: int) -> Sequence[UserAssessment]:
        raise NotImplementedError

    def list_by_users(self, user_ids: Sequence[int], *, cycle_id: Optional[int] = None) -> Sequence[UserAssessment]:
        raise NotImplementedError

    def list_for_report(
        self,
        *,
        status: AssessmentStatus,
        cycle_id: Optional[int] = None,
        team_id: Optional[int] = None,
    ) -> Sequence[UserAssessment]:
        raise NotImplementedError

    def count_by_status(self, cycle_id: int) -> Mapping[str, int]:
        raise NotImplementedError

    def count_for_cycle(self, cycle_id: int) -> int:
        raise NotImplementedError
