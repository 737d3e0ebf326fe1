from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..common.validators import require_length
from ..competencies.repository import CompetencyRepository
from ..core.constants import TEMPLATE_SELF_ASSESSMENT_SUBMITTED
from ..core.enums import AssessmentStatus, CycleStatus, Role
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..emails.service import EmailService
from ..teams.repository import TeamRepository
from ..users.repository import UserRepository
from .model import AssessmentDetail, ScoreEntry, UserAssessment
from .repository import AssessmentRepository, CycleRepository
from .scoring import ScoreAggregator
from .workflow import Actor, StatusTransitionController

logger = logging.getLogger(__name__)

FEEDBACK_MAX_LENGTH = 2000


class AssessmentService:
    """Use cases: scoring, submitting and reviewing user assessments."""

    def __init__(
        self,
        assessments: AssessmentRepository,
        cycles: CycleRepository,
        users: UserRepository,
        teams: TeamRepository,
        competencies: CompetencyRepository,
        emails: EmailService,
        *,
        app_url: str = "",
        controller: Optional[StatusTransitionController] = None,
        aggregator: Optional[ScoreAggregator] = None,
    ):
        self._assessments = assessments
        self._cycles = cycles
        self._users = users
        self._teams = teams
        self._competencies = competencies
        self._emails = emails
        self._app_url = (app_url or "").rstrip("/")
        self._controller = controller or StatusTransitionController()
        self._aggregator = aggregator or ScoreAggregator()

    # -------- helpers --------
    def _get(self, assessment_id: int) -> UserAssessment:
        assessment = self._assessments.get_by_id(int(assessment_id))
        if not assessment:
            raise NotFoundError("Assessment not found")
        return assessment

    def _leader_of(self, user_id: int) -> Optional[int]:
        owner = self._users.get_by_id(user_id)
        if not owner or owner.team_id is None:
            return None
        team = self._teams.get_by_id(owner.team_id)
        return team.leader_id if team else None

    def _reviewer_of(self, assessment: UserAssessment) -> Optional[int]:
        """The owner's team leader, or None when there is none besides the owner."""
        leader_id = self._leader_of(assessment.user_id)
        if leader_id is None or leader_id == assessment.user_id:
            return None
        return leader_id

    def _actor(self, assessment: UserAssessment, *, current_user_id: int, current_role: Role) -> Actor:
        is_owner = assessment.user_id == int(current_user_id)
        reviewer_id = self._reviewer_of(assessment)
        if is_owner:
            reviews = False
        elif reviewer_id is None:
            # ADMIN/HR stand in for a missing leader
            reviews = current_role.is_manager
        else:
            reviews = reviewer_id == int(current_user_id)
        return Actor(user_id=int(current_user_id), role=current_role, is_owner=is_owner, is_team_leader=reviews)

    def _require_view(self, actor: Actor) -> None:
        if not (actor.is_owner or actor.is_team_leader or actor.role.is_manager):
            raise AuthorizationError("You are not allowed to view this assessment")

    def _require_open_cycle(self, assessment: UserAssessment) -> None:
        cycle = self._cycles.get_by_id(assessment.cycle_id)
        if cycle and cycle.status == CycleStatus.COMPLETED:
            raise ConflictError("The assessment cycle is completed; scores are locked")

    def _detail_row(self, d: AssessmentDetail, levels: dict[int, list[dict]]) -> dict:
        return {
            "id": d.detail_id,
            "competencyId": d.competency_id,
            "competencyName": d.competency_name,
            "groupId": d.group_id,
            "groupName": d.group_name,
            "requiredLevel": d.required_level,
            "selfLevel": d.self_level,
            "leaderLevel": d.leader_level,
            "finalLevel": d.final_level,
            "gap": self._aggregator.gap(d),
            "note": d.note,
            "levels": levels.get(d.competency_id, []),
        }

    def _view(self, assessment: UserAssessment, actor: Actor) -> dict:
        details = list(self._assessments.list_details(assessment.assessment_id))
        levels = {c.competency_id: c.to_dict()["levels"] for c in self._competencies.list_competencies()}
        phase = self._controller.phase_for(assessment.status)
        can_edit = phase.level_field is not None and phase.can_write(actor)
        return {
            **assessment.to_dict(),
            "details": [self._detail_row(d, levels) for d in details],
            "stats": self._aggregator.summarize(details).to_dict(),
            "radar": [g.to_dict() for g in self._aggregator.group_scores(details)],
            "permissions": {
                "canEdit": can_edit,
                "editableField": phase.level_field if can_edit else None,
                "canSubmit": can_edit,
            },
        }

    # -------- reads --------
    def get_assessment(self, *, current_user_id: int, current_role: Role, assessment_id: int) -> dict:
        assessment = self._get(assessment_id)
        actor = self._actor(assessment, current_user_id=current_user_id, current_role=current_role)
        self._require_view(actor)
        return self._view(assessment, actor)

    def get_my_assessment(self, *, current_user_id: int, current_role: Role, cycle_id: Optional[int] = None) -> Optional[dict]:
        if cycle_id is None:
            cycle = self._cycles.get_active()
            if not cycle:
                return None
            cycle_id = cycle.cycle_id
        assessment = self._assessments.find_for_user(user_id=int(current_user_id), cycle_id=int(cycle_id))
        if not assessment:
            return None
        actor = self._actor(assessment, current_user_id=current_user_id, current_role=current_role)
        return self._view(assessment, actor)

    def my_history(self, *, current_user_id: int) -> list[UserAssessment]:
        return list(self._assessments.list_by_user(int(current_user_id)))

    def list_cycle_assessments(self, *, current_role: Role, cycle_id: int) -> list[UserAssessment]:
        if not current_role.is_manager:
            raise AuthorizationError("Only ADMIN or HR can list all assessments of a cycle")
        if not self._cycles.get_by_id(int(cycle_id)):
            raise NotFoundError("Assessment cycle not found")
        return list(self._assessments.list_by_cycle(int(cycle_id)))

    def _led_member_ids(self, current_user_id: int) -> list[int]:
        teams = self._teams.list_led_by(int(current_user_id))
        if not teams:
            raise AuthorizationError("You do not lead any team")
        ids: list[int] = []
        for team in teams:
            ids.extend(u.user_id for u in self._users.list_by_team(team.team_id) if u.user_id != int(current_user_id))
        return ids

    def team_assessments(self, *, current_user_id: int, cycle_id: Optional[int] = None) -> list[UserAssessment]:
        member_ids = self._led_member_ids(current_user_id)
        if not member_ids:
            return []
        return list(self._assessments.list_by_users(member_ids, cycle_id=cycle_id))

    def team_radar(self, *, current_user_id: int, cycle_id: Optional[int] = None) -> list[dict]:
        """Group subscores averaged over each member's latest DONE assessment."""
        latest: dict[int, UserAssessment] = {}
        for a in self.team_assessments(current_user_id=current_user_id, cycle_id=cycle_id):
            if a.status != AssessmentStatus.DONE:
                continue
            kept = latest.get(a.user_id)
            if kept is None or (a.cycle_id, a.assessment_id) > (kept.cycle_id, kept.assessment_id):
                latest[a.user_id] = a
        assessments = list(latest.values())
        if not assessments:
            return []
        details = self._assessments.list_details_for([a.assessment_id for a in assessments])
        return self._aggregator.team_group_scores([details.get(a.assessment_id, []) for a in assessments])

    def gap_report(
        self,
        *,
        current_user_id: int,
        current_role: Role,
        cycle_id: Optional[int] = None,
        team_id: Optional[int] = None,
    ) -> dict:
        """Gap analysis over DONE assessments; leaders only see teams they lead."""
        if not current_role.is_manager:
            led = [t.team_id for t in self._teams.list_led_by(int(current_user_id))]
            if not led:
                raise AuthorizationError("You are not allowed to view the gap report")
            if team_id is None:
                team_id = led[0]
            elif int(team_id) not in led:
                raise AuthorizationError("You can only view the gap report of your own team")

        assessments = list(
            self._assessments.list_for_report(status=AssessmentStatus.DONE, cycle_id=cycle_id, team_id=team_id)
        )
        details = self._assessments.list_details_for([a.assessment_id for a in assessments]) if assessments else {}
        report = self._aggregator.gap_report([(a, details.get(a.assessment_id, [])) for a in assessments])
        report["filters"] = {"cycleId": cycle_id, "teamId": team_id}
        return report

    # -------- writes --------
    def save_scores(
        self,
        *,
        current_user_id: int,
        current_role: Role,
        assessment_id: int,
        entries: Sequence[ScoreEntry],
        feedback: Optional[str] = None,
        submit: bool = False,
    ) -> dict:
        """Write the current phase's level column; optionally advance to the next status."""
        assessment = self._get(assessment_id)
        self._require_open_cycle(assessment)
        actor = self._actor(assessment, current_user_id=current_user_id, current_role=current_role)
        phase = self._controller.authorize_write(assessment, actor)

        details = list(self._assessments.list_details(assessment.assessment_id))
        text = None
        if feedback is not None:
            if assessment.status != AssessmentStatus.DISCUSSION:
                raise ValidationError("Feedback can only be given during discussion")
            text = require_length(feedback, "Feedback", 1, FEEDBACK_MAX_LENGTH)
        entries = self._controller.validate_entries(details, entries)
        if entries:
            saved = self._assessments.save_levels(
                assessment_id=assessment.assessment_id,
                expected_status=assessment.status,
                level_field=phase.level_field,
                entries=entries,
            )
            if not saved:
                raise ConflictError("Assessment status changed, please reload")

        if text is not None:
            if not self._assessments.set_feedback(
                assessment_id=assessment.assessment_id,
                expected_status=assessment.status,
                feedback=text,
            ):
                raise ConflictError("Assessment status changed, please reload")

        if submit:
            assessment = self._advance(assessment)
        return self._view(self._get(assessment.assessment_id), actor)

    def submit(self, *, current_user_id: int, current_role: Role, assessment_id: int) -> dict:
        return self.save_scores(
            current_user_id=current_user_id,
            current_role=current_role,
            assessment_id=assessment_id,
            entries=[],
            submit=True,
        )

    def _advance(self, assessment: UserAssessment) -> UserAssessment:
        details = list(self._assessments.list_details(assessment.assessment_id))
        to_status = self._controller.next_status(assessment, details)
        summary = self._aggregator.summarize(details)
        moved = self._assessments.advance_status(
            assessment_id=assessment.assessment_id,
            from_status=assessment.status,
            to_status=to_status,
            self_score_avg=summary.self_avg,
            leader_score_avg=summary.leader_avg,
            final_score_avg=summary.final_avg,
        )
        if not moved:
            raise ConflictError("Assessment status changed, please reload")

        logger.info(
            "assessment %s moved %s -> %s",
            assessment.assessment_id,
            assessment.status.value,
            to_status.value,
        )
        if to_status == AssessmentStatus.LEADER_ASSESSING:
            self._notify_leader(assessment)
        return self._get(assessment.assessment_id)

    def _notify_leader(self, assessment: UserAssessment) -> None:
        leader_id = self._reviewer_of(assessment)
        leader = self._users.get_by_id(leader_id) if leader_id else None
        if not leader:
            logger.info("assessment %s submitted with no team leader; ADMIN/HR review it", assessment.assessment_id)
            return
        owner = self._users.get_by_id(assessment.user_id)
        self._emails.send_system(
            template_code=TEMPLATE_SELF_ASSESSMENT_SUBMITTED,
            recipient_email=leader.email,
            values={
                "fullName": leader.full_name,
                "employeeName": owner.full_name if owner else "",
                "cycleName": assessment.cycle_name or "",
                "link": f"{self._app_url}/assessments/{assessment.assessment_id}",
            },
        )
