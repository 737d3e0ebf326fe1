from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import now_local, ranges_overlap
from ..common.validators import require_non_empty
from ..competencies.repository import RequirementRepository
from ..competencies.requirements import RequirementsMatrix
from ..core.constants import TEMPLATE_ASSESSMENT_REMINDER, TEMPLATE_CYCLE_STARTED
from ..core.enums import AssessmentStatus, CycleStatus, Role, UserStatus
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..emails.service import EmailService
from ..users.model import User
from ..users.repository import UserRepository
from .model import AssessmentCycle, UserAssessment
from .repository import AssessmentRepository, CycleRepository

logger = logging.getLogger(__name__)


@dataclass
class InstantiationResult:
    created: list[tuple[User, int]] = field(default_factory=list)
    skipped_existing: list[int] = field(default_factory=list)
    skipped_no_requirements: list[int] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "created": len(self.created),
            "assessmentIds": [aid for _, aid in self.created],
            "skippedExisting": self.skipped_existing,
            "skippedNoRequirements": self.skipped_no_requirements,
        }


class AssessmentInstantiator:
    """Creates one assessment per eligible user, seeded from the requirements matrix."""

    def __init__(self, assessments: AssessmentRepository):
        self._assessments = assessments

    def instantiate(self, *, cycle: AssessmentCycle, users: Sequence[User], matrix: RequirementsMatrix) -> InstantiationResult:
        result = InstantiationResult()
        for user in users:
            if user.career_band_id is None:
                result.skipped_no_requirements.append(user.user_id)
                continue
            requirements = matrix.for_band(user.career_band_id)
            if not requirements:
                result.skipped_no_requirements.append(user.user_id)
                continue
            assessment_id = self._assessments.create_with_details(
                user_id=user.user_id,
                cycle_id=cycle.cycle_id,
                requirements=requirements,
            )
            if assessment_id is None:
                result.skipped_existing.append(user.user_id)
            else:
                result.created.append((user, assessment_id))
        return result


class CycleService:
    """Use cases: assessment cycles and assessment creation."""

    def __init__(
        self,
        cycles: CycleRepository,
        assessments: AssessmentRepository,
        users: UserRepository,
        requirements: RequirementRepository,
        emails: EmailService,
        *,
        app_url: str = "",
        clock: Callable = now_local,
    ):
        self._cycles = cycles
        self._assessments = assessments
        self._users = users
        self._requirements = requirements
        self._emails = emails
        self._instantiator = AssessmentInstantiator(assessments)
        self._app_url = (app_url or "").rstrip("/")
        self._clock = clock

    @staticmethod
    def _require_manager(current_role: Role) -> None:
        if not current_role.is_manager:
            raise AuthorizationError("Only ADMIN or HR can manage assessment cycles")

    def _get_cycle(self, cycle_id: int) -> AssessmentCycle:
        cycle = self._cycles.get_by_id(int(cycle_id))
        if not cycle:
            raise NotFoundError("Assessment cycle not found")
        return cycle

    def _matrix(self) -> RequirementsMatrix:
        return RequirementsMatrix(self._requirements.list_all())

    def _link(self, cycle: AssessmentCycle) -> str:
        return f"{self._app_url}/assessments/my?cycleId={cycle.cycle_id}"

    def _notify(self, template_code: str, cycle: AssessmentCycle, user: User) -> None:
        self._emails.send_system(
            template_code=template_code,
            recipient_email=user.email,
            values={
                "fullName": user.full_name,
                "cycleName": cycle.name,
                "endDate": cycle.end_date.isoformat(),
                "link": self._link(cycle),
            },
        )

    @staticmethod
    def _validate_dates(start_date: date, end_date: date) -> None:
        if end_date <= start_date:
            raise ValidationError("End date must be after start date")

    # -------- Cycle Manager --------
    def list_cycles(self, *, status: Optional[CycleStatus] = None) -> list[AssessmentCycle]:
        return list(self._cycles.list_cycles(status=status))

    def get_active_cycle(self) -> Optional[AssessmentCycle]:
        return self._cycles.get_active()

    def get_cycle(self, *, cycle_id: int) -> dict:
        cycle = self._get_cycle(cycle_id)
        counts = dict(self._assessments.count_by_status(cycle.cycle_id))
        return {**cycle.to_dict(), "assessmentCounts": counts, "totalAssessments": sum(counts.values())}

    def create_cycle(self, *, current_role: Role, name: str, start_date: date, end_date: date) -> AssessmentCycle:
        self._require_manager(current_role)
        name = require_non_empty(name, "Cycle name")
        self._validate_dates(start_date, end_date)
        for active in self._cycles.list_cycles(status=CycleStatus.ACTIVE):
            if ranges_overlap(start_date, end_date, active.start_date, active.end_date):
                raise ConflictError(f"Dates overlap the active cycle {active.name}")

        cycle_id = self._cycles.create(name=name, start_date=start_date, end_date=end_date)
        logger.info("assessment cycle %s created (%s)", cycle_id, name)
        return self._get_cycle(cycle_id)

    def update_cycle(
        self,
        *,
        current_role: Role,
        cycle_id: int,
        name: str,
        start_date: date,
        end_date: date,
    ) -> AssessmentCycle:
        self._require_manager(current_role)
        cycle = self._get_cycle(cycle_id)
        if cycle.status == CycleStatus.COMPLETED:
            raise ConflictError("A completed cycle cannot be edited")
        self._validate_dates(start_date, end_date)
        self._cycles.update(
            cycle_id=cycle.cycle_id,
            name=require_non_empty(name, "Cycle name"),
            start_date=start_date,
            end_date=end_date,
        )
        return self._get_cycle(cycle.cycle_id)

    def delete_cycle(self, *, current_role: Role, cycle_id: int) -> None:
        self._require_manager(current_role)
        cycle = self._get_cycle(cycle_id)
        count = self._assessments.count_for_cycle(cycle.cycle_id)
        if count > 0:
            raise ConflictError(f"Cannot delete cycle: it has {count} assessments")
        self._cycles.delete(cycle_id=cycle.cycle_id)

    def activate_cycle(self, *, current_role: Role, cycle_id: int) -> dict:
        """DRAFT -> ACTIVE, then instantiate assessments for every eligible user."""
        self._require_manager(current_role)
        cycle = self._get_cycle(cycle_id)
        if cycle.status == CycleStatus.ACTIVE:
            raise ConflictError("Cycle is already active")
        if cycle.status == CycleStatus.COMPLETED:
            raise ConflictError("A completed cycle cannot be reactivated")

        active = self._cycles.get_active()
        if active and active.cycle_id != cycle.cycle_id:
            raise ConflictError(f"Another cycle is already active: {active.name}")

        if not self._cycles.set_status(cycle_id=cycle.cycle_id, from_status=CycleStatus.DRAFT, to_status=CycleStatus.ACTIVE):
            raise ConflictError("Cycle could not be activated; another cycle may have been activated meanwhile")

        cycle = self._get_cycle(cycle.cycle_id)
        result = self._instantiator.instantiate(
            cycle=cycle,
            users=self._users.list_active_with_band(),
            matrix=self._matrix(),
        )
        for user, _ in result.created:
            self._notify(TEMPLATE_CYCLE_STARTED, cycle, user)

        logger.info(
            "cycle %s activated: %s assessments created, %s skipped",
            cycle.cycle_id,
            len(result.created),
            len(result.skipped_existing) + len(result.skipped_no_requirements),
        )
        return {"cycle": cycle.to_dict(), **result.to_dict()}

    def complete_cycle(self, *, current_role: Role, cycle_id: int) -> AssessmentCycle:
        self._require_manager(current_role)
        cycle = self._get_cycle(cycle_id)
        if cycle.status != CycleStatus.ACTIVE:
            raise ConflictError("Only an active cycle can be completed")
        if not self._cycles.set_status(cycle_id=cycle.cycle_id, from_status=CycleStatus.ACTIVE, to_status=CycleStatus.COMPLETED):
            raise ConflictError("Cycle status changed, please reload")
        return self._get_cycle(cycle.cycle_id)

    def remind_pending(self, *, current_role: Role, cycle_id: int) -> int:
        """Email every participant still in SELF_ASSESSING; returns how many were sent."""
        self._require_manager(current_role)
        cycle = self._get_cycle(cycle_id)
        if cycle.status != CycleStatus.ACTIVE:
            raise ConflictError("Reminders can only be sent for an active cycle")

        sent = 0
        for a in self._assessments.list_by_cycle(cycle.cycle_id):
            if a.status != AssessmentStatus.SELF_ASSESSING:
                continue
            user = self._users.get_by_id(a.user_id)
            if not user:
                continue
            self._notify(TEMPLATE_ASSESSMENT_REMINDER, cycle, user)
            sent += 1
        return sent

    # -------- Assessment Instantiator entry points --------
    def assign_users(self, *, current_role: Role, cycle_id: int, user_ids: Optional[Sequence[int]] = None) -> dict:
        """Add assessments to an active cycle for the given users (default: all eligible)."""
        self._require_manager(current_role)
        cycle = self._get_cycle(cycle_id)
        if cycle.status != CycleStatus.ACTIVE:
            raise ConflictError("Users can only be assigned to an active cycle")

        eligible = self._users.list_active_with_band()
        if user_ids is not None:
            wanted = {int(x) for x in user_ids}
            eligible = [u for u in eligible if u.user_id in wanted]

        result = self._instantiator.instantiate(cycle=cycle, users=eligible, matrix=self._matrix())
        for user, _ in result.created:
            self._notify(TEMPLATE_CYCLE_STARTED, cycle, user)
        return result.to_dict()

    def _create_for(self, cycle: AssessmentCycle, user: User) -> UserAssessment:
        if user.career_band_id is None:
            raise ValidationError("User has no career band")
        requirements = self._matrix().for_band(user.career_band_id)
        if not requirements:
            raise ValidationError("No competency requirements are defined for the user's career band")

        assessment_id = self._assessments.create_with_details(
            user_id=user.user_id,
            cycle_id=cycle.cycle_id,
            requirements=requirements,
        )
        if assessment_id is None:
            raise ConflictError("An assessment already exists for this user in this cycle")
        assessment = self._assessments.get_by_id(assessment_id)
        if not assessment:
            raise NotFoundError("Assessment not found")
        return assessment

    def create_user_assessment(self, *, current_role: Role, user_id: int, cycle_id: int) -> UserAssessment:
        self._require_manager(current_role)
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found")
        cycle = self._get_cycle(cycle_id)
        if cycle.status == CycleStatus.COMPLETED:
            raise ConflictError("Cannot add assessments to a completed cycle")
        return self._create_for(cycle, user)

    def start_my_assessment(self, *, current_user_id: int) -> UserAssessment:
        user = self._users.get_by_id(int(current_user_id))
        if not user or user.status != UserStatus.ACTIVE:
            raise NotFoundError("User not found")
        cycle = self._cycles.get_active()
        if not cycle:
            raise NotFoundError("There is no active assessment cycle")
        return self._create_for(cycle, user)
