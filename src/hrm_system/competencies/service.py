from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

from ..common.validators import require_level, require_non_empty
from ..core.constants import MAX_LEVEL, MIN_LEVEL
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..users.repository import CareerBandRepository
from .model import Competency, CompetencyGroup, CompetencyLevel
from .repository import CompetencyRepository, RequirementRepository
from .requirements import RequirementsMatrix

logger = logging.getLogger(__name__)


def validate_levels(levels: Sequence[CompetencyLevel]) -> list[CompetencyLevel]:
    """Exactly one level for each number 1..5, each with a behavioral indicator."""
    expected = set(range(MIN_LEVEL, MAX_LEVEL + 1))
    numbers = [lv.level_number for lv in levels]
    if len(numbers) != len(expected) or set(numbers) != expected:
        raise ValidationError(f"A competency must define exactly levels {MIN_LEVEL}-{MAX_LEVEL}, each once")
    out = []
    for lv in sorted(levels, key=lambda x: x.level_number):
        indicator = require_non_empty(lv.behavioral_indicator, f"Behavioral indicator of level {lv.level_number}")
        out.append(CompetencyLevel(level_number=lv.level_number, behavioral_indicator=indicator))
    return out


class CompetencyService:
    """Use cases: competency catalogue and requirements matrix (writes are ADMIN/HR)."""

    def __init__(
        self,
        competencies: CompetencyRepository,
        requirements: RequirementRepository,
        career_bands: CareerBandRepository,
    ):
        self._competencies = competencies
        self._requirements = requirements
        self._bands = career_bands

    @staticmethod
    def _require_manager(current_role: Role) -> None:
        if not current_role.is_manager:
            raise AuthorizationError("Only ADMIN or HR can manage competencies")

    # -------- Groups --------
    def list_groups(self) -> list[CompetencyGroup]:
        return list(self._competencies.list_groups())

    def create_group(self, *, current_role: Role, name: str, description: Optional[str] = None) -> CompetencyGroup:
        self._require_manager(current_role)
        name = require_non_empty(name, "Group name")
        if self._competencies.get_group_by_name(name):
            raise ConflictError("Competency group name already exists")
        group_id = self._competencies.create_group(name=name, description=(description or "").strip() or None)
        return self._get_group(group_id)

    def update_group(
        self,
        *,
        current_role: Role,
        group_id: int,
        name: str,
        description: Optional[str] = None,
    ) -> CompetencyGroup:
        self._require_manager(current_role)
        group = self._get_group(group_id)
        name = require_non_empty(name, "Group name")
        other = self._competencies.get_group_by_name(name)
        if other and other.group_id != group.group_id:
            raise ConflictError("Competency group name already exists")
        self._competencies.update_group(group_id=group.group_id, name=name, description=(description or "").strip() or None)
        return self._get_group(group.group_id)

    def delete_group(self, *, current_role: Role, group_id: int) -> None:
        self._require_manager(current_role)
        group = self._get_group(group_id)
        if group.competency_count > 0:
            raise ConflictError(f"Cannot delete group: it contains {group.competency_count} competencies")
        self._competencies.delete_group(group_id=group.group_id)

    def _get_group(self, group_id: int) -> CompetencyGroup:
        group = self._competencies.get_group(int(group_id))
        if not group:
            raise NotFoundError("Competency group not found")
        return group

    # -------- Competencies --------
    def list_competencies(self, *, group_id: Optional[int] = None) -> list[Competency]:
        return list(self._competencies.list_competencies(group_id=group_id))

    def get_competency(self, *, competency_id: int) -> Competency:
        comp = self._competencies.get_competency(int(competency_id))
        if not comp:
            raise NotFoundError("Competency not found")
        return comp

    def create_competency(
        self,
        *,
        current_role: Role,
        group_id: int,
        name: str,
        description: Optional[str],
        levels: Sequence[CompetencyLevel],
    ) -> Competency:
        self._require_manager(current_role)
        self._get_group(group_id)
        competency_id = self._competencies.create_competency(
            group_id=int(group_id),
            name=require_non_empty(name, "Competency name"),
            description=(description or "").strip() or None,
            levels=validate_levels(levels),
        )
        return self.get_competency(competency_id=competency_id)

    def update_competency(
        self,
        *,
        current_role: Role,
        competency_id: int,
        group_id: int,
        name: str,
        description: Optional[str],
        levels: Sequence[CompetencyLevel],
    ) -> Competency:
        self._require_manager(current_role)
        comp = self.get_competency(competency_id=competency_id)
        self._get_group(group_id)
        self._competencies.update_competency(
            competency_id=comp.competency_id,
            group_id=int(group_id),
            name=require_non_empty(name, "Competency name"),
            description=(description or "").strip() or None,
            levels=validate_levels(levels),
        )
        return self.get_competency(competency_id=comp.competency_id)

    def delete_competency(self, *, current_role: Role, competency_id: int) -> None:
        self._require_manager(current_role)
        comp = self.get_competency(competency_id=competency_id)
        if self._competencies.is_assessed(comp.competency_id):
            raise ConflictError("Competency is used by existing assessments")
        self._competencies.delete_competency(competency_id=comp.competency_id)

    # -------- Requirements matrix --------
    def load_matrix(self) -> RequirementsMatrix:
        return RequirementsMatrix(self._requirements.list_all())

    def get_matrix(self) -> dict:
        groups = self.list_groups()
        competencies = self.list_competencies()
        return {
            "careerBands": [b.to_dict() for b in self._bands.list_all()],
            "groups": [
                {
                    **g.to_dict(),
                    "competencies": [
                        {"id": c.competency_id, "name": c.name} for c in competencies if c.group_id == g.group_id
                    ],
                }
                for g in groups
            ],
            "requirements": self.load_matrix().to_nested(),
        }

    def _check_cell(self, career_band_id: int, competency_id: int, required_level: Optional[int]) -> None:
        if not self._bands.get_by_id(int(career_band_id)):
            raise NotFoundError(f"Career band {career_band_id} not found")
        if not self._competencies.get_competency(int(competency_id)):
            raise NotFoundError(f"Competency {competency_id} not found")
        if required_level is not None:
            require_level(required_level, "Required level")

    def set_requirement(
        self,
        *,
        current_role: Role,
        career_band_id: int,
        competency_id: int,
        required_level: Optional[int],
    ) -> None:
        """`required_level=None` removes the requirement."""
        self.bulk_set_requirements(
            current_role=current_role,
            entries=[(career_band_id, competency_id, required_level)],
        )

    def bulk_set_requirements(
        self,
        *,
        current_role: Role,
        entries: Iterable[tuple[int, int, Optional[int]]],
    ) -> int:
        self._require_manager(current_role)
        changes = []
        for band_id, competency_id, level in entries:
            self._check_cell(band_id, competency_id, level)
            changes.append((int(band_id), int(competency_id), level))
        if not changes:
            return 0
        count = self._requirements.apply(changes=changes)
        logger.info("requirements matrix updated, %s cells", count)
        return count
