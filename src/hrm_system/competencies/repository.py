from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Competency, CompetencyGroup, CompetencyLevel, Requirement


class CompetencyRepository(Protocol):
    # Groups
    def list_groups(self) -> Sequence[CompetencyGroup]:
        raise NotImplementedError

    def get_group(self, group_id: int) -> Optional[CompetencyGroup]:
        raise NotImplementedError

    def get_group_by_name(self, name: str) -> Optional[CompetencyGroup]:
        raise NotImplementedError

    def create_group(self, *, name: str, description: Optional[str]) -> int:
        raise NotImplementedError

    def update_group(self, *, group_id: int, name: str, description: Optional[str]) -> bool:
        raise NotImplementedError

    def delete_group(self, *, group_id: int) -> bool:
        raise NotImplementedError

    # Competencies
    def list_competencies(self, *, group_id: Optional[int] = None) -> Sequence[Competency]:
        raise NotImplementedError

    def get_competency(self, competency_id: int) -> Optional[Competency]:
        raise NotImplementedError

    def create_competency(
        self,
        *,
        group_id: int,
        name: str,
        description: Optional[str],
        levels: Sequence[CompetencyLevel],
    ) -> int:
        raise NotImplementedError

    def update_competency(
        self,
        *,
        competency_id: int,
        group_id: int,
        name: str,
        description: Optional[str],
        levels: Sequence[CompetencyLevel],
    ) -> bool:
        raise NotImplementedError

    def delete_competency(self, *, competency_id: int) -> bool:
        """Delete the competency with its levels and requirement cells."""

        raise NotImplementedError

    def is_assessed(self, competency_id: int) -> bool:
        raise NotImplementedError


class RequirementRepository(Protocol):
    def list_all(self) -> Sequence[Requirement]:
        raise NotImplementedError

    def list_for_band(self, career_band_id: int) -> Sequence[Requirement]:
        raise NotImplementedError

    def apply(self, *, changes: Sequence[tuple[int, int, Optional[int]]]) -> int:
        """Upsert (band, competency, level) cells, deleting those with level None.

        Runs in one transaction and returns the number of cells touched.
        """

        raise NotImplementedError
