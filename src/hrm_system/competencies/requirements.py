"""Requirements matrix: (career band x competency) -> required level."""

from __future__ import annotations

from typing import Iterable, Iterator, Optional

from ..common.validators import require_level
from .model import Requirement


class RequirementsMatrix:
    """Sparse mapping; a missing cell means "not required for this band".

    Assessments copy the cells of their band at creation time, so later edits
    of the matrix never change assessments that already exist.
    """

    def __init__(self, requirements: Iterable[Requirement] = ()):
        self._cells: dict[tuple[int, int], int] = {}
        for r in requirements:
            self.set(r.career_band_id, r.competency_id, r.required_level)

    def __len__(self) -> int:
        return len(self._cells)

    def __contains__(self, key: tuple[int, int]) -> bool:
        return key in self._cells

    def __iter__(self) -> Iterator[Requirement]:
        for (band_id, competency_id), level in sorted(self._cells.items()):
            yield Requirement(career_band_id=band_id, competency_id=competency_id, required_level=level)

    def get(self, career_band_id: int, competency_id: int) -> Optional[int]:
        return self._cells.get((int(career_band_id), int(competency_id)))

    def set(self, career_band_id: int, competency_id: int, required_level: Optional[int]) -> None:
        key = (int(career_band_id), int(competency_id))
        if required_level is None:
            self._cells.pop(key, None)
            return
        self._cells[key] = require_level(required_level, "Required level")

    def for_band(self, career_band_id: int) -> dict[int, int]:
        """competency_id -> required level for one band."""
        band = int(career_band_id)
        return {comp: level for (b, comp), level in self._cells.items() if b == band}

    def to_nested(self) -> dict[str, dict[str, int]]:
        out: dict[str, dict[str, int]] = {}
        for (band_id, competency_id), level in sorted(self._cells.items()):
            out.setdefault(str(band_id), {})[str(competency_id)] = level
        return out
