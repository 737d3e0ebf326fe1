from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_placeholders
from .model import Competency, CompetencyGroup, CompetencyLevel, Requirement
from .repository import CompetencyRepository, RequirementRepository

_GROUP_SELECT = """
    SELECT g.group_id, g.name, g.description, g.created_at,
           (SELECT COUNT(*) FROM competencies c WHERE c.group_id = g.group_id) AS competency_count
    FROM competency_groups g
"""

_COMPETENCY_SELECT = """
    SELECT c.competency_id, c.group_id, c.name, c.description, g.name AS group_name
    FROM competencies c
    JOIN competency_groups g ON g.group_id = c.group_id
"""


def _to_group(r: dict) -> CompetencyGroup:
    return CompetencyGroup(
        group_id=int(r["group_id"]),
        name=r["name"],
        description=r.get("description"),
        competency_count=int(r.get("competency_count") or 0),
        created_at=r.get("created_at"),
    )


def _insert_levels(cur, competency_id: int, levels: Sequence[CompetencyLevel]) -> None:
    for lv in levels:
        cur.execute(
            "INSERT INTO competency_levels(competency_id, level_number, behavioral_indicator) VALUES(%s,%s,%s)",
            (int(competency_id), int(lv.level_number), lv.behavioral_indicator),
        )


class MySQLCompetencyRepository(CompetencyRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    # -------- Groups --------
    def list_groups(self) -> Sequence[CompetencyGroup]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_GROUP_SELECT + " ORDER BY g.group_id")
            return [_to_group(r) for r in fetchall(cur)]

    def get_group(self, group_id: int) -> Optional[CompetencyGroup]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_GROUP_SELECT + " WHERE g.group_id=%s", (int(group_id),))
            r = fetchone(cur)
            return _to_group(r) if r else None

    def get_group_by_name(self, name: str) -> Optional[CompetencyGroup]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_GROUP_SELECT + " WHERE g.name=%s", (name,))
            r = fetchone(cur)
            return _to_group(r) if r else None

    def create_group(self, *, name: str, description: Optional[str]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("INSERT INTO competency_groups(name, description) VALUES(%s,%s)", (name, description))
            return int(cur.lastrowid)

    def update_group(self, *, group_id: int, name: str, description: Optional[str]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE competency_groups SET name=%s, description=%s WHERE group_id=%s",
                (name, description, int(group_id)),
            )
            return cur.rowcount > 0

    def delete_group(self, *, group_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM competency_groups WHERE group_id=%s", (int(group_id),))
            return cur.rowcount > 0

    # -------- Competencies --------
    def _load_levels(self, cur, ids: list[int]) -> dict[int, list[CompetencyLevel]]:
        out: dict[int, list[CompetencyLevel]] = {i: [] for i in ids}
        if not ids:
            return out
        cur.execute(
            f"""
            SELECT competency_id, level_number, behavioral_indicator
            FROM competency_levels
            WHERE competency_id IN ({in_placeholders(ids)})
            ORDER BY competency_id, level_number
            """,
            tuple(ids),
        )
        for r in fetchall(cur):
            out[int(r["competency_id"])].append(
                CompetencyLevel(level_number=int(r["level_number"]), behavioral_indicator=r.get("behavioral_indicator") or "")
            )
        return out

    def list_competencies(self, *, group_id: Optional[int] = None) -> Sequence[Competency]:
        with db_cursor(self._conn_factory) as (_, cur):
            if group_id is None:
                cur.execute(_COMPETENCY_SELECT + " ORDER BY c.group_id, c.competency_id")
            else:
                cur.execute(_COMPETENCY_SELECT + " WHERE c.group_id=%s ORDER BY c.competency_id", (int(group_id),))
            rows = fetchall(cur)
            levels = self._load_levels(cur, [int(r["competency_id"]) for r in rows])
            return [
                Competency(
                    competency_id=int(r["competency_id"]),
                    group_id=int(r["group_id"]),
                    name=r["name"],
                    description=r.get("description"),
                    group_name=r.get("group_name"),
                    levels=tuple(levels[int(r["competency_id"])]),
                )
                for r in rows
            ]

    def get_competency(self, competency_id: int) -> Optional[Competency]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_COMPETENCY_SELECT + " WHERE c.competency_id=%s", (int(competency_id),))
            r = fetchone(cur)
            if not r:
                return None
            levels = self._load_levels(cur, [int(r["competency_id"])])
            return Competency(
                competency_id=int(r["competency_id"]),
                group_id=int(r["group_id"]),
                name=r["name"],
                description=r.get("description"),
                group_name=r.get("group_name"),
                levels=tuple(levels[int(r["competency_id"])]),
            )

    def create_competency(
        self,
        *,
        group_id: int,
        name: str,
        description: Optional[str],
        levels: Sequence[CompetencyLevel],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO competencies(group_id, name, description) VALUES(%s,%s,%s)",
                (int(group_id), name, description),
            )
            competency_id = int(cur.lastrowid)
            _insert_levels(cur, competency_id, levels)
            return competency_id

    def update_competency(
        self,
        *,
        competency_id: int,
        group_id: int,
        name: str,
        description: Optional[str],
        levels: Sequence[CompetencyLevel],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE competencies SET group_id=%s, name=%s, description=%s WHERE competency_id=%s",
                (int(group_id), name, description, int(competency_id)),
            )
            cur.execute("DELETE FROM competency_levels WHERE competency_id=%s", (int(competency_id),))
            _insert_levels(cur, int(competency_id), levels)
            return True

    def delete_competency(self, *, competency_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM competency_levels WHERE competency_id=%s", (int(competency_id),))
            cur.execute("DELETE FROM competency_requirements WHERE competency_id=%s", (int(competency_id),))
            cur.execute("DELETE FROM competencies WHERE competency_id=%s", (int(competency_id),))
            return cur.rowcount > 0

    def is_assessed(self, competency_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT 1 FROM user_assessment_details WHERE competency_id=%s LIMIT 1",
                (int(competency_id),),
            )
            return fetchone(cur) is not None


class MySQLRequirementRepository(RequirementRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_all(self) -> Sequence[Requirement]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT career_band_id, competency_id, required_level FROM competency_requirements")
            return [
                Requirement(
                    career_band_id=int(r["career_band_id"]),
                    competency_id=int(r["competency_id"]),
                    required_level=int(r["required_level"]),
                )
                for r in fetchall(cur)
            ]

    def list_for_band(self, career_band_id: int) -> Sequence[Requirement]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT career_band_id, competency_id, required_level
                FROM competency_requirements
                WHERE career_band_id=%s
                """,
                (int(career_band_id),),
            )
            return [
                Requirement(
                    career_band_id=int(r["career_band_id"]),
                    competency_id=int(r["competency_id"]),
                    required_level=int(r["required_level"]),
                )
                for r in fetchall(cur)
            ]

    def apply(self, *, changes: Sequence[tuple[int, int, Optional[int]]]) -> int:
        touched = 0
        with db_cursor(self._conn_factory) as (_, cur):
            for band_id, competency_id, level in changes:
                if level is None:
                    cur.execute(
                        "DELETE FROM competency_requirements WHERE career_band_id=%s AND competency_id=%s",
                        (int(band_id), int(competency_id)),
                    )
                else:
                    cur.execute(
                        """
                        INSERT INTO competency_requirements(career_band_id, competency_id, required_level)
                        VALUES(%s,%s,%s)
                        ON DUPLICATE KEY UPDATE required_level=VALUES(required_level)
                        """,
                        (int(band_id), int(competency_id), int(level)),
                    )
                touched += 1
        return touched
