from __future__ import annotations

from typing import Mapping, Optional, Sequence

from ..core.enums import AssessmentStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_float, db_cursor, fetchall, fetchone, in_placeholders
from .model import AssessmentDetail, ScoreEntry, UserAssessment
from .repository import AssessmentRepository

_LEVEL_FIELDS = {"self_level", "leader_level", "final_level"}

_ASSESSMENT_SELECT = """
    SELECT a.assessment_id, a.user_id, a.cycle_id, a.status,
           a.self_score_avg, a.leader_score_avg, a.final_score_avg, a.feedback, a.created_at,
           p.full_name, c.name AS cycle_name
    FROM user_assessments a
    JOIN assessment_cycles c ON c.cycle_id = a.cycle_id
    LEFT JOIN profiles p ON p.user_id = a.user_id
"""

_DETAIL_SELECT = """
    SELECT d.detail_id, d.assessment_id, d.competency_id, d.required_level,
           d.self_level, d.leader_level, d.final_level, d.note,
           comp.name AS competency_name, g.group_id, g.name AS group_name
    FROM user_assessment_details d
    JOIN competencies comp ON comp.competency_id = d.competency_id
    LEFT JOIN competency_groups g ON g.group_id = comp.group_id
"""


def _to_assessment(r: dict) -> UserAssessment:
    return UserAssessment(
        assessment_id=int(r["assessment_id"]),
        user_id=int(r["user_id"]),
        cycle_id=int(r["cycle_id"]),
        status=AssessmentStatus(r["status"]),
        self_score_avg=as_float(r.get("self_score_avg")),
        leader_score_avg=as_float(r.get("leader_score_avg")),
        final_score_avg=as_float(r.get("final_score_avg")),
        feedback=r.get("feedback"),
        created_at=r.get("created_at"),
        full_name=r.get("full_name"),
        cycle_name=r.get("cycle_name"),
    )


def _to_detail(r: dict) -> AssessmentDetail:
    return AssessmentDetail(
        detail_id=int(r["detail_id"]),
        assessment_id=int(r["assessment_id"]),
        competency_id=int(r["competency_id"]),
        required_level=int(r["required_level"]),
        self_level=r.get("self_level"),
        leader_level=r.get("leader_level"),
        final_level=r.get("final_level"),
        note=r.get("note"),
        competency_name=r.get("competency_name"),
        group_id=r.get("group_id"),
        group_name=r.get("group_name"),
    )


class MySQLAssessmentRepository(AssessmentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create_with_details(self, *, user_id: int, cycle_id: int, requirements: Mapping[int, int]) -> Optional[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT assessment_id FROM user_assessments WHERE user_id=%s AND cycle_id=%s FOR UPDATE",
                (int(user_id), int(cycle_id)),
            )
            if fetchone(cur):
                return None

            cur.execute(
                "INSERT INTO user_assessments(user_id, cycle_id, status) VALUES(%s,%s,%s)",
                (int(user_id), int(cycle_id), AssessmentStatus.SELF_ASSESSING.value),
            )
            assessment_id = int(cur.lastrowid)
            for competency_id, level in sorted(requirements.items()):
                cur.execute(
                    """
                    INSERT INTO user_assessment_details(assessment_id, competency_id, required_level)
                    VALUES(%s,%s,%s)
                    """,
                    (assessment_id, int(competency_id), int(level)),
                )
            return assessment_id

    def get_by_id(self, assessment_id: int) -> Optional[UserAssessment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_ASSESSMENT_SELECT + " WHERE a.assessment_id=%s", (int(assessment_id),))
            r = fetchone(cur)
            return _to_assessment(r) if r else None

    def find_for_user(self, *, user_id: int, cycle_id: int) -> Optional[UserAssessment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_ASSESSMENT_SELECT + " WHERE a.user_id=%s AND a.cycle_id=%s", (int(user_id), int(cycle_id)))
            r = fetchone(cur)
            return _to_assessment(r) if r else None

    def list_details(self, assessment_id: int) -> Sequence[AssessmentDetail]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _DETAIL_SELECT + " WHERE d.assessment_id=%s ORDER BY g.group_id, d.competency_id",
                (int(assessment_id),),
            )
            return [_to_detail(r) for r in fetchall(cur)]

    def list_details_for(self, assessment_ids: Sequence[int]) -> Mapping[int, Sequence[AssessmentDetail]]:
        ids = [int(x) for x in assessment_ids]
        out: dict[int, list[AssessmentDetail]] = {i: [] for i in ids}
        if not ids:
            return out
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _DETAIL_SELECT + f" WHERE d.assessment_id IN ({in_placeholders(ids)}) ORDER BY d.assessment_id, d.competency_id",
                tuple(ids),
            )
            for r in fetchall(cur):
                d = _to_detail(r)
                out[d.assessment_id].append(d)
        return out

    def save_levels(
        self,
        *,
        assessment_id: int,
        expected_status: AssessmentStatus,
        level_field: str,
        entries: Sequence[ScoreEntry],
    ) -> bool:
        if level_field not in _LEVEL_FIELDS:
            raise ValueError(f"Unknown level column: {level_field!r}")

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT status FROM user_assessments WHERE assessment_id=%s FOR UPDATE", (int(assessment_id),))
            row = fetchone(cur)
            if not row or row["status"] != expected_status.value:
                return False
            for e in entries:
                cur.execute(
                    f"""
                    UPDATE user_assessment_details
                    SET {level_field}=%s, note=COALESCE(%s, note)
                    WHERE assessment_id=%s AND competency_id=%s
                    """,
                    (int(e.level), e.note, int(assessment_id), int(e.competency_id)),
                )
            return True

    def set_feedback(self, *, assessment_id: int, expected_status: AssessmentStatus, feedback: Optional[str]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE user_assessments SET feedback=%s WHERE assessment_id=%s AND status=%s",
                (feedback, int(assessment_id), expected_status.value),
            )
            return cur.rowcount > 0

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE user_assessments
                SET status=%s, self_score_avg=%s, leader_score_avg=%s, final_score_avg=%s
                WHERE assessment_id=%s AND status=%s
                """,
                (
                    to_status.value,
                    self_score_avg,
                    leader_score_avg,
                    final_score_avg,
                    int(assessment_id),
                    from_status.value,
                ),
            )
            if cur.rowcount == 0:
                return False
            if to_status == AssessmentStatus.DONE:
                cur.execute(
                    "UPDATE user_assessment_details SET gap = required_level - final_level WHERE assessment_id=%s",
                    (int(assessment_id),),
                )
            return True

    def list_by_cycle(self, cycle_id: int) -> Sequence[UserAssessment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_ASSESSMENT_SELECT + " WHERE a.cycle_id=%s ORDER BY p.full_name", (int(cycle_id),))
            return [_to_assessment(r) for r in fetchall(cur)]

    def list_by_user(self, user_id: int) -> Sequence[UserAssessment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _ASSESSMENT_SELECT + " WHERE a.user_id=%s ORDER BY c.start_date DESC, a.assessment_id DESC",
                (int(user_id),),
            )
            return [_to_assessment(r) for r in fetchall(cur)]

    def list_by_users(self, user_ids: Sequence[int], *, cycle_id: Optional[int] = None) -> Sequence[UserAssessment]:
        ids = [int(x) for x in user_ids]
        if not ids:
            return []
        sql = _ASSESSMENT_SELECT + f" WHERE a.user_id IN ({in_placeholders(ids)})"
        params: list[object] = list(ids)
        if cycle_id is not None:
            sql += " AND a.cycle_id=%s"
            params.append(int(cycle_id))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " ORDER BY c.start_date DESC, p.full_name", tuple(params))
            return [_to_assessment(r) for r in fetchall(cur)]

    def list_for_report(
        self,
        *,
        status: AssessmentStatus,
        cycle_id: Optional[int] = None,
        team_id: Optional[int] = None,
    ) -> Sequence[UserAssessment]:
        clauses = ["a.status=%s"]
        params: list[object] = [status.value]
        if cycle_id is not None:
            clauses.append("a.cycle_id=%s")
            params.append(int(cycle_id))
        if team_id is not None:
            clauses.append("a.user_id IN (SELECT user_id FROM users WHERE team_id=%s)")
            params.append(int(team_id))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_ASSESSMENT_SELECT + f" WHERE {' AND '.join(clauses)} ORDER BY p.full_name", tuple(params))
            return [_to_assessment(r) for r in fetchall(cur)]

    def count_by_status(self, cycle_id: int) -> Mapping[str, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT status, COUNT(*) AS total FROM user_assessments WHERE cycle_id=%s GROUP BY status",
                (int(cycle_id),),
            )
            counts = {s.value: 0 for s in AssessmentStatus}
            for r in fetchall(cur):
                counts[r["status"]] = int(r["total"])
            return counts

    def count_for_cycle(self, cycle_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS total FROM user_assessments WHERE cycle_id=%s", (int(cycle_id),))
            return int((fetchone(cur) or {}).get("total") or 0)
