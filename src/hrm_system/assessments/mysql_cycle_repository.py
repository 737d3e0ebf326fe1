from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import CycleStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AssessmentCycle
from .repository import CycleRepository

_COLUMNS = "cycle_id, name, start_date, end_date, status, created_at"


def _to_cycle(r: dict) -> AssessmentCycle:
    return AssessmentCycle(
        cycle_id=int(r["cycle_id"]),
        name=r["name"],
        start_date=r["start_date"],
        end_date=r["end_date"],
        status=CycleStatus(r["status"]),
        created_at=r.get("created_at"),
    )


class MySQLCycleRepository(CycleRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, *, name: str, start_date: date, end_date: date) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO assessment_cycles(name, start_date, end_date, status) VALUES(%s,%s,%s,%s)",
                (name, start_date, end_date, CycleStatus.DRAFT.value),
            )
            return int(cur.lastrowid)

    def get_by_id(self, cycle_id: int) -> Optional[AssessmentCycle]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM assessment_cycles WHERE cycle_id=%s", (int(cycle_id),))
            r = fetchone(cur)
            return _to_cycle(r) if r else None

    def list_cycles(self, *, status: Optional[CycleStatus] = None) -> Sequence[AssessmentCycle]:
        with db_cursor(self._conn_factory) as (_, cur):
            if status is None:
                cur.execute(f"SELECT {_COLUMNS} FROM assessment_cycles ORDER BY start_date DESC, cycle_id DESC")
            else:
                cur.execute(
                    f"SELECT {_COLUMNS} FROM assessment_cycles WHERE status=%s ORDER BY start_date DESC, cycle_id DESC",
                    (status.value,),
                )
            return [_to_cycle(r) for r in fetchall(cur)]

    def get_active(self) -> Optional[AssessmentCycle]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM assessment_cycles WHERE status=%s ORDER BY cycle_id DESC LIMIT 1",
                (CycleStatus.ACTIVE.value,),
            )
            r = fetchone(cur)
            return _to_cycle(r) if r else None

    def update(self, *, cycle_id: int, name: str, start_date: date, end_date: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE assessment_cycles SET name=%s, start_date=%s, end_date=%s WHERE cycle_id=%s",
                (name, start_date, end_date, int(cycle_id)),
            )
            return cur.rowcount > 0

    def set_status(self, *, cycle_id: int, from_status: CycleStatus, to_status: CycleStatus) -> bool:
        sql = "UPDATE assessment_cycles SET status=%s WHERE cycle_id=%s AND status=%s"
        params: tuple = (to_status.value, int(cycle_id), from_status.value)
        if to_status == CycleStatus.ACTIVE:
            # derived table: MySQL cannot select from the table being updated directly
            sql += " AND NOT EXISTS (SELECT 1 FROM (SELECT cycle_id FROM assessment_cycles WHERE status=%s) active)"
            params += (CycleStatus.ACTIVE.value,)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, params)
            return cur.rowcount > 0

    def delete(self, *, cycle_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM assessment_cycles WHERE cycle_id=%s", (int(cycle_id),))
            return cur.rowcount > 0
