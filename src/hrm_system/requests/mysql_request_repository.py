from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import RequestStatus, RequestType, Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_placeholders
from .model import WorkRequest
from .repository import WorkRequestRepository

_SELECT = """
    SELECT r.request_id, r.user_id, r.type, r.start_date, r.end_date, r.is_half_day, r.reason,
           r.status, r.approver_id, r.rejection_reason, r.created_at,
           p.full_name, u.role AS requester_role, u.team_id, ap.full_name AS approver_name
    FROM work_requests r
    JOIN users u ON u.user_id = r.user_id
    LEFT JOIN profiles p ON p.user_id = r.user_id
    LEFT JOIN profiles ap ON ap.user_id = r.approver_id
    WHERE r.deleted_at IS NULL
"""


def _to_request(row: dict) -> WorkRequest:
    return WorkRequest(
        request_id=int(row["request_id"]),
        user_id=int(row["user_id"]),
        type=RequestType(row["type"]),
        start_date=row["start_date"],
        end_date=row["end_date"],
        is_half_day=bool(row.get("is_half_day")),
        reason=row["reason"],
        status=RequestStatus(row["status"]),
        approver_id=row.get("approver_id"),
        rejection_reason=row.get("rejection_reason"),
        created_at=row.get("created_at"),
        full_name=row.get("full_name"),
        requester_role=Role(row["requester_role"]) if row.get("requester_role") else None,
        team_id=row.get("team_id"),
        approver_name=row.get("approver_name"),
    )


class MySQLWorkRequestRepository(WorkRequestRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        user_id: int,
        type: RequestType,
        start_date: date,
        end_date: date,
        is_half_day: bool,
        reason: str,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO work_requests(user_id, type, start_date, end_date, is_half_day, reason, status)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (user_id, type.value, start_date, end_date, 1 if is_half_day else 0, reason, RequestStatus.PENDING.value),
            )
            return int(cur.lastrowid)

    def get_by_id(self, request_id: int) -> Optional[WorkRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " AND r.request_id=%s", (request_id,))
            row = fetchone(cur)
            return _to_request(row) if row else None

    def update(
        self,
        *,
        request_id: int,
        type: RequestType,
        start_date: date,
        end_date: date,
        is_half_day: bool,
        reason: str,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE work_requests
                SET type=%s, start_date=%s, end_date=%s, is_half_day=%s, reason=%s
                WHERE request_id=%s AND status=%s AND deleted_at IS NULL
                """,
                (type.value, start_date, end_date, 1 if is_half_day else 0, reason, request_id, RequestStatus.PENDING.value),
            )
            return cur.rowcount > 0

    def soft_delete(self, *, request_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE work_requests SET deleted_at=NOW()
                WHERE request_id=%s AND status=%s AND deleted_at IS NULL
                """,
                (request_id, RequestStatus.PENDING.value),
            )
            return cur.rowcount > 0

    def decide(
        self,
        *,
        request_id: int,
        status: RequestStatus,
        approver_id: int,
        rejection_reason: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE work_requests
                SET status=%s, approver_id=%s, rejection_reason=%s
                WHERE request_id=%s AND status=%s AND deleted_at IS NULL
                """,
                (status.value, approver_id, rejection_reason, request_id, RequestStatus.PENDING.value),
            )
            return cur.rowcount > 0

    def list_by_user(
        self,
        user_id: int,
        *,
        status: Optional[RequestStatus] = None,
        type: Optional[RequestType] = None,
    ) -> Sequence[WorkRequest]:
        sql = _SELECT + " AND r.user_id=%s"
        params: list[object] = [user_id]
        if status is not None:
            sql += " AND r.status=%s"
            params.append(status.value)
        if type is not None:
            sql += " AND r.type=%s"
            params.append(type.value)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " ORDER BY r.created_at DESC, r.request_id DESC", tuple(params))
            return [_to_request(r) for r in fetchall(cur)]

    def list_pending(self, *, team_ids: Optional[Sequence[int]] = None) -> Sequence[WorkRequest]:
        sql = _SELECT + " AND r.status=%s"
        params: list[object] = [RequestStatus.PENDING.value]
        if team_ids is not None:
            if not team_ids:
                return []
            sql += f" AND u.team_id IN ({in_placeholders(team_ids)})"
            params.extend(team_ids)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " ORDER BY r.created_at ASC", tuple(params))
            return [_to_request(r) for r in fetchall(cur)]

    def list_approved_in_range(self, user_ids: Sequence[int], *, start: date, end: date) -> Sequence[WorkRequest]:
        if not user_ids:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT
                + f"""
                AND r.user_id IN ({in_placeholders(user_ids)})
                AND r.status=%s AND r.start_date<=%s AND r.end_date>=%s
                ORDER BY r.start_date
                """,
                (*user_ids, RequestStatus.APPROVED.value, end, start),
            )
            return [_to_request(r) for r in fetchall(cur)]
