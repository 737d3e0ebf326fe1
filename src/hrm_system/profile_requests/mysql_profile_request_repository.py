from __future__ import annotations

import json
from typing import Any, Mapping, Optional, Sequence

from ..core.enums import RequestStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from ..users.model import PROFILE_FIELDS
from .model import ProfileUpdateRequest
from .repository import ProfileRequestRepository

_SELECT = """
    SELECT r.request_id, r.user_id, r.data_changes, r.previous_data, r.status, r.reviewer_id,
           r.rejection_reason, r.created_at, p.full_name, rp.full_name AS reviewer_name
    FROM profile_update_requests r
    LEFT JOIN profiles p ON p.user_id = r.user_id
    LEFT JOIN profiles rp ON rp.user_id = r.reviewer_id
"""


def _json(value: Any) -> dict:
    if value is None:
        return {}
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    if isinstance(value, str):
        return json.loads(value) if value else {}
    return dict(value)


def _to_request(row: dict) -> ProfileUpdateRequest:
    return ProfileUpdateRequest(
        request_id=int(row["request_id"]),
        user_id=int(row["user_id"]),
        status=RequestStatus(row["status"]),
        data_changes=_json(row.get("data_changes")),
        previous_data=_json(row.get("previous_data")),
        reviewer_id=row.get("reviewer_id"),
        rejection_reason=row.get("rejection_reason"),
        created_at=row.get("created_at"),
        full_name=row.get("full_name"),
        reviewer_name=row.get("reviewer_name"),
    )


class MySQLProfileRequestRepository(ProfileRequestRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, *, user_id: int, data_changes: Mapping[str, Any], previous_data: Mapping[str, Any]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO profile_update_requests(user_id, data_changes, previous_data, status)
                VALUES(%s,%s,%s,%s)
                """,
                (user_id, json.dumps(dict(data_changes)), json.dumps(dict(previous_data)), RequestStatus.PENDING.value),
            )
            return int(cur.lastrowid)

    def get_by_id(self, request_id: int) -> Optional[ProfileUpdateRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE r.request_id=%s", (request_id,))
            row = fetchone(cur)
            return _to_request(row) if row else None

    def find_pending_for_user(self, user_id: int) -> Optional[ProfileUpdateRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + " WHERE r.user_id=%s AND r.status=%s ORDER BY r.request_id DESC LIMIT 1",
                (user_id, RequestStatus.PENDING.value),
            )
            row = fetchone(cur)
            return _to_request(row) if row else None

    def list_requests(
        self,
        *,
        status: Optional[RequestStatus] = None,
        user_id: Optional[int] = None,
    ) -> Sequence[ProfileUpdateRequest]:
        where = []
        params: list[object] = []
        if status is not None:
            where.append("r.status=%s")
            params.append(status.value)
        if user_id is not None:
            where.append("r.user_id=%s")
            params.append(user_id)
        sql = _SELECT + (" WHERE " + " AND ".join(where) if where else "") + " ORDER BY r.created_at DESC"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_to_request(r) for r in fetchall(cur)]

    def approve(self, *, request_id: int, reviewer_id: int, profile_changes: Mapping[str, Any]) -> bool:
        cols = [c for c in profile_changes if c in PROFILE_FIELDS]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT user_id, status FROM profile_update_requests WHERE request_id=%s FOR UPDATE",
                (request_id,),
            )
            row = fetchone(cur)
            if not row or row["status"] != RequestStatus.PENDING.value:
                return False

            if cols:
                assignments = ", ".join(f"{c}=%s" for c in cols)
                cur.execute(
                    f"UPDATE profiles SET {assignments} WHERE user_id=%s",
                    tuple(profile_changes[c] for c in cols) + (int(row["user_id"]),),
                )
            cur.execute(
                """
                UPDATE profile_update_requests SET status=%s, reviewer_id=%s
                WHERE request_id=%s AND status=%s
                """,
                (RequestStatus.APPROVED.value, reviewer_id, request_id, RequestStatus.PENDING.value),
            )
            return cur.rowcount > 0

    def reject(self, *, request_id: int, reviewer_id: int, rejection_reason: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE profile_update_requests SET status=%s, reviewer_id=%s, rejection_reason=%s
                WHERE request_id=%s AND status=%s
                """,
                (RequestStatus.REJECTED.value, reviewer_id, rejection_reason, request_id, RequestStatus.PENDING.value),
            )
            return cur.rowcount > 0
