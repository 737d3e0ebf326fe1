from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..core.enums import UserStatus, VerificationType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import VerificationToken
from .repository import VerificationTokenRepository


class MySQLVerificationTokenRepository(VerificationTokenRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, *, user_id: int, token: str, type: VerificationType, expires_at: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO verification_tokens(user_id, token, type, expires_at) VALUES(%s,%s,%s,%s)",
                (int(user_id), token, type.value, expires_at),
            )
            return int(cur.lastrowid)

    def find_active(self, *, token: str, type: VerificationType) -> Optional[VerificationToken]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT token_id, user_id, token, type, expires_at, deleted_at
                FROM verification_tokens
                WHERE token=%s AND type=%s AND deleted_at IS NULL
                ORDER BY token_id DESC
                LIMIT 1
                """,
                (token, type.value),
            )
            r = fetchone(cur)
            if not r:
                return None
            return VerificationToken(
                token_id=int(r["token_id"]),
                user_id=int(r["user_id"]),
                token=r["token"],
                type=VerificationType(r["type"]),
                expires_at=r["expires_at"],
                deleted_at=r.get("deleted_at"),
            )

    def invalidate_for_user(self, *, user_id: int, type: VerificationType) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE verification_tokens SET deleted_at=NOW() WHERE user_id=%s AND type=%s AND deleted_at IS NULL",
                (int(user_id), type.value),
            )

    def activate_user(self, *, user_id: int, token_id: int) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET status=%s WHERE user_id=%s", (UserStatus.ACTIVE.value, int(user_id)))
            cur.execute("UPDATE verification_tokens SET deleted_at=NOW() WHERE token_id=%s", (int(token_id),))

    def reset_password(self, *, user_id: int, token_id: int, password_hash: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET password_hash=%s WHERE user_id=%s", (password_hash, int(user_id)))
            cur.execute("UPDATE verification_tokens SET deleted_at=NOW() WHERE token_id=%s", (int(token_id),))
