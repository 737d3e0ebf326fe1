from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from ..core.enums import Role, UserStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import PROFILE_FIELDS, CareerBand, Profile, User
from .repository import CareerBandRepository, UserRepository

_USER_SELECT = """
    SELECT u.user_id, u.employee_code, u.email, u.phone, u.password_hash, u.role, u.status,
           u.team_id, u.career_band_id, u.created_at, COALESCE(p.full_name, '') AS full_name
    FROM users u
    LEFT JOIN profiles p ON p.user_id = u.user_id
"""

_UPDATABLE_USER_COLUMNS = {"email", "phone", "role", "status", "team_id", "career_band_id"}


def _to_user(row: dict) -> User:
    return User(
        user_id=int(row["user_id"]),
        employee_code=row["employee_code"],
        email=row["email"],
        phone=row.get("phone"),
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        status=UserStatus(row["status"]),
        team_id=row.get("team_id"),
        career_band_id=row.get("career_band_id"),
        full_name=row.get("full_name") or "",
        created_at=row.get("created_at"),
    )


def _db_value(value: Any) -> Any:
    if isinstance(value, (Role, UserStatus)):
        return value.value
    return value


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_USER_SELECT + " WHERE u.user_id=%s AND u.deleted_at IS NULL", (int(user_id),))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def get_by_email(self, email: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_USER_SELECT + " WHERE u.email=%s AND u.deleted_at IS NULL", (email,))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def _exists(self, column: str, value: str, exclude_user_id: Optional[int]) -> bool:
        sql = f"SELECT 1 FROM users WHERE {column}=%s AND deleted_at IS NULL"
        params: list[object] = [value]
        if exclude_user_id is not None:
            sql += " AND user_id<>%s"
            params.append(int(exclude_user_id))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " LIMIT 1", tuple(params))
            return fetchone(cur) is not None

    def exists_email(self, email: str, *, exclude_user_id: Optional[int] = None) -> bool:
        return self._exists("email", email, exclude_user_id)

    def exists_employee_code(self, employee_code: str, *, exclude_user_id: Optional[int] = None) -> bool:
        return self._exists("employee_code", employee_code, exclude_user_id)

    def create(
        self,
        *,
        employee_code: str,
        email: str,
        phone: Optional[str],
        password_hash: str,
        role: Role,
        status: UserStatus,
        team_id: Optional[int],
        career_band_id: Optional[int],
        full_name: str,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO users(employee_code, email, phone, password_hash, role, status, team_id, career_band_id)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (employee_code, email, phone, password_hash, role.value, status.value, team_id, career_band_id),
            )
            user_id = int(cur.lastrowid)
            cur.execute("INSERT INTO profiles(user_id, full_name) VALUES(%s,%s)", (user_id, full_name))
            return user_id

    def update(self, *, user_id: int, changes: Mapping[str, Any]) -> bool:
        cols = [c for c in changes if c in _UPDATABLE_USER_COLUMNS]
        if not cols:
            return False
        assignments = ", ".join(f"{c}=%s" for c in cols)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE users SET {assignments} WHERE user_id=%s AND deleted_at IS NULL",
                tuple(_db_value(changes[c]) for c in cols) + (int(user_id),),
            )
            return cur.rowcount > 0

    def update_password(self, *, user_id: int, password_hash: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET password_hash=%s WHERE user_id=%s", (password_hash, int(user_id)))
            return cur.rowcount > 0

    def soft_delete(self, *, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE users SET deleted_at=NOW(), status=%s WHERE user_id=%s AND deleted_at IS NULL",
                (UserStatus.INACTIVE.value, int(user_id)),
            )
            return cur.rowcount > 0

    def list_users(
        self,
        *,
        page: int,
        limit: int,
        status: Optional[UserStatus] = None,
        team_id: Optional[int] = None,
        role: Optional[Role] = None,
        search: Optional[str] = None,
    ) -> tuple[Sequence[User], int]:
        clauses = ["u.deleted_at IS NULL"]
        params: list[object] = []
        if status is not None:
            clauses.append("u.status=%s")
            params.append(status.value)
        if team_id is not None:
            clauses.append("u.team_id=%s")
            params.append(int(team_id))
        if role is not None:
            clauses.append("u.role=%s")
            params.append(role.value)
        if search:
            clauses.append("(u.email LIKE %s OR u.employee_code LIKE %s OR p.full_name LIKE %s)")
            params.extend([f"%{search}%"] * 3)
        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT COUNT(*) AS total FROM users u LEFT JOIN profiles p ON p.user_id=u.user_id WHERE {where}",
                tuple(params),
            )
            total = int((fetchone(cur) or {}).get("total") or 0)
            cur.execute(
                _USER_SELECT + f" WHERE {where} ORDER BY u.user_id DESC LIMIT %s OFFSET %s",
                tuple(params + [int(limit), (int(page) - 1) * int(limit)]),
            )
            return [_to_user(r) for r in fetchall(cur)], total

    def list_active_with_band(self) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _USER_SELECT
                + " WHERE u.deleted_at IS NULL AND u.status=%s AND u.career_band_id IS NOT NULL ORDER BY u.user_id",
                (UserStatus.ACTIVE.value,),
            )
            return [_to_user(r) for r in fetchall(cur)]

    def list_by_team(self, team_id: int) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _USER_SELECT + " WHERE u.deleted_at IS NULL AND u.team_id=%s ORDER BY p.full_name",
                (int(team_id),),
            )
            return [_to_user(r) for r in fetchall(cur)]

    def list_active(self) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _USER_SELECT + " WHERE u.deleted_at IS NULL AND u.status=%s ORDER BY p.full_name",
                (UserStatus.ACTIVE.value,),
            )
            return [_to_user(r) for r in fetchall(cur)]

    def get_profile(self, user_id: int) -> Optional[Profile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT user_id, {', '.join(PROFILE_FIELDS)} FROM profiles WHERE user_id=%s",
                (int(user_id),),
            )
            row = fetchone(cur)
            if not row:
                return None
            return Profile(**{k: row.get(k) for k in ("user_id",) + PROFILE_FIELDS})

    def update_profile(self, *, user_id: int, changes: Mapping[str, Any]) -> bool:
        cols = [c for c in changes if c in PROFILE_FIELDS]
        if not cols:
            return False
        assignments = ", ".join(f"{c}=%s" for c in cols)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE profiles SET {assignments} WHERE user_id=%s",
                tuple(changes[c] for c in cols) + (int(user_id),),
            )
            return cur.rowcount > 0


class MySQLCareerBandRepository(CareerBandRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_all(self) -> Sequence[CareerBand]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT career_band_id, band_name, title, description FROM career_bands ORDER BY career_band_id")
            return [
                CareerBand(
                    career_band_id=int(r["career_band_id"]),
                    band_name=r["band_name"],
                    title=r["title"],
                    description=r.get("description"),
                )
                for r in fetchall(cur)
            ]

    def get_by_id(self, career_band_id: int) -> Optional[CareerBand]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT career_band_id, band_name, title, description FROM career_bands WHERE career_band_id=%s",
                (int(career_band_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return CareerBand(
                career_band_id=int(r["career_band_id"]),
                band_name=r["band_name"],
                title=r["title"],
                description=r.get("description"),
            )
