from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Team
from .repository import TeamRepository

_TEAM_SELECT = """
    SELECT t.team_id, t.team_name, t.description, t.leader_id, t.created_at,
           lp.full_name AS leader_name,
           (SELECT COUNT(*) FROM users m WHERE m.team_id = t.team_id AND m.deleted_at IS NULL) AS member_count
    FROM teams t
    LEFT JOIN profiles lp ON lp.user_id = t.leader_id
"""

# Demote a former leader who no longer leads any team
_REVERT_LEADER_ROLE = """
    UPDATE users SET role=%s
    WHERE user_id=%s AND role=%s
      AND NOT EXISTS (SELECT 1 FROM teams WHERE leader_id=%s AND deleted_at IS NULL)
"""


def _to_team(r: dict) -> Team:
    return Team(
        team_id=int(r["team_id"]),
        team_name=r["team_name"],
        description=r.get("description"),
        leader_id=r.get("leader_id"),
        leader_name=r.get("leader_name"),
        member_count=int(r.get("member_count") or 0),
        created_at=r.get("created_at"),
    )


def _revert_leader(cur, user_id: int) -> None:
    cur.execute(_REVERT_LEADER_ROLE, (Role.DEV.value, int(user_id), Role.LEADER.value, int(user_id)))


class MySQLTeamRepository(TeamRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_all(self) -> Sequence[Team]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_TEAM_SELECT + " WHERE t.deleted_at IS NULL ORDER BY t.team_name")
            return [_to_team(r) for r in fetchall(cur)]

    def get_by_id(self, team_id: int) -> Optional[Team]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_TEAM_SELECT + " WHERE t.team_id=%s AND t.deleted_at IS NULL", (int(team_id),))
            r = fetchone(cur)
            return _to_team(r) if r else None

    def get_by_name(self, team_name: str) -> Optional[Team]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_TEAM_SELECT + " WHERE t.team_name=%s AND t.deleted_at IS NULL", (team_name,))
            r = fetchone(cur)
            return _to_team(r) if r else None

    def list_led_by(self, user_id: int) -> Sequence[Team]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_TEAM_SELECT + " WHERE t.leader_id=%s AND t.deleted_at IS NULL", (int(user_id),))
            return [_to_team(r) for r in fetchall(cur)]

    def create(self, *, team_name: str, description: Optional[str]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("INSERT INTO teams(team_name, description) VALUES(%s,%s)", (team_name, description))
            return int(cur.lastrowid)

    def update(self, *, team_id: int, team_name: str, description: Optional[str]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE teams SET team_name=%s, description=%s WHERE team_id=%s AND deleted_at IS NULL",
                (team_name, description, int(team_id)),
            )
            return cur.rowcount > 0

    def soft_delete(self, *, team_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT leader_id FROM teams WHERE team_id=%s FOR UPDATE", (int(team_id),))
            row = fetchone(cur) or {}
            leader_id = row.get("leader_id")

            cur.execute("UPDATE users SET team_id=NULL WHERE team_id=%s", (int(team_id),))
            affected = int(cur.rowcount)
            cur.execute(
                "UPDATE teams SET leader_id=NULL, deleted_at=NOW() WHERE team_id=%s AND deleted_at IS NULL",
                (int(team_id),),
            )
            if leader_id is not None:
                _revert_leader(cur, int(leader_id))
            return affected

    def add_member(self, *, team_id: int, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE users SET team_id=%s WHERE user_id=%s AND deleted_at IS NULL",
                (int(team_id), int(user_id)),
            )
            return cur.rowcount > 0

    def remove_member(self, *, team_id: int, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE users SET team_id=NULL WHERE user_id=%s AND team_id=%s",
                (int(user_id), int(team_id)),
            )
            removed = cur.rowcount > 0
            cur.execute(
                "UPDATE teams SET leader_id=NULL WHERE team_id=%s AND leader_id=%s",
                (int(team_id), int(user_id)),
            )
            if cur.rowcount > 0:
                _revert_leader(cur, int(user_id))
            return removed

    def assign_leader(self, *, team_id: int, leader_id: int, previous_leader_id: Optional[int]) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE teams SET leader_id=%s WHERE team_id=%s", (int(leader_id), int(team_id)))
            # ADMIN/HR keep their role when they lead a team
            cur.execute(
                "UPDATE users SET role=%s WHERE user_id=%s AND role=%s",
                (Role.LEADER.value, int(leader_id), Role.DEV.value),
            )
            if previous_leader_id is not None and int(previous_leader_id) != int(leader_id):
                _revert_leader(cur, int(previous_leader_id))
