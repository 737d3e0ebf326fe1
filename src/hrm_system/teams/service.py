from __future__ import annotations

import logging
from typing import Optional

from ..common.validators import require_non_empty
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..users.model import User
from ..users.repository import UserRepository
from .model import Team
from .repository import TeamRepository

logger = logging.getLogger(__name__)


class TeamService:
    """Use cases: teams, membership and leader assignment."""

    def __init__(self, teams: TeamRepository, users: UserRepository):
        self._teams = teams
        self._users = users

    @staticmethod
    def _require_manager(current_role: Role) -> None:
        if not current_role.is_manager:
            raise AuthorizationError("Only ADMIN or HR can manage teams")

    def _get_team(self, team_id: int) -> Team:
        team = self._teams.get_by_id(int(team_id))
        if not team:
            raise NotFoundError("Team not found")
        return team

    def _get_user(self, user_id: int) -> User:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found")
        return user

    def list_teams(self) -> list[Team]:
        return list(self._teams.list_all())

    def get_team(self, *, team_id: int) -> dict:
        team = self._get_team(team_id)
        members = self._users.list_by_team(team.team_id)
        return {**team.to_dict(), "members": [m.to_dict() for m in members]}

    def get_my_team(self, *, team_id: Optional[int]) -> Optional[dict]:
        if team_id is None:
            return None
        return self.get_team(team_id=team_id)

    def create_team(
        self,
        *,
        current_role: Role,
        team_name: str,
        description: Optional[str] = None,
        leader_id: Optional[int] = None,
    ) -> Team:
        self._require_manager(current_role)
        team_name = require_non_empty(team_name, "Team name")
        if self._teams.get_by_name(team_name):
            raise ConflictError("Team name already exists")
        if leader_id is not None:
            self._get_user(leader_id)

        team_id = self._teams.create(team_name=team_name, description=(description or "").strip() or None)
        if leader_id is not None:
            self._teams.add_member(team_id=team_id, user_id=int(leader_id))
            self._teams.assign_leader(team_id=team_id, leader_id=int(leader_id), previous_leader_id=None)
        return self._get_team(team_id)

    def update_team(self, *, current_role: Role, team_id: int, team_name: str, description: Optional[str] = None) -> Team:
        self._require_manager(current_role)
        team = self._get_team(team_id)
        team_name = require_non_empty(team_name, "Team name")
        other = self._teams.get_by_name(team_name)
        if other and other.team_id != team.team_id:
            raise ConflictError("Team name already exists")
        self._teams.update(team_id=team.team_id, team_name=team_name, description=(description or "").strip() or None)
        return self._get_team(team.team_id)

    def delete_team(self, *, current_role: Role, team_id: int) -> int:
        self._require_manager(current_role)
        team = self._get_team(team_id)
        affected = self._teams.soft_delete(team_id=team.team_id)
        logger.info("team %s deleted, %s members unassigned", team.team_id, affected)
        return affected

    def add_member(self, *, current_role: Role, team_id: int, user_id: int) -> None:
        self._require_manager(current_role)
        team = self._get_team(team_id)
        user = self._get_user(user_id)
        if user.team_id == team.team_id:
            raise ConflictError("User is already a member of this team")
        if self._teams.list_led_by(user.user_id):
            raise ConflictError("User leads another team; assign a new leader there first")
        self._teams.add_member(team_id=team.team_id, user_id=user.user_id)

    def remove_member(self, *, current_role: Role, team_id: int, user_id: int) -> None:
        self._require_manager(current_role)
        team = self._get_team(team_id)
        user = self._get_user(user_id)
        if user.team_id != team.team_id:
            raise ValidationError("User is not a member of this team")
        self._teams.remove_member(team_id=team.team_id, user_id=user.user_id)

    def assign_leader(self, *, current_role: Role, team_id: int, user_id: int) -> Team:
        self._require_manager(current_role)
        team = self._get_team(team_id)
        user = self._get_user(user_id)
        if user.team_id != team.team_id:
            raise ValidationError("Leader must be a member of the team")
        if team.leader_id == user.user_id:
            raise ConflictError("User is already the leader of this team")

        self._teams.assign_leader(team_id=team.team_id, leader_id=user.user_id, previous_leader_id=team.leader_id)
        logger.info("team %s leader %s -> %s", team.team_id, team.leader_id, user.user_id)
        return self._get_team(team.team_id)
