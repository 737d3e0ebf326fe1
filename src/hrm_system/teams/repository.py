from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Team


class TeamRepository(Protocol):
    def list_all(self) -> Sequence[Team]:
        raise NotImplementedError

    def get_by_id(self, team_id: int) -> Optional[Team]:
        raise NotImplementedError

    def get_by_name(self, team_name: str) -> Optional[Team]:
        raise NotImplementedError

    def list_led_by(self, user_id: int) -> Sequence[Team]:
        raise NotImplementedError

    def create(self, *, team_name: str, description: Optional[str]) -> int:
        raise NotImplementedError

    def update(self, *, team_id: int, team_name: str, description: Optional[str]) -> bool:
        raise NotImplementedError

    def soft_delete(self, *, team_id: int) -> int:
        """Delete the team, unassign its members and clear leadership. Returns affected members."""

        raise NotImplementedError

    def add_member(self, *, team_id: int, user_id: int) -> bool:
        raise NotImplementedError

    def remove_member(self, *, team_id: int, user_id: int) -> bool:
        """Unassign the user; clears leadership (and the LEADER role) when the user led the team."""

        raise NotImplementedError

    def assign_leader(self, *, team_id: int, leader_id: int, previous_leader_id: Optional[int]) -> None:
        """Set the leader, promote them to LEADER and revert the previous leader to DEV
        when they lead no other team. One transaction."""

        raise NotImplementedError
