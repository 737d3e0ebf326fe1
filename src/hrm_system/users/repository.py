from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence

from ..core.enums import Role, UserStatus
from .model import CareerBand, Profile, User


class UserRepository(Protocol):
    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def exists_email(self, email: str, *, exclude_user_id: Optional[int] = None) -> bool:
        raise NotImplementedError

    def exists_employee_code(self, employee_code: str, *, exclude_user_id: Optional[int] = None) -> bool:
        raise NotImplementedError

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
        """Insert the account and its profile row in one transaction."""

        raise NotImplementedError

    def update(self, *, user_id: int, changes: Mapping[str, Any]) -> bool:
        """`changes` keys are user columns: phone, role, status, team_id, career_band_id, email."""

        raise NotImplementedError

    def update_password(self, *, user_id: int, password_hash: str) -> bool:
        raise NotImplementedError

    def soft_delete(self, *, user_id: int) -> bool:
        raise NotImplementedError

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
        raise NotImplementedError

    def list_active_with_band(self) -> Sequence[User]:
        raise NotImplementedError

    def list_by_team(self, team_id: int) -> Sequence[User]:
        raise NotImplementedError

    def list_active(self) -> Sequence[User]:
        raise NotImplementedError

    def get_profile(self, user_id: int) -> Optional[Profile]:
        raise NotImplementedError

    def update_profile(self, *, user_id: int, changes: Mapping[str, Any]) -> bool:
        raise NotImplementedError


class CareerBandRepository(Protocol):
    def list_all(self) -> Sequence[CareerBand]:
        raise NotImplementedError

    def get_by_id(self, career_band_id: int) -> Optional[CareerBand]:
        raise NotImplementedError
