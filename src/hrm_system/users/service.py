from __future__ import annotations

import logging
from typing import Any, Optional

from werkzeug.security import generate_password_hash

from ..auth.service import AuthService
from ..common.pagination import Page, normalize_paging
from ..common.validators import require_non_empty, require_pattern, require_strong_password
from ..core.enums import Role, UserStatus
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError
from .model import CareerBand, Profile, User
from .repository import CareerBandRepository, UserRepository

logger = logging.getLogger(__name__)

EMPLOYEE_CODE_PATTERN = r"[A-Z0-9]+"


class UserService:
    """Use cases: employee account management (ADMIN/HR) and profile reads."""

    def __init__(self, users: UserRepository, career_bands: CareerBandRepository, auth: AuthService):
        self._users = users
        self._bands = career_bands
        self._auth = auth

    @staticmethod
    def _require_manager(current_role: Role) -> None:
        if not current_role.is_manager:
            raise AuthorizationError("Only ADMIN or HR can manage users")

    def _require_band(self, career_band_id: Optional[int]) -> None:
        if career_band_id is not None and not self._bands.get_by_id(int(career_band_id)):
            raise NotFoundError("Career band not found")

    def create_user(
        self,
        *,
        current_role: Role,
        employee_code: str,
        email: str,
        password: str,
        full_name: str,
        role: Role = Role.DEV,
        phone: Optional[str] = None,
        team_id: Optional[int] = None,
        career_band_id: Optional[int] = None,
    ) -> User:
        self._require_manager(current_role)
        if role == Role.ADMIN and current_role != Role.ADMIN:
            raise AuthorizationError("Only ADMIN can create another ADMIN")

        employee_code = require_pattern(employee_code, "Employee code", EMPLOYEE_CODE_PATTERN)
        email = require_non_empty(email, "Email").lower()
        full_name = require_non_empty(full_name, "Full name")
        require_strong_password(password)

        if self._users.exists_email(email):
            raise ConflictError("Email already exists")
        if self._users.exists_employee_code(employee_code):
            raise ConflictError("Employee code already exists")
        self._require_band(career_band_id)

        user_id = self._users.create(
            employee_code=employee_code,
            email=email,
            phone=(phone or "").strip() or None,
            password_hash=generate_password_hash(password),
            role=role,
            status=UserStatus.INACTIVE,
            team_id=team_id,
            career_band_id=career_band_id,
            full_name=full_name,
        )
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")

        self._auth.issue_activation(user)
        logger.info("user %s created as %s", user_id, role.value)
        return user

    def list_users(
        self,
        *,
        current_role: Role,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        status: Optional[UserStatus] = None,
        team_id: Optional[int] = None,
        role: Optional[Role] = None,
        search: Optional[str] = None,
    ) -> Page[User]:
        self._require_manager(current_role)
        p, lim = normalize_paging(page, limit)
        rows, total = self._users.list_users(
            page=p,
            limit=lim,
            status=status,
            team_id=team_id,
            role=role,
            search=(search or "").strip() or None,
        )
        return Page(items=list(rows), total=total, page=p, limit=lim)

    def get_user(self, *, current_role: Role, current_user_id: int, user_id: int) -> User:
        if not current_role.is_manager and int(current_user_id) != int(user_id):
            raise AuthorizationError("You can only view your own account")
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found")
        return user

    def update_user(self, *, current_role: Role, user_id: int, changes: dict[str, Any]) -> User:
        """`changes` holds only the fields sent by the client."""
        self._require_manager(current_role)
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found")

        if "email" in changes:
            changes["email"] = require_non_empty(changes["email"], "Email").lower()
            if self._users.exists_email(changes["email"], exclude_user_id=user.user_id):
                raise ConflictError("Email already exists")
        if "role" in changes and changes["role"] == Role.ADMIN and current_role != Role.ADMIN:
            raise AuthorizationError("Only ADMIN can grant the ADMIN role")
        if "career_band_id" in changes:
            self._require_band(changes["career_band_id"])

        full_name = changes.pop("full_name", None)
        if changes:
            self._users.update(user_id=user.user_id, changes=changes)
        if full_name is not None:
            self._users.update_profile(user_id=user.user_id, changes={"full_name": require_non_empty(full_name, "Full name")})

        updated = self._users.get_by_id(user.user_id)
        if not updated:
            raise NotFoundError("User not found")
        return updated

    def delete_user(self, *, current_role: Role, current_user_id: int, user_id: int) -> None:
        self._require_manager(current_role)
        if int(current_user_id) == int(user_id):
            raise ConflictError("You cannot delete your own account")
        if not self._users.soft_delete(user_id=int(user_id)):
            raise NotFoundError("User not found")

    def get_profile(self, *, user_id: int) -> Profile:
        profile = self._users.get_profile(int(user_id))
        if not profile:
            raise NotFoundError("Profile not found")
        return profile

    def list_career_bands(self) -> list[CareerBand]:
        return list(self._bands.list_all())
