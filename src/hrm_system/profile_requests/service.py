from __future__ import annotations

import logging
from datetime import date
from typing import Any, Mapping, Optional

from ..common.datetime_utils import parse_iso_date
from ..common.validators import require_length, require_non_empty
from ..core.constants import REASON_MAX_LENGTH, REASON_MIN_LENGTH
from ..core.enums import RequestStatus, Role
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..users.model import PROFILE_DATE_FIELDS, PROFILE_FIELDS, Profile
from ..users.repository import UserRepository
from .model import ProfileUpdateRequest
from .repository import ProfileRequestRepository

logger = logging.getLogger(__name__)


def _clean(name: str, value: Any) -> Any:
    if name == "full_name":
        return require_non_empty(value, "Full name")
    if name in PROFILE_DATE_FIELDS:
        if value is None or value == "":
            return None
        if isinstance(value, date):
            return value
        try:
            return parse_iso_date(str(value))
        except ValueError:
            raise ValidationError(f"{name} must be a date (YYYY-MM-DD)")
    if value is None:
        return None
    return str(value).strip() or None


def _to_json(value: Any) -> Any:
    return value.isoformat() if isinstance(value, date) else value


def diff_profile(profile: Profile, changes: Mapping[str, Any]) -> tuple[dict[str, Any], dict[str, Any]]:
    """(new values, previous values) for the fields that actually change."""
    unknown = sorted(set(changes) - set(PROFILE_FIELDS))
    if unknown:
        raise ValidationError(f"Unknown profile fields: {', '.join(unknown)}")

    new: dict[str, Any] = {}
    previous: dict[str, Any] = {}
    for name, raw in changes.items():
        value = _clean(name, raw)
        current = getattr(profile, name)
        if value == current:
            continue
        new[name] = value
        previous[name] = current
    return new, previous


class ProfileRequestService:
    """Use cases: profile edits, applied directly for ADMIN/HR and reviewed for everybody else."""

    def __init__(self, requests: ProfileRequestRepository, users: UserRepository):
        self._requests = requests
        self._users = users

    @staticmethod
    def _require_reviewer(current_role: Role) -> None:
        if not current_role.is_manager:
            raise AuthorizationError("Only ADMIN or HR can review profile requests")

    def _get(self, request_id: int) -> ProfileUpdateRequest:
        req = self._requests.get_by_id(int(request_id))
        if not req:
            raise NotFoundError("Profile update request not found")
        return req

    def update_my_profile(self, *, current_user_id: int, current_role: Role, changes: Mapping[str, Any]) -> dict:
        profile = self._users.get_profile(int(current_user_id))
        if not profile:
            raise NotFoundError("Profile not found")
        new, previous = diff_profile(profile, changes)
        if not new:
            raise ValidationError("No changes to submit")

        if current_role.is_manager:
            self._users.update_profile(user_id=int(current_user_id), changes=new)
            updated = self._users.get_profile(int(current_user_id))
            return {"applied": True, "profile": updated.to_dict() if updated else None}

        if self._requests.find_pending_for_user(int(current_user_id)):
            raise ConflictError("You already have a pending profile update request")

        request_id = self._requests.create(
            user_id=int(current_user_id),
            data_changes={k: _to_json(v) for k, v in new.items()},
            previous_data={k: _to_json(v) for k, v in previous.items()},
        )
        logger.info("profile update request %s created by user %s", request_id, current_user_id)
        return {"applied": False, "request": self._get(request_id).to_dict()}

    def list_my_requests(self, *, current_user_id: int) -> list[ProfileUpdateRequest]:
        return list(self._requests.list_requests(user_id=int(current_user_id)))

    def list_requests(self, *, current_role: Role, status: Optional[RequestStatus] = None) -> list[ProfileUpdateRequest]:
        self._require_reviewer(current_role)
        return list(self._requests.list_requests(status=status))

    def get_request(self, *, current_user_id: int, current_role: Role, request_id: int) -> ProfileUpdateRequest:
        req = self._get(request_id)
        if req.user_id != int(current_user_id) and not current_role.is_manager:
            raise AuthorizationError("You are not allowed to view this request")
        return req

    def _pending(self, request_id: int) -> ProfileUpdateRequest:
        req = self._get(request_id)
        if req.status != RequestStatus.PENDING:
            raise ConflictError("Only pending requests can be reviewed")
        return req

    def approve(self, *, current_user_id: int, current_role: Role, request_id: int) -> ProfileUpdateRequest:
        self._require_reviewer(current_role)
        req = self._pending(request_id)
        profile_changes = {k: _clean(k, v) for k, v in req.data_changes.items() if k in PROFILE_FIELDS}
        if not self._requests.approve(
            request_id=req.request_id,
            reviewer_id=int(current_user_id),
            profile_changes=profile_changes,
        ):
            raise ConflictError("Request was reviewed meanwhile")
        logger.info("profile update request %s approved by user %s", req.request_id, current_user_id)
        return self._get(req.request_id)

    def reject(
        self,
        *,
        current_user_id: int,
        current_role: Role,
        request_id: int,
        rejection_reason: str,
    ) -> ProfileUpdateRequest:
        self._require_reviewer(current_role)
        reason = require_length(rejection_reason, "Rejection reason", REASON_MIN_LENGTH, REASON_MAX_LENGTH)
        req = self._pending(request_id)
        if not self._requests.reject(request_id=req.request_id, reviewer_id=int(current_user_id), rejection_reason=reason):
            raise ConflictError("Request was reviewed meanwhile")
        return self._get(req.request_id)
