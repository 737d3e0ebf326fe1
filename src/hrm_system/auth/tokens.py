from __future__ import annotations

import logging
import secrets
from typing import Optional

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from ..core.constants import DEFAULT_TOKEN_MAX_AGE_SECONDS
from ..core.enums import Role
from .model import Session

logger = logging.getLogger(__name__)


class TokenSigner:
    """Issues and verifies signed bearer tokens carrying the session payload."""

    def __init__(self, secret_key: str, *, max_age_seconds: int = DEFAULT_TOKEN_MAX_AGE_SECONDS):
        self._serializer = URLSafeTimedSerializer(secret_key, salt="hrm-session")
        self._max_age = int(max_age_seconds)

    def issue(self, session: Session) -> str:
        return self._serializer.dumps(session.to_dict())

    def verify(self, token: str) -> Optional[Session]:
        if not token:
            return None
        try:
            data = self._serializer.loads(token, max_age=self._max_age)
        except SignatureExpired:
            logger.info("rejected expired bearer token")
            return None
        except BadSignature:
            return None

        try:
            return Session(
                user_id=int(data["id"]),
                email=str(data["email"]),
                role=Role(data["roleName"]),
                full_name=str(data.get("fullName") or ""),
                team_id=data.get("teamId"),
            )
        except (KeyError, TypeError, ValueError):
            return None


def new_verification_token() -> str:
    return secrets.token_urlsafe(32)
