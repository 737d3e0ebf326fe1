from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from ..core.enums import VerificationType
from .model import VerificationToken


class VerificationTokenRepository(Protocol):
    def create(self, *, user_id: int, token: str, type: VerificationType, expires_at: datetime) -> int:
        raise NotImplementedError

    def find_active(self, *, token: str, type: VerificationType) -> Optional[VerificationToken]:
        """Token that has not been consumed yet (expiry is checked by the caller)."""

        raise NotImplementedError

    def invalidate_for_user(self, *, user_id: int, type: VerificationType) -> None:
        raise NotImplementedError

    def activate_user(self, *, user_id: int, token_id: int) -> None:
        """Set the user ACTIVE and consume the token atomically."""

        raise NotImplementedError

    def reset_password(self, *, user_id: int, token_id: int, password_hash: str) -> None:
        """Store the new hash and consume the token atomically."""

        raise NotImplementedError
