from __future__ import annotations

import logging
from datetime import timedelta
from typing import Callable

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.datetime_utils import now_local
from ..common.validators import require_non_empty, require_strong_password
from ..core.constants import (
    ACTIVATION_TOKEN_HOURS,
    RESET_PASSWORD_TOKEN_MINUTES,
    TEMPLATE_ACCOUNT_ACTIVATION,
    TEMPLATE_RESET_PASSWORD,
)
from ..core.enums import UserStatus, VerificationType
from ..core.exceptions import AuthenticationError, ConflictError, NotFoundError, ValidationError
from ..emails.service import EmailService
from ..users.model import User
from ..users.repository import UserRepository
from .model import Session
from .repository import VerificationTokenRepository
from .tokens import TokenSigner, new_verification_token

logger = logging.getLogger(__name__)


class AuthService:
    """Use cases: login, account verification and password management."""

    def __init__(
        self,
        users: UserRepository,
        tokens: VerificationTokenRepository,
        emails: EmailService,
        signer: TokenSigner,
        *,
        app_url: str = "",
        clock: Callable = now_local,
    ):
        self._users = users
        self._tokens = tokens
        self._emails = emails
        self._signer = signer
        self._app_url = (app_url or "").rstrip("/")
        self._clock = clock

    @staticmethod
    def _password_matches(password_hash: str, password: str) -> bool:
        try:
            return check_password_hash(password_hash, password)
        except ValueError:
            # placeholder or corrupted hashes
            return False

    @staticmethod
    def session_for(user: User) -> Session:
        return Session(
            user_id=user.user_id,
            email=user.email,
            role=user.role,
            full_name=user.full_name,
            team_id=user.team_id,
        )

    def login(self, email: str, password: str) -> tuple[str, Session]:
        user = self._users.get_by_email((email or "").strip().lower())
        if not user or not user.is_active:
            raise AuthenticationError("Invalid email or password")
        if not self._password_matches(user.password_hash, password or ""):
            raise AuthenticationError("Invalid email or password")

        session = self.session_for(user)
        return self._signer.issue(session), session

    def issue_activation(self, user: User) -> None:
        token = new_verification_token()
        self._tokens.invalidate_for_user(user_id=user.user_id, type=VerificationType.ACTIVATION)
        self._tokens.create(
            user_id=user.user_id,
            token=token,
            type=VerificationType.ACTIVATION,
            expires_at=self._clock() + timedelta(hours=ACTIVATION_TOKEN_HOURS),
        )
        self._emails.send_system(
            template_code=TEMPLATE_ACCOUNT_ACTIVATION,
            recipient_email=user.email,
            values={"fullName": user.full_name, "link": f"{self._app_url}/verify?token={token}"},
        )

    def verify_account(self, token: str) -> dict:
        token = require_non_empty(token, "Token")
        record = self._tokens.find_active(token=token, type=VerificationType.ACTIVATION)
        if not record or record.is_expired(self._clock()):
            raise ValidationError("Verification link is invalid or has expired")

        user = self._users.get_by_id(record.user_id)
        if not user:
            raise NotFoundError("User not found")
        if user.is_active:
            return {"alreadyVerified": True, "email": user.email}

        self._tokens.activate_user(user_id=user.user_id, token_id=record.token_id)
        logger.info("user %s activated", user.user_id)
        return {"alreadyVerified": False, "email": user.email}

    def resend_verification(self, email: str) -> None:
        user = self._users.get_by_email((email or "").strip().lower())
        if not user:
            raise NotFoundError("User not found")
        if user.is_active:
            raise ConflictError("Account is already verified")
        self.issue_activation(user)

    def change_password(self, *, user_id: int, current_password: str, new_password: str) -> None:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found")
        if not self._password_matches(user.password_hash, current_password or ""):
            raise ValidationError("Current password is incorrect")
        require_strong_password(new_password)
        self._users.update_password(user_id=user.user_id, password_hash=generate_password_hash(new_password))

    def request_password_reset(self, email: str) -> None:
        """Silent for unknown or inactive emails."""
        user = self._users.get_by_email((email or "").strip().lower())
        if not user or not user.is_active:
            logger.info("password reset requested for unknown or inactive email")
            return

        token = new_verification_token()
        self._tokens.invalidate_for_user(user_id=user.user_id, type=VerificationType.RESET_PASSWORD)
        self._tokens.create(
            user_id=user.user_id,
            token=token,
            type=VerificationType.RESET_PASSWORD,
            expires_at=self._clock() + timedelta(minutes=RESET_PASSWORD_TOKEN_MINUTES),
        )
        self._emails.send_system(
            template_code=TEMPLATE_RESET_PASSWORD,
            recipient_email=user.email,
            values={"fullName": user.full_name, "link": f"{self._app_url}/reset-password?token={token}"},
        )

    def reset_password(self, *, token: str, new_password: str) -> None:
        token = require_non_empty(token, "Token")
        record = self._tokens.find_active(token=token, type=VerificationType.RESET_PASSWORD)
        if not record or record.is_expired(self._clock()):
            raise ValidationError("Reset link is invalid or has expired")
        require_strong_password(new_password)
        self._tokens.reset_password(
            user_id=record.user_id,
            token_id=record.token_id,
            password_hash=generate_password_hash(new_password),
        )

    def me(self, session: Session) -> User:
        user = self._users.get_by_id(session.user_id)
        if not user or user.status != UserStatus.ACTIVE:
            raise AuthenticationError("Session is no longer valid")
        return user
