from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import EmailStatus
from .model import EmailLog, EmailTemplate


class EmailTemplateRepository(Protocol):
    def list_all(self, *, search: Optional[str] = None) -> Sequence[EmailTemplate]:
        raise NotImplementedError

    def get_by_id(self, template_id: int) -> Optional[EmailTemplate]:
        raise NotImplementedError

    def get_by_code(self, code: str) -> Optional[EmailTemplate]:
        raise NotImplementedError

    def create(
        self,
        *,
        code: str,
        name: str,
        subject: str,
        body: str,
        variables: Optional[str],
        is_system: bool,
    ) -> int:
        raise NotImplementedError

    def update(
        self,
        *,
        template_id: int,
        name: str,
        subject: str,
        body: str,
        variables: Optional[str],
    ) -> bool:
        raise NotImplementedError

    def soft_delete(self, *, template_id: int) -> bool:
        raise NotImplementedError


class EmailLogRepository(Protocol):
    def create(
        self,
        *,
        template_id: Optional[int],
        sender_id: Optional[int],
        recipient_email: str,
        subject: str,
        body: str,
        status: EmailStatus,
        sent_at: Optional[datetime],
        error_message: Optional[str],
    ) -> int:
        raise NotImplementedError

    def get_by_id(self, log_id: int) -> Optional[EmailLog]:
        raise NotImplementedError

    def list_logs(
        self,
        *,
        page: int,
        limit: int,
        status: Optional[EmailStatus] = None,
        search: Optional[str] = None,
    ) -> tuple[Sequence[EmailLog], int]:
        """Return (rows of the page, total count)."""

        raise NotImplementedError
