from __future__ import annotations

import logging
from typing import Callable, Mapping, Optional

from ..common.datetime_utils import now_local
from ..common.pagination import Page, normalize_paging
from ..common.validators import require_non_empty, require_pattern
from ..core.enums import EmailStatus, Role
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from .model import EmailLog, EmailTemplate
from .placeholders import missing_placeholders, render
from .repository import EmailLogRepository, EmailTemplateRepository
from .sender import EmailSender

logger = logging.getLogger(__name__)

TEMPLATE_CODE_PATTERN = r"[A-Z_]+"


def _require_manager(current_role: Role) -> None:
    if not current_role.is_manager:
        raise AuthorizationError("Only ADMIN or HR can manage emails")


class EmailTemplateService:
    """Use cases: CRUD of email templates (ADMIN/HR)."""

    def __init__(self, templates: EmailTemplateRepository):
        self._templates = templates

    def list_templates(self, *, current_role: Role, search: Optional[str] = None) -> list[EmailTemplate]:
        _require_manager(current_role)
        return list(self._templates.list_all(search=(search or "").strip() or None))

    def get_template(self, *, current_role: Role, template_id: int) -> EmailTemplate:
        _require_manager(current_role)
        tpl = self._templates.get_by_id(int(template_id))
        if not tpl:
            raise NotFoundError("Email template not found")
        return tpl

    def create_template(
        self,
        *,
        current_role: Role,
        code: str,
        name: str,
        subject: str,
        body: str,
        variables: Optional[str] = None,
        is_system: bool = False,
    ) -> EmailTemplate:
        _require_manager(current_role)
        code = require_pattern(code, "Template code", TEMPLATE_CODE_PATTERN)
        if self._templates.get_by_code(code):
            raise ConflictError(f"Template code {code} already exists")

        template_id = self._templates.create(
            code=code,
            name=require_non_empty(name, "Name"),
            subject=require_non_empty(subject, "Subject"),
            body=require_non_empty(body, "Body"),
            variables=variables,
            is_system=bool(is_system),
        )
        return self.get_template(current_role=current_role, template_id=template_id)

    def update_template(
        self,
        *,
        current_role: Role,
        template_id: int,
        name: str,
        subject: str,
        body: str,
        variables: Optional[str] = None,
    ) -> EmailTemplate:
        """Code and isSystem are immutable; only the content can change."""
        existing = self.get_template(current_role=current_role, template_id=template_id)
        self._templates.update(
            template_id=existing.template_id,
            name=require_non_empty(name, "Name"),
            subject=require_non_empty(subject, "Subject"),
            body=require_non_empty(body, "Body"),
            variables=variables,
        )
        return self.get_template(current_role=current_role, template_id=existing.template_id)

    def delete_template(self, *, current_role: Role, template_id: int) -> None:
        existing = self.get_template(current_role=current_role, template_id=template_id)
        if existing.is_system:
            raise ConflictError("System templates cannot be deleted")
        self._templates.soft_delete(template_id=existing.template_id)


class EmailService:
    """Sends template-driven emails and records every attempt in the email log."""

    def __init__(
        self,
        templates: EmailTemplateRepository,
        logs: EmailLogRepository,
        sender: EmailSender,
        *,
        clock: Callable = now_local,
    ):
        self._templates = templates
        self._logs = logs
        self._sender = sender
        self._clock = clock

    def _deliver(
        self,
        *,
        template: Optional[EmailTemplate],
        sender_id: Optional[int],
        recipient_email: str,
        subject: str,
        body: str,
    ) -> EmailLog:
        status = EmailStatus.SENT
        sent_at = None
        error_message = None
        try:
            self._sender.send(to=recipient_email, subject=subject, body=body)
            sent_at = self._clock()
        except Exception as e:  # delivery failures are recorded, never raised
            logger.warning("email to %s failed: %s", recipient_email, e)
            status = EmailStatus.FAILED
            error_message = str(e) or e.__class__.__name__

        log_id = self._logs.create(
            template_id=template.template_id if template else None,
            sender_id=sender_id,
            recipient_email=recipient_email,
            subject=subject,
            body=body,
            status=status,
            sent_at=sent_at,
            error_message=error_message,
        )
        return EmailLog(
            log_id=log_id,
            template_id=template.template_id if template else None,
            sender_id=sender_id,
            recipient_email=recipient_email,
            subject=subject,
            body=body,
            status=status,
            sent_at=sent_at,
            error_message=error_message,
        )

    def send_from_template(
        self,
        *,
        current_role: Role,
        sender_id: int,
        template_id: int,
        recipient_email: str,
        values: Mapping[str, object],
    ) -> EmailLog:
        _require_manager(current_role)
        template = self._templates.get_by_id(int(template_id))
        if not template:
            raise NotFoundError("Email template not found")

        recipient_email = require_non_empty(recipient_email, "Recipient email")
        missing = missing_placeholders(template.body, values)
        if missing:
            raise ValidationError(f"Missing required placeholders: {', '.join(missing)}")

        return self._deliver(
            template=template,
            sender_id=int(sender_id),
            recipient_email=recipient_email,
            subject=render(template.subject, values),
            body=render(template.body, values),
        )

    def send_system(
        self,
        *,
        template_code: str,
        recipient_email: str,
        values: Mapping[str, object],
        sender_id: Optional[int] = None,
    ) -> Optional[EmailLog]:
        """Send on behalf of a business action. Returns None when the template is missing."""
        template = self._templates.get_by_code(template_code)
        if not template:
            logger.warning("email template %s not found, skipping send to %s", template_code, recipient_email)
            return None

        return self._deliver(
            template=template,
            sender_id=sender_id,
            recipient_email=recipient_email,
            subject=render(template.subject, values),
            body=render(template.body, values),
        )

    def list_logs(
        self,
        *,
        current_role: Role,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        status: Optional[EmailStatus] = None,
        search: Optional[str] = None,
    ) -> Page[EmailLog]:
        _require_manager(current_role)
        p, lim = normalize_paging(page, limit)
        rows, total = self._logs.list_logs(page=p, limit=lim, status=status, search=(search or "").strip() or None)
        return Page(items=list(rows), total=total, page=p, limit=lim)

    def get_log(self, *, current_role: Role, log_id: int) -> EmailLog:
        _require_manager(current_role)
        log = self._logs.get_by_id(int(log_id))
        if not log:
            raise NotFoundError("Email log not found")
        return log
