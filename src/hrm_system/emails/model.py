from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import EmailStatus


@dataclass(frozen=True)
class EmailTemplate:
    template_id: int
    code: str
    name: str
    subject: str
    body: str
    variables: Optional[str] = None
    is_system: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.template_id,
            "code": self.code,
            "name": self.name,
            "subject": self.subject,
            "body": self.body,
            "variables": self.variables,
            "isSystem": self.is_system,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass(frozen=True)
class EmailLog:
    log_id: int
    recipient_email: str
    subject: str
    body: Optional[str]
    status: EmailStatus
    template_id: Optional[int] = None
    sender_id: Optional[int] = None
    sent_at: Optional[datetime] = None
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.log_id,
            "templateId": self.template_id,
            "senderId": self.sender_id,
            "recipientEmail": self.recipient_email,
            "subject": self.subject,
            "body": self.body,
            "status": self.status.value,
            "sentAt": self.sent_at.isoformat() if self.sent_at else None,
            "errorMessage": self.error_message,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
