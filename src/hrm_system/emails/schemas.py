from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from ..core.enums import EmailStatus


class TemplateCreate(BaseModel):
    code: str = Field(min_length=1, max_length=100)
    name: str = Field(min_length=1, max_length=200)
    subject: str = Field(min_length=1, max_length=255)
    body: str = Field(min_length=1)
    variables: Optional[str] = None
    isSystem: bool = False


class TemplateUpdate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    subject: str = Field(min_length=1, max_length=255)
    body: str = Field(min_length=1)
    variables: Optional[str] = None


class SendEmail(BaseModel):
    templateId: int
    recipientEmail: str = Field(min_length=3, max_length=150)
    values: dict[str, str] = Field(default_factory=dict)


class LogQuery(BaseModel):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)
    status: Optional[EmailStatus] = None
    search: Optional[str] = None
