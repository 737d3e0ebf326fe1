from __future__ import annotations

from pydantic import BaseModel, Field


class LoginBody(BaseModel):
    email: str = Field(min_length=3, max_length=150)
    password: str = Field(min_length=1)


class TokenBody(BaseModel):
    token: str = Field(min_length=1)


class EmailBody(BaseModel):
    email: str = Field(min_length=3, max_length=150)


class ChangePasswordBody(BaseModel):
    currentPassword: str = Field(min_length=1)
    newPassword: str = Field(min_length=8)


class ResetPasswordBody(BaseModel):
    token: str = Field(min_length=1)
    newPassword: str = Field(min_length=8)
