from __future__ import annotations

from flask import Flask

from ..api.auth import current_session
from ..api.payload import ok, parse_body
from ..container import Container
from .schemas import ChangePasswordBody, EmailBody, LoginBody, ResetPasswordBody, TokenBody


def register(app: Flask, container: Container) -> None:
    guard = container.guard

    @app.post("/api/auth/login", endpoint="auth_login")
    def login():
        body = parse_body(LoginBody)
        token, session = container.auth_service.login(body.email, body.password)
        return ok({"token": token, "user": session.to_dict()})

    @app.get("/api/auth/me", endpoint="auth_me")
    @guard.login_required
    def me():
        user = container.auth_service.me(current_session())
        return ok(user.to_dict())

    @app.post("/api/auth/verify", endpoint="auth_verify")
    def verify_account():
        body = parse_body(TokenBody)
        return ok(container.auth_service.verify_account(body.token))

    @app.post("/api/auth/resend-verification", endpoint="auth_resend_verification")
    def resend_verification():
        body = parse_body(EmailBody)
        container.auth_service.resend_verification(body.email)
        return ok(message="Verification email sent")

    @app.post("/api/auth/change-password", endpoint="auth_change_password")
    @guard.login_required
    def change_password():
        body = parse_body(ChangePasswordBody)
        container.auth_service.change_password(
            user_id=current_session().user_id,
            current_password=body.currentPassword,
            new_password=body.newPassword,
        )
        return ok(message="Password changed")

    @app.post("/api/auth/forgot-password", endpoint="auth_forgot_password")
    def forgot_password():
        body = parse_body(EmailBody)
        container.auth_service.request_password_reset(body.email)
        return ok(message="If the email exists, a reset link has been sent")

    @app.post("/api/auth/reset-password", endpoint="auth_reset_password")
    def reset_password():
        body = parse_body(ResetPasswordBody)
        container.auth_service.reset_password(token=body.token, new_password=body.newPassword)
        return ok(message="Password has been reset")
