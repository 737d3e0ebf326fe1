from __future__ import annotations

import logging

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DomainError,
    IncompleteDataError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger("api")

_STATUS = [
    (ValidationError, 400, "VALIDATION_ERROR"),
    (AuthenticationError, 401, "UNAUTHENTICATED"),
    (AuthorizationError, 403, "FORBIDDEN"),
    (NotFoundError, 404, "NOT_FOUND"),
    (ConflictError, 409, "CONFLICT"),
    (IncompleteDataError, 422, "INCOMPLETE_DATA"),
]


def err(code: str, message: str, *, http_status: int, **extra):
    body = {"success": False, "error": code, "message": message}
    body.update(extra)
    return jsonify(body), http_status


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def domain_error(e: DomainError):
        for exc_type, status, code in _STATUS:
            if isinstance(e, exc_type):
                if isinstance(e, IncompleteDataError):
                    return err(code, str(e), http_status=status, missing=e.missing)
                return err(code, str(e), http_status=status)
        return err("BAD_REQUEST", str(e), http_status=400)

    @app.errorhandler(404)
    def not_found(_e):
        return err("NOT_FOUND", f"Unknown endpoint: {request.path}", http_status=404)

    @app.errorhandler(405)
    def method_not_allowed(_e):
        return err("BAD_REQUEST", "Method not allowed", http_status=405)

    @app.errorhandler(Exception)
    def unexpected(e: Exception):
        if isinstance(e, HTTPException):
            return err("HTTP_ERROR", e.description or e.name, http_status=e.code or 500)
        logger.exception("%s %s failed: %s", request.method, request.path, e)
        return err("INTERNAL", "Internal server error", http_status=500)
