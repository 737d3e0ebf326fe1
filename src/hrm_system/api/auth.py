from __future__ import annotations

from functools import wraps

from flask import g, request

from ..auth.model import Session
from ..auth.tokens import TokenSigner
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError


def _bearer_token() -> str:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer":
        return ""
    return token.strip()


def current_session() -> Session:
    session = g.get("session")
    if session is None:
        raise AuthenticationError("Unauthorized")
    return session


class Guard:
    """Builds the per-request auth decorators used by every controller."""

    def __init__(self, signer: TokenSigner):
        self._signer = signer

    def login_required(self, view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            session = self._signer.verify(_bearer_token())
            if session is None:
                raise AuthenticationError("Unauthorized")
            g.session = session
            return view(*args, **kwargs)

        return wrapper

    def roles_required(self, *roles: Role):
        allowed = set(roles)

        def decorator(view):
            @wraps(view)
            def wrapper(*args, **kwargs):
                if current_session().role not in allowed:
                    raise AuthorizationError("You do not have permission to perform this action")
                return view(*args, **kwargs)

            return self.login_required(wrapper)

        return decorator

    def manager_required(self, view):
        return self.roles_required(Role.ADMIN, Role.HR)(view)
