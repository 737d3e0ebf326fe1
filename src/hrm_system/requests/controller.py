from __future__ import annotations

from flask import Flask

from ..api.auth import current_session
from ..api.payload import ok, parse_body, parse_query
from ..container import Container
from .schemas import RejectBody, RequestBody, RequestQuery


def register(app: Flask, container: Container) -> None:
    guard = container.guard

    @app.post("/api/requests", endpoint="requests_create")
    @guard.login_required
    def create_request():
        body = parse_body(RequestBody)
        req = container.request_service.create_request(current_user_id=current_session().user_id, draft=body.to_draft())
        return ok(req.to_dict(), status=201)

    @app.get("/api/requests/sent", endpoint="requests_sent")
    @guard.login_required
    def list_sent():
        q = parse_query(RequestQuery)
        rows = container.request_service.list_sent(current_user_id=current_session().user_id, status=q.status, type=q.type)
        return ok([r.to_dict() for r in rows])

    @app.get("/api/requests/received", endpoint="requests_received")
    @guard.login_required
    def list_received():
        s = current_session()
        rows = container.request_service.list_received(current_user_id=s.user_id, current_role=s.role)
        return ok([r.to_dict() for r in rows])

    @app.get("/api/requests/<int:request_id>", endpoint="requests_get")
    @guard.login_required
    def get_request(request_id: int):
        s = current_session()
        req = container.request_service.get_request(current_user_id=s.user_id, current_role=s.role, request_id=request_id)
        return ok(req.to_dict())

    @app.put("/api/requests/<int:request_id>", endpoint="requests_update")
    @guard.login_required
    def update_request(request_id: int):
        body = parse_body(RequestBody)
        req = container.request_service.update_request(
            current_user_id=current_session().user_id,
            request_id=request_id,
            draft=body.to_draft(),
        )
        return ok(req.to_dict())

    @app.delete("/api/requests/<int:request_id>", endpoint="requests_cancel")
    @guard.login_required
    def cancel_request(request_id: int):
        container.request_service.cancel_request(current_user_id=current_session().user_id, request_id=request_id)
        return ok(message="Request cancelled")

    @app.post("/api/requests/<int:request_id>/approve", endpoint="requests_approve")
    @guard.login_required
    def approve_request(request_id: int):
        s = current_session()
        req = container.request_service.approve_request(current_user_id=s.user_id, current_role=s.role, request_id=request_id)
        return ok(req.to_dict(), message="Request approved")

    @app.post("/api/requests/<int:request_id>/reject", endpoint="requests_reject")
    @guard.login_required
    def reject_request(request_id: int):
        body = parse_body(RejectBody)
        s = current_session()
        req = container.request_service.reject_request(
            current_user_id=s.user_id,
            current_role=s.role,
            request_id=request_id,
            rejection_reason=body.rejectionReason,
        )
        return ok(req.to_dict(), message="Request rejected")
