from __future__ import annotations

from flask import Flask

from ..api.auth import current_session
from ..api.payload import ok, parse_body, parse_query
from ..container import Container
from .schemas import ProfileChangesBody, RejectBody, ReviewQuery


def register(app: Flask, container: Container) -> None:
    guard = container.guard

    @app.put("/api/profile", endpoint="profile_update")
    @guard.login_required
    def update_profile():
        body = parse_body(ProfileChangesBody)
        s = current_session()
        result = container.profile_request_service.update_my_profile(
            current_user_id=s.user_id,
            current_role=s.role,
            changes=body.to_changes(),
        )
        if result["applied"]:
            return ok(result, message="Profile updated")
        return ok(result, status=201, message="Profile update request submitted")

    @app.get("/api/profile-requests/mine", endpoint="profile_requests_mine")
    @guard.login_required
    def my_requests():
        rows = container.profile_request_service.list_my_requests(current_user_id=current_session().user_id)
        return ok([r.to_dict() for r in rows])

    @app.get("/api/profile-requests", endpoint="profile_requests_list")
    @guard.manager_required
    def list_requests():
        q = parse_query(ReviewQuery)
        rows = container.profile_request_service.list_requests(current_role=current_session().role, status=q.status)
        return ok([r.to_dict() for r in rows])

    @app.get("/api/profile-requests/<int:request_id>", endpoint="profile_requests_get")
    @guard.login_required
    def get_request(request_id: int):
        s = current_session()
        req = container.profile_request_service.get_request(
            current_user_id=s.user_id,
            current_role=s.role,
            request_id=request_id,
        )
        return ok(req.to_dict())

    @app.post("/api/profile-requests/<int:request_id>/approve", endpoint="profile_requests_approve")
    @guard.manager_required
    def approve(request_id: int):
        s = current_session()
        req = container.profile_request_service.approve(current_user_id=s.user_id, current_role=s.role, request_id=request_id)
        return ok(req.to_dict(), message="Profile update approved")

    @app.post("/api/profile-requests/<int:request_id>/reject", endpoint="profile_requests_reject")
    @guard.manager_required
    def reject(request_id: int):
        body = parse_body(RejectBody)
        s = current_session()
        req = container.profile_request_service.reject(
            current_user_id=s.user_id,
            current_role=s.role,
            request_id=request_id,
            rejection_reason=body.rejectionReason,
        )
        return ok(req.to_dict(), message="Profile update rejected")
