from __future__ import annotations

from flask import Flask

from ..api.auth import current_session
from ..api.payload import ok, parse_body, parse_query
from ..container import Container
from .schemas import UserCreate, UserQuery, UserUpdate


def register(app: Flask, container: Container) -> None:
    guard = container.guard

    @app.get("/api/users", endpoint="users_list")
    @guard.manager_required
    def list_users():
        q = parse_query(UserQuery)
        page = container.user_service.list_users(
            current_role=current_session().role,
            page=q.page,
            limit=q.limit,
            status=q.status,
            team_id=q.teamId,
            role=q.roleName,
            search=q.search,
        )
        return ok(page.to_dict([u.to_dict() for u in page.items]))

    @app.post("/api/users", endpoint="users_create")
    @guard.manager_required
    def create_user():
        body = parse_body(UserCreate)
        user = container.user_service.create_user(
            current_role=current_session().role,
            employee_code=body.employeeCode,
            email=body.email,
            password=body.password,
            full_name=body.fullName,
            role=body.roleName,
            phone=body.phone,
            team_id=body.teamId,
            career_band_id=body.careerBandId,
        )
        return ok(user.to_dict(), status=201, message="User created, verification email sent")

    @app.get("/api/users/<int:user_id>", endpoint="users_get")
    @guard.login_required
    def get_user(user_id: int):
        s = current_session()
        user = container.user_service.get_user(current_role=s.role, current_user_id=s.user_id, user_id=user_id)
        return ok(user.to_dict())

    @app.put("/api/users/<int:user_id>", endpoint="users_update")
    @guard.manager_required
    def update_user(user_id: int):
        body = parse_body(UserUpdate)
        user = container.user_service.update_user(
            current_role=current_session().role,
            user_id=user_id,
            changes=body.to_changes(),
        )
        return ok(user.to_dict())

    @app.delete("/api/users/<int:user_id>", endpoint="users_delete")
    @guard.manager_required
    def delete_user(user_id: int):
        s = current_session()
        container.user_service.delete_user(current_role=s.role, current_user_id=s.user_id, user_id=user_id)
        return ok(message="User deleted")

    @app.get("/api/profile", endpoint="profile_me")
    @guard.login_required
    def my_profile():
        profile = container.user_service.get_profile(user_id=current_session().user_id)
        return ok(profile.to_dict())

    @app.get("/api/career-bands", endpoint="career_bands_list")
    @guard.login_required
    def list_career_bands():
        return ok([b.to_dict() for b in container.user_service.list_career_bands()])
