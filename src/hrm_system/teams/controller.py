from __future__ import annotations

from flask import Flask

from ..api.auth import current_session
from ..api.payload import ok, parse_body
from ..container import Container
from .schemas import MemberBody, TeamCreate, TeamUpdate


def register(app: Flask, container: Container) -> None:
    guard = container.guard

    @app.get("/api/teams", endpoint="teams_list")
    @guard.login_required
    def list_teams():
        return ok([t.to_dict() for t in container.team_service.list_teams()])

    @app.get("/api/teams/mine", endpoint="teams_mine")
    @guard.login_required
    def my_team():
        user = container.auth_service.me(current_session())
        return ok(container.team_service.get_my_team(team_id=user.team_id))

    @app.get("/api/teams/<int:team_id>", endpoint="teams_get")
    @guard.login_required
    def get_team(team_id: int):
        return ok(container.team_service.get_team(team_id=team_id))

    @app.post("/api/teams", endpoint="teams_create")
    @guard.manager_required
    def create_team():
        body = parse_body(TeamCreate)
        team = container.team_service.create_team(
            current_role=current_session().role,
            team_name=body.teamName,
            description=body.description,
            leader_id=body.leaderId,
        )
        return ok(team.to_dict(), status=201)

    @app.put("/api/teams/<int:team_id>", endpoint="teams_update")
    @guard.manager_required
    def update_team(team_id: int):
        body = parse_body(TeamUpdate)
        team = container.team_service.update_team(
            current_role=current_session().role,
            team_id=team_id,
            team_name=body.teamName,
            description=body.description,
        )
        return ok(team.to_dict())

    @app.delete("/api/teams/<int:team_id>", endpoint="teams_delete")
    @guard.manager_required
    def delete_team(team_id: int):
        affected = container.team_service.delete_team(current_role=current_session().role, team_id=team_id)
        return ok({"affectedMembers": affected}, message="Team deleted")

    @app.post("/api/teams/<int:team_id>/members", endpoint="teams_add_member")
    @guard.manager_required
    def add_member(team_id: int):
        body = parse_body(MemberBody)
        container.team_service.add_member(current_role=current_session().role, team_id=team_id, user_id=body.userId)
        return ok(message="Member added")

    @app.delete("/api/teams/<int:team_id>/members/<int:user_id>", endpoint="teams_remove_member")
    @guard.manager_required
    def remove_member(team_id: int, user_id: int):
        container.team_service.remove_member(current_role=current_session().role, team_id=team_id, user_id=user_id)
        return ok(message="Member removed")

    @app.post("/api/teams/<int:team_id>/leader", endpoint="teams_assign_leader")
    @guard.manager_required
    def assign_leader(team_id: int):
        body = parse_body(MemberBody)
        team = container.team_service.assign_leader(
            current_role=current_session().role,
            team_id=team_id,
            user_id=body.userId,
        )
        return ok(team.to_dict())
