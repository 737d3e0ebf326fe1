from __future__ import annotations

from flask import Flask, request

from ..api.auth import current_session
from ..api.payload import ok, parse_body
from ..container import Container
from .schemas import BulkRequirementBody, CompetencyBody, GroupBody, RequirementBody


def register(app: Flask, container: Container) -> None:
    guard = container.guard

    # -------- Groups --------
    @app.get("/api/competency-groups", endpoint="competency_groups_list")
    @guard.login_required
    def list_groups():
        return ok([g.to_dict() for g in container.competency_service.list_groups()])

    @app.post("/api/competency-groups", endpoint="competency_groups_create")
    @guard.manager_required
    def create_group():
        body = parse_body(GroupBody)
        group = container.competency_service.create_group(
            current_role=current_session().role,
            name=body.name,
            description=body.description,
        )
        return ok(group.to_dict(), status=201)

    @app.put("/api/competency-groups/<int:group_id>", endpoint="competency_groups_update")
    @guard.manager_required
    def update_group(group_id: int):
        body = parse_body(GroupBody)
        group = container.competency_service.update_group(
            current_role=current_session().role,
            group_id=group_id,
            name=body.name,
            description=body.description,
        )
        return ok(group.to_dict())

    @app.delete("/api/competency-groups/<int:group_id>", endpoint="competency_groups_delete")
    @guard.manager_required
    def delete_group(group_id: int):
        container.competency_service.delete_group(current_role=current_session().role, group_id=group_id)
        return ok(message="Competency group deleted")

    # -------- Competencies --------
    @app.get("/api/competencies", endpoint="competencies_list")
    @guard.login_required
    def list_competencies():
        group_id = request.args.get("groupId", type=int)
        rows = container.competency_service.list_competencies(group_id=group_id)
        return ok([c.to_dict() for c in rows])

    @app.get("/api/competencies/<int:competency_id>", endpoint="competencies_get")
    @guard.login_required
    def get_competency(competency_id: int):
        return ok(container.competency_service.get_competency(competency_id=competency_id).to_dict())

    @app.post("/api/competencies", endpoint="competencies_create")
    @guard.manager_required
    def create_competency():
        body = parse_body(CompetencyBody)
        comp = container.competency_service.create_competency(
            current_role=current_session().role,
            group_id=body.groupId,
            name=body.name,
            description=body.description,
            levels=body.level_models(),
        )
        return ok(comp.to_dict(), status=201)

    @app.put("/api/competencies/<int:competency_id>", endpoint="competencies_update")
    @guard.manager_required
    def update_competency(competency_id: int):
        body = parse_body(CompetencyBody)
        comp = container.competency_service.update_competency(
            current_role=current_session().role,
            competency_id=competency_id,
            group_id=body.groupId,
            name=body.name,
            description=body.description,
            levels=body.level_models(),
        )
        return ok(comp.to_dict())

    @app.delete("/api/competencies/<int:competency_id>", endpoint="competencies_delete")
    @guard.manager_required
    def delete_competency(competency_id: int):
        container.competency_service.delete_competency(current_role=current_session().role, competency_id=competency_id)
        return ok(message="Competency deleted")

    # -------- Requirements --------
    @app.get("/api/competency-requirements", endpoint="requirements_matrix")
    @guard.login_required
    def get_matrix():
        return ok(container.competency_service.get_matrix())

    @app.put("/api/competency-requirements", endpoint="requirements_set")
    @guard.manager_required
    def set_requirement():
        body = parse_body(RequirementBody)
        container.competency_service.set_requirement(
            current_role=current_session().role,
            career_band_id=body.careerBandId,
            competency_id=body.competencyId,
            required_level=body.requiredLevel,
        )
        return ok(message="Requirement saved")

    @app.put("/api/competency-requirements/bulk", endpoint="requirements_bulk_set")
    @guard.manager_required
    def bulk_set_requirements():
        body = parse_body(BulkRequirementBody)
        count = container.competency_service.bulk_set_requirements(
            current_role=current_session().role,
            entries=[(r.careerBandId, r.competencyId, r.requiredLevel) for r in body.requirements],
        )
        return ok({"updated": count})
