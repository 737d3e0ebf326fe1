from __future__ import annotations

from flask import Flask

from ..api.auth import current_session
from ..api.payload import ok, parse_body, parse_query
from ..container import Container
from .schemas import (
    AssignUsersBody,
    CreateAssessmentBody,
    CycleBody,
    CycleFilterQuery,
    CycleQuery,
    GapReportQuery,
    SaveScoresBody,
)


def register(app: Flask, container: Container) -> None:
    guard = container.guard

    # -------- Cycles --------
    @app.get("/api/assessment-cycles", endpoint="cycles_list")
    @guard.login_required
    def list_cycles():
        q = parse_query(CycleQuery)
        return ok([c.to_dict() for c in container.cycle_service.list_cycles(status=q.status)])

    @app.get("/api/assessment-cycles/active", endpoint="cycles_active")
    @guard.login_required
    def active_cycle():
        cycle = container.cycle_service.get_active_cycle()
        return ok(cycle.to_dict() if cycle else None)

    @app.get("/api/assessment-cycles/<int:cycle_id>", endpoint="cycles_get")
    @guard.login_required
    def get_cycle(cycle_id: int):
        return ok(container.cycle_service.get_cycle(cycle_id=cycle_id))

    @app.post("/api/assessment-cycles", endpoint="cycles_create")
    @guard.manager_required
    def create_cycle():
        body = parse_body(CycleBody)
        cycle = container.cycle_service.create_cycle(
            current_role=current_session().role,
            name=body.name,
            start_date=body.startDate,
            end_date=body.endDate,
        )
        return ok(cycle.to_dict(), status=201)

    @app.put("/api/assessment-cycles/<int:cycle_id>", endpoint="cycles_update")
    @guard.manager_required
    def update_cycle(cycle_id: int):
        body = parse_body(CycleBody)
        cycle = container.cycle_service.update_cycle(
            current_role=current_session().role,
            cycle_id=cycle_id,
            name=body.name,
            start_date=body.startDate,
            end_date=body.endDate,
        )
        return ok(cycle.to_dict())

    @app.delete("/api/assessment-cycles/<int:cycle_id>", endpoint="cycles_delete")
    @guard.manager_required
    def delete_cycle(cycle_id: int):
        container.cycle_service.delete_cycle(current_role=current_session().role, cycle_id=cycle_id)
        return ok(message="Assessment cycle deleted")

    @app.post("/api/assessment-cycles/<int:cycle_id>/activate", endpoint="cycles_activate")
    @guard.manager_required
    def activate_cycle(cycle_id: int):
        result = container.cycle_service.activate_cycle(current_role=current_session().role, cycle_id=cycle_id)
        return ok(result, message=f"Cycle activated, {result['created']} assessments created")

    @app.post("/api/assessment-cycles/<int:cycle_id>/complete", endpoint="cycles_complete")
    @guard.manager_required
    def complete_cycle(cycle_id: int):
        cycle = container.cycle_service.complete_cycle(current_role=current_session().role, cycle_id=cycle_id)
        return ok(cycle.to_dict())

    @app.post("/api/assessment-cycles/<int:cycle_id>/remind", endpoint="cycles_remind")
    @guard.manager_required
    def remind(cycle_id: int):
        sent = container.cycle_service.remind_pending(current_role=current_session().role, cycle_id=cycle_id)
        return ok({"sent": sent})

    @app.post("/api/assessment-cycles/<int:cycle_id>/assign", endpoint="cycles_assign")
    @guard.manager_required
    def assign_users(cycle_id: int):
        body = parse_body(AssignUsersBody)
        result = container.cycle_service.assign_users(
            current_role=current_session().role,
            cycle_id=cycle_id,
            user_ids=body.userIds,
        )
        return ok(result)

    @app.get("/api/assessment-cycles/<int:cycle_id>/assessments", endpoint="cycles_assessments")
    @guard.manager_required
    def cycle_assessments(cycle_id: int):
        rows = container.assessment_service.list_cycle_assessments(current_role=current_session().role, cycle_id=cycle_id)
        return ok([a.to_dict() for a in rows])

    # -------- Assessments --------
    @app.post("/api/assessments", endpoint="assessments_create")
    @guard.manager_required
    def create_assessment():
        body = parse_body(CreateAssessmentBody)
        assessment = container.cycle_service.create_user_assessment(
            current_role=current_session().role,
            user_id=body.userId,
            cycle_id=body.cycleId,
        )
        return ok(assessment.to_dict(), status=201)

    @app.post("/api/assessments/start", endpoint="assessments_start")
    @guard.login_required
    def start_my_assessment():
        assessment = container.cycle_service.start_my_assessment(current_user_id=current_session().user_id)
        return ok(assessment.to_dict(), status=201)

    @app.get("/api/assessments/my", endpoint="assessments_my")
    @guard.login_required
    def my_assessment():
        q = parse_query(CycleFilterQuery)
        s = current_session()
        data = container.assessment_service.get_my_assessment(
            current_user_id=s.user_id,
            current_role=s.role,
            cycle_id=q.cycleId,
        )
        return ok(data)

    @app.get("/api/assessments/my/history", endpoint="assessments_history")
    @guard.login_required
    def my_history():
        rows = container.assessment_service.my_history(current_user_id=current_session().user_id)
        return ok([a.to_dict() for a in rows])

    @app.get("/api/assessments/team", endpoint="assessments_team")
    @guard.login_required
    def team_assessments():
        q = parse_query(CycleFilterQuery)
        rows = container.assessment_service.team_assessments(current_user_id=current_session().user_id, cycle_id=q.cycleId)
        return ok([a.to_dict() for a in rows])

    @app.get("/api/assessments/team/radar", endpoint="assessments_team_radar")
    @guard.login_required
    def team_radar():
        q = parse_query(CycleFilterQuery)
        return ok(container.assessment_service.team_radar(current_user_id=current_session().user_id, cycle_id=q.cycleId))

    @app.get("/api/assessments/gap-report", endpoint="assessments_gap_report")
    @guard.login_required
    def gap_report():
        q = parse_query(GapReportQuery)
        s = current_session()
        report = container.assessment_service.gap_report(
            current_user_id=s.user_id,
            current_role=s.role,
            cycle_id=q.cycleId,
            team_id=q.teamId,
        )
        return ok(report)

    @app.get("/api/assessments/<int:assessment_id>", endpoint="assessments_get")
    @guard.login_required
    def get_assessment(assessment_id: int):
        s = current_session()
        return ok(
            container.assessment_service.get_assessment(
                current_user_id=s.user_id,
                current_role=s.role,
                assessment_id=assessment_id,
            )
        )

    @app.put("/api/assessments/<int:assessment_id>/scores", endpoint="assessments_save_scores")
    @guard.login_required
    def save_scores(assessment_id: int):
        body = parse_body(SaveScoresBody)
        s = current_session()
        data = container.assessment_service.save_scores(
            current_user_id=s.user_id,
            current_role=s.role,
            assessment_id=assessment_id,
            entries=body.entries(),
            feedback=body.feedback,
            submit=body.submit,
        )
        return ok(data, message="Submitted" if body.submit else "Saved")

    @app.post("/api/assessments/<int:assessment_id>/submit", endpoint="assessments_submit")
    @guard.login_required
    def submit(assessment_id: int):
        s = current_session()
        data = container.assessment_service.submit(
            current_user_id=s.user_id,
            current_role=s.role,
            assessment_id=assessment_id,
        )
        return ok(data, message="Submitted")
