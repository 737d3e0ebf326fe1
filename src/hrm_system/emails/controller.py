from __future__ import annotations

from flask import Flask, request

from ..api.auth import current_session
from ..api.payload import ok, parse_body, parse_query
from ..container import Container
from .schemas import LogQuery, SendEmail, TemplateCreate, TemplateUpdate


def register(app: Flask, container: Container) -> None:
    guard = container.guard

    @app.get("/api/email-templates", endpoint="email_templates_list")
    @guard.manager_required
    def list_templates():
        rows = container.email_template_service.list_templates(
            current_role=current_session().role,
            search=request.args.get("search"),
        )
        return ok([t.to_dict() for t in rows])

    @app.get("/api/email-templates/<int:template_id>", endpoint="email_templates_get")
    @guard.manager_required
    def get_template(template_id: int):
        tpl = container.email_template_service.get_template(current_role=current_session().role, template_id=template_id)
        return ok(tpl.to_dict())

    @app.post("/api/email-templates", endpoint="email_templates_create")
    @guard.manager_required
    def create_template():
        body = parse_body(TemplateCreate)
        tpl = container.email_template_service.create_template(
            current_role=current_session().role,
            code=body.code,
            name=body.name,
            subject=body.subject,
            body=body.body,
            variables=body.variables,
            is_system=body.isSystem,
        )
        return ok(tpl.to_dict(), status=201)

    @app.put("/api/email-templates/<int:template_id>", endpoint="email_templates_update")
    @guard.manager_required
    def update_template(template_id: int):
        body = parse_body(TemplateUpdate)
        tpl = container.email_template_service.update_template(
            current_role=current_session().role,
            template_id=template_id,
            name=body.name,
            subject=body.subject,
            body=body.body,
            variables=body.variables,
        )
        return ok(tpl.to_dict())

    @app.delete("/api/email-templates/<int:template_id>", endpoint="email_templates_delete")
    @guard.manager_required
    def delete_template(template_id: int):
        container.email_template_service.delete_template(current_role=current_session().role, template_id=template_id)
        return ok(message="Template deleted")

    @app.post("/api/emails/send", endpoint="emails_send")
    @guard.manager_required
    def send_email():
        body = parse_body(SendEmail)
        s = current_session()
        log = container.email_service.send_from_template(
            current_role=s.role,
            sender_id=s.user_id,
            template_id=body.templateId,
            recipient_email=body.recipientEmail,
            values=body.values,
        )
        return ok(log.to_dict())

    @app.get("/api/email-logs", endpoint="email_logs_list")
    @guard.manager_required
    def list_logs():
        q = parse_query(LogQuery)
        page = container.email_service.list_logs(
            current_role=current_session().role,
            page=q.page,
            limit=q.limit,
            status=q.status,
            search=q.search,
        )
        return ok(page.to_dict([log.to_dict() for log in page.items]))

    @app.get("/api/email-logs/<int:log_id>", endpoint="email_logs_get")
    @guard.manager_required
    def get_log(log_id: int):
        log = container.email_service.get_log(current_role=current_session().role, log_id=log_id)
        return ok(log.to_dict())
