from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import EmailStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import EmailLog, EmailTemplate
from .repository import EmailLogRepository, EmailTemplateRepository

_TEMPLATE_COLUMNS = "template_id, code, name, subject, body, variables, is_system, created_at, updated_at"
_LOG_COLUMNS = (
    "log_id, template_id, sender_id, recipient_email, subject, body, status, sent_at, error_message, created_at"
)


def _to_template(r: dict) -> EmailTemplate:
    return EmailTemplate(
        template_id=int(r["template_id"]),
        code=r["code"],
        name=r["name"],
        subject=r["subject"],
        body=r["body"],
        variables=r.get("variables"),
        is_system=bool(r.get("is_system")),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


def _to_log(r: dict) -> EmailLog:
    return EmailLog(
        log_id=int(r["log_id"]),
        template_id=r.get("template_id"),
        sender_id=r.get("sender_id"),
        recipient_email=r["recipient_email"],
        subject=r["subject"],
        body=r.get("body"),
        status=EmailStatus(r["status"]),
        sent_at=r.get("sent_at"),
        error_message=r.get("error_message"),
        created_at=r.get("created_at"),
    )


class MySQLEmailTemplateRepository(EmailTemplateRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_all(self, *, search: Optional[str] = None) -> Sequence[EmailTemplate]:
        clauses = ["deleted_at IS NULL"]
        params: list[object] = []
        if search:
            clauses.append("(name LIKE %s OR code LIKE %s)")
            params.extend([f"%{search}%", f"%{search}%"])

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_TEMPLATE_COLUMNS} FROM email_templates WHERE {' AND '.join(clauses)} ORDER BY code",
                tuple(params),
            )
            return [_to_template(r) for r in fetchall(cur)]

    def get_by_id(self, template_id: int) -> Optional[EmailTemplate]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_TEMPLATE_COLUMNS} FROM email_templates WHERE template_id=%s AND deleted_at IS NULL",
                (int(template_id),),
            )
            r = fetchone(cur)
            return _to_template(r) if r else None

    def get_by_code(self, code: str) -> Optional[EmailTemplate]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_TEMPLATE_COLUMNS} FROM email_templates WHERE code=%s AND deleted_at IS NULL",
                (code,),
            )
            r = fetchone(cur)
            return _to_template(r) if r else None

    def create(
        self,
        *,
        code: str,
        name: str,
        subject: str,
        body: str,
        variables: Optional[str],
        is_system: bool,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO email_templates(code, name, subject, body, variables, is_system)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (code, name, subject, body, variables, 1 if is_system else 0),
            )
            return int(cur.lastrowid)

    def update(
        self,
        *,
        template_id: int,
        name: str,
        subject: str,
        body: str,
        variables: Optional[str],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE email_templates
                SET name=%s, subject=%s, body=%s, variables=%s
                WHERE template_id=%s AND deleted_at IS NULL
                """,
                (name, subject, body, variables, int(template_id)),
            )
            return cur.rowcount > 0

    def soft_delete(self, *, template_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE email_templates SET deleted_at=NOW() WHERE template_id=%s AND deleted_at IS NULL",
                (int(template_id),),
            )
            return cur.rowcount > 0


class MySQLEmailLogRepository(EmailLogRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        template_id: Optional[int],
        sender_id: Optional[int],
        recipient_email: str,
        subject: str,
        body: str,
        status: EmailStatus,
        sent_at: Optional[datetime],
        error_message: Optional[str],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO email_logs(
                    template_id, sender_id, recipient_email, subject, body, status, sent_at, error_message
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (template_id, sender_id, recipient_email, subject, body, status.value, sent_at, error_message),
            )
            return int(cur.lastrowid)

    def get_by_id(self, log_id: int) -> Optional[EmailLog]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_LOG_COLUMNS} FROM email_logs WHERE log_id=%s", (int(log_id),))
            r = fetchone(cur)
            return _to_log(r) if r else None

    def list_logs(
        self,
        *,
        page: int,
        limit: int,
        status: Optional[EmailStatus] = None,
        search: Optional[str] = None,
    ) -> tuple[Sequence[EmailLog], int]:
        clauses = ["1=1"]
        params: list[object] = []
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        if search:
            clauses.append("(recipient_email LIKE %s OR subject LIKE %s)")
            params.extend([f"%{search}%", f"%{search}%"])
        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM email_logs WHERE {where}", tuple(params))
            total = int((fetchone(cur) or {}).get("total") or 0)
            cur.execute(
                f"""
                SELECT {_LOG_COLUMNS} FROM email_logs
                WHERE {where}
                ORDER BY created_at DESC, log_id DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params + [int(limit), (int(page) - 1) * int(limit)]),
            )
            return [_to_log(r) for r in fetchall(cur)], total
