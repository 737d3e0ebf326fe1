from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, List, Optional, Sequence

from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """One block == one transaction: commit on success, rollback on any error."""
    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def in_placeholders(values: Sequence[Any]) -> str:
    """'%s,%s,%s' for an IN (...) clause; callers must not pass an empty sequence."""
    return ",".join(["%s"] * len(values))


def as_float(value: Any) -> Optional[float]:
    # DECIMAL columns come back as Decimal
    if value is None:
        return None
    return float(value)


def as_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    return int(value)
