from __future__ import annotations

from datetime import date
from typing import Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import Holiday
from .repository import HolidayRepository


class MySQLHolidayRepository(HolidayRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_in_range(self, *, start: date, end: date, country: str) -> Sequence[Holiday]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT holiday_id, holiday_date, name, country
                FROM public_holidays
                WHERE country=%s AND holiday_date BETWEEN %s AND %s
                ORDER BY holiday_date
                """,
                (country, start, end),
            )
            return [
                Holiday(
                    holiday_id=int(r["holiday_id"]),
                    holiday_date=r["holiday_date"],
                    name=r["name"],
                    country=r["country"],
                )
                for r in fetchall(cur)
            ]

    def insert_many(self, holidays: Sequence[Holiday]) -> int:
        if not holidays:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.executemany(
                "INSERT IGNORE INTO public_holidays(holiday_date, name, country) VALUES(%s,%s,%s)",
                [(h.holiday_date, h.name, h.country) for h in holidays],
            )
            return int(cur.rowcount or 0)
