"""Public holiday lookup against a Nager.Date compatible API."""

from __future__ import annotations

import logging
from typing import Protocol

import requests

from ..common.datetime_utils import parse_iso_date
from .model import Holiday

logger = logging.getLogger(__name__)


class HolidayProvider(Protocol):
    def fetch(self, year: int, country: str) -> list[Holiday]:
        raise NotImplementedError


class NagerHolidayProvider:
    def __init__(self, base_url: str, *, timeout: int = 10):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    def fetch(self, year: int, country: str) -> list[Holiday]:
        """Empty list when the API is unreachable; the timesheet still renders without holidays."""
        url = f"{self._base_url}/{int(year)}/{country}"
        try:
            resp = requests.get(url, timeout=self._timeout)
            resp.raise_for_status()
            payload = resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning("public holiday fetch failed for %s/%s: %s", year, country, e)
            return []

        out = []
        for item in payload or []:
            try:
                day = parse_iso_date(str(item["date"]))
            except (KeyError, ValueError):
                continue
            out.append(Holiday(holiday_date=day, name=item.get("localName") or item.get("name") or "", country=country))
        return out
