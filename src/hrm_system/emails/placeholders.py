"""`{fieldName}` placeholder handling for email templates."""

from __future__ import annotations

import re
from typing import Mapping

PLACEHOLDER_RE = re.compile(r"\{(\w+)\}")


def extract_placeholders(text: str) -> list[str]:
    seen: list[str] = []
    for name in PLACEHOLDER_RE.findall(text or ""):
        if name not in seen:
            seen.append(name)
    return seen


def missing_placeholders(text: str, values: Mapping[str, object]) -> list[str]:
    missing = []
    for name in extract_placeholders(text):
        v = values.get(name)
        if v is None or str(v).strip() == "":
            missing.append(name)
    return missing


def render(text: str, values: Mapping[str, object]) -> str:
    # Unknown placeholders are left as-is.
    def _sub(m: re.Match) -> str:
        name = m.group(1)
        if name in values and values[name] is not None:
            return str(values[name])
        return m.group(0)

    return PLACEHOLDER_RE.sub(_sub, text or "")
