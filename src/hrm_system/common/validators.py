from __future__ import annotations

import re
from typing import Optional

from ..core.constants import MAX_LEVEL, MIN_LEVEL, MIN_PASSWORD_LENGTH
from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def require_length(value: Optional[str], field_name: str, min_len: int, max_len: int) -> str:
    v = (value or "").strip()
    if len(v) < min_len or len(v) > max_len:
        raise ValidationError(f"{field_name} must be between {min_len} and {max_len} characters")
    return v


def require_pattern(value: str, field_name: str, pattern: str) -> str:
    v = require_non_empty(value, field_name)
    if not re.fullmatch(pattern, v):
        raise ValidationError(f"{field_name} has an invalid format")
    return v


def require_level(value: int, field_name: str = "Level") -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field_name} must be an integer")
    if value < MIN_LEVEL or value > MAX_LEVEL:
        raise ValidationError(f"{field_name} must be between {MIN_LEVEL} and {MAX_LEVEL}")
    return value


def require_strong_password(value: str) -> str:
    """At least 8 characters with an uppercase, a lowercase letter and a digit."""
    require_min_length(value, "Password", MIN_PASSWORD_LENGTH)
    if not re.search(r"[A-Z]", value) or not re.search(r"[a-z]", value) or not re.search(r"\d", value):
        raise ValidationError("Password must contain uppercase, lowercase letters and a number")
    return value
