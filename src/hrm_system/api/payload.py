from __future__ import annotations

from typing import Any, Type, TypeVar

import pydantic
from flask import jsonify, request

from ..core.exceptions import ValidationError

M = TypeVar("M", bound=pydantic.BaseModel)


def _describe(e: pydantic.ValidationError) -> str:
    parts = []
    for item in e.errors():
        loc = ".".join(str(x) for x in item.get("loc", ())) or "body"
        parts.append(f"{loc}: {item.get('msg')}")
    return "; ".join(parts)


def parse_body(schema: Type[M]) -> M:
    """Validate the JSON body; invalid input never reaches the service layer."""
    data = request.get_json(silent=True)
    if data is None:
        data = {}
    try:
        return schema.model_validate(data)
    except pydantic.ValidationError as e:
        raise ValidationError(_describe(e)) from e


def parse_query(schema: Type[M]) -> M:
    try:
        return schema.model_validate(request.args.to_dict())
    except pydantic.ValidationError as e:
        raise ValidationError(_describe(e)) from e


def ok(data: Any = None, *, status: int = 200, message: str | None = None):
    body: dict = {"success": True, "data": data}
    if message:
        body["message"] = message
    return jsonify(body), status
