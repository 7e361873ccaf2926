# blueprints/core/responses.py
from __future__ import annotations
from typing import Any, Dict, List

from flask import jsonify
from pydantic import ValidationError

from .results import OpResult, ServiceError, VALIDATION_ERROR


def ok(data: Any, message: str = "", status: int = 200):
    return jsonify({"ok": True, "message": message, "data": data}), status


def error(err: ServiceError):
    return jsonify({"ok": False, "errors": [err.to_dict()]}), err.http_status


def from_result(res: OpResult, serialize=lambda v: v, status: int = 200):
    if not res.ok:
        return error(res.error)
    return ok(serialize(res.value), res.message, status)


def _pydantic_errors_safe(ve: ValidationError) -> List[Dict[str, Any]]:
    out = []
    for e in ve.errors():
        out.append({
            "field": ".".join(str(p) for p in e.get("loc", ())) or None,
            "message": e.get("msg", ""),
            "type": e.get("type", ""),
        })
    return out


def validation_failed(ve: ValidationError):
    fields = _pydantic_errors_safe(ve)
    return error(ServiceError(
        code=VALIDATION_ERROR,
        message="Request validation failed",
        details={"fields": fields},
    ))
