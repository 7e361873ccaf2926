from __future__ import annotations
import json, logging
from datetime import datetime

from flask import g, jsonify, request
from flask_wtf.csrf import CSRFError, generate_csrf
from werkzeug.exceptions import HTTPException
from werkzeug.wrappers.response import Response

from extensions import csrf

from . import bp, api_bp

LOG_EXTRA_KEYS = (
    "event", "path", "method", "status", "duration_ms",
    "schedule_id", "assignment_id", "user_id", "count",
)

class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.utcnow().isoformat(timespec="milliseconds") + "Z",
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key in LOG_EXTRA_KEYS:
            if hasattr(record, key):
                payload[key] = getattr(record, key)
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)

def _setup_structured_logging(app):
    # module loggers (blueprints.*) propagate to root, so the handler goes there
    root = logging.getLogger()
    has_json = any(
        isinstance(h, logging.StreamHandler)
        and isinstance(getattr(h, "formatter", None), JSONFormatter)
        for h in root.handlers
    )
    if not has_json:
        handler = logging.StreamHandler()
        handler.setFormatter(JSONFormatter())
        root.addHandler(handler)
        root.setLevel(logging.INFO)
    app.logger.setLevel(logging.INFO)

@api_bp.get("/csrf")
@csrf.exempt          # токен выдаём без проверки
def get_csrf():
    token = generate_csrf()
    resp = jsonify({"csrf": token})
    resp.set_cookie("csrf_token", token, samesite="Lax")
    return resp

@bp.before_app_request
def _start_timer():
    g._req_start = datetime.utcnow()

@bp.after_app_request
def _log_request(response: Response):
    try:
        duration_ms = int((datetime.utcnow() - g._req_start).total_seconds() * 1000)
    except AttributeError:
        duration_ms = None
    extra = {
        "event": "http_request",
        "path": request.path,
        "method": request.method,
        "status": response.status_code,
        "duration_ms": duration_ms,
    }
    logging.getLogger("http").info("request handled", extra=extra)
    return response

@bp.app_errorhandler(CSRFError)
def _csrf_error(e: CSRFError):
    return jsonify({"ok": False, "errors": [{"code": "CSRF_ERROR", "message": e.description, "details": {}}]}), 400

@bp.app_errorhandler(HTTPException)
def _http_error(e: HTTPException):
    # API отдаёт JSON вместо HTML-страницы werkzeug
    if not request.path.startswith("/api/"):
        return e
    if e.code == 401:
        return jsonify({"error": "unauthorized"}), 401
    if e.code == 403:
        return jsonify({"error": "forbidden"}), 403
    return jsonify({"error": (e.name or "error").lower().replace(" ", "_"), "message": e.description}), e.code

@bp.record_once
def _on_register(state):
    _setup_structured_logging(state.app)

@bp.get("/health")
def health():
    return jsonify({
        "status": "ok",
        "ts": datetime.utcnow().isoformat(timespec="seconds") + "Z",
    })
