"""HTTP boundary helpers shared by the feature controllers."""

from __future__ import annotations

import logging
from functools import wraps
from typing import Any, Optional

from flask import Flask, Response, jsonify, request
from pymongo.errors import ConnectionFailure
from werkzeug.exceptions import HTTPException

from ..core.constants import SESSION_COOKIE_NAME
from ..core.exceptions import AuthenticationError, DomainError, UpstreamUnavailableError, ValidationError
from ..sessions.codec import SessionCodec

logger = logging.getLogger(__name__)


def session_required(codec: SessionCodec):
    """Decode the session cookie and pass it to the view as its first argument."""

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            current = codec.decode(request.cookies.get(SESSION_COOKIE_NAME))
            if current is None:
                raise AuthenticationError("Unauthorized")
            return view(current, *args, **kwargs)

        return wrapper

    return decorator


def json_body() -> dict:
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


def query_arg(name: str) -> Optional[str]:
    value = (request.args.get(name) or "").strip()
    return value or None


def set_session_cookie(response: Response, token: str, *, max_age: int, secure: bool) -> Response:
    response.set_cookie(
        SESSION_COOKIE_NAME,
        token,
        max_age=max_age,
        path="/",
        httponly=True,
        secure=secure,
        samesite="Lax",
    )
    return response


def clear_session_cookie(response: Response, *, secure: bool) -> Response:
    response.delete_cookie(SESSION_COOKIE_NAME, path="/", httponly=True, secure=secure, samesite="Lax")
    return response


def _error(message: str, status: int, **extra: Any):
    payload = {"success": False, "message": message}
    payload.update(extra)
    return jsonify(payload), status


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        return _error(str(e), e.status_code)

    @app.errorhandler(ConnectionFailure)
    def handle_db_unavailable(e: ConnectionFailure):
        logger.error("Database unavailable: %s", e)
        return handle_domain_error(UpstreamUnavailableError("Database unavailable, please retry shortly"))

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return _error(e.description or e.name, e.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        if app.config.get("DEBUG"):
            return _error(f"Internal server error: {e}", 500)
        return _error("Internal server error", 500)
