"""Helpers shared by the JSON controllers."""
from __future__ import annotations

import logging
from functools import wraps

from flask import jsonify, request, session

from ..core.enums import Role
from ..core.exceptions import (
    AlreadyConnectedError,
    AuthenticationError,
    AuthorizationError,
    CodeNotFoundError,
    DomainError,
    GenerationExhaustedError,
    NotFoundError,
    SelfConnectionError,
    StorageUnavailableError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Most specific first: the first isinstance match wins.
_ERROR_MAP = (
    (CodeNotFoundError, 404, "code_not_found"),
    (SelfConnectionError, 400, "self_connection"),
    (AlreadyConnectedError, 400, "already_connected"),
    (ValidationError, 400, "validation_error"),
    (AuthenticationError, 401, "authentication_error"),
    (AuthorizationError, 403, "forbidden"),
    (NotFoundError, 404, "not_found"),
)


def error_response(exc: DomainError, *, fallback: str = "Internal server error"):
    for exc_type, status, reason in _ERROR_MAP:
        if isinstance(exc, exc_type):
            return jsonify({"error": str(exc), "reason": reason}), status

    if isinstance(exc, (StorageUnavailableError, GenerationExhaustedError)):
        logger.error("%s: %s", type(exc).__name__, exc)
    else:
        logger.exception("Unhandled domain error")
    return jsonify({"error": fallback, "reason": "internal_error"}), 500


def unexpected_error(fallback: str = "Internal server error"):
    logger.exception("Unexpected error handling %s %s", request.method, request.path)
    return jsonify({"error": fallback, "reason": "internal_error"}), 500


def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def current_user_id() -> int:
    return int(session["user_id"])


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"error": "Unauthorized", "reason": "authentication_error"}), 401
        return view(*args, **kwargs)

    return wrapper


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"error": "Unauthorized", "reason": "authentication_error"}), 401
        if session.get("role") != Role.ADMIN.value:
            return jsonify({"error": "Admin access required", "reason": "forbidden"}), 403
        return view(*args, **kwargs)

    return wrapper
