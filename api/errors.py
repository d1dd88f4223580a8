from flask import jsonify, current_app
from werkzeug.exceptions import HTTPException
from marshmallow import ValidationError
from sqlalchemy.exc import IntegrityError
import logging

from identity.errors import (
    IdentityError,
    InvalidCredentials,
    DuplicateRegistration,
    MalformedToken,
    UnknownSubject,
    NoValidToken,
    TokenExpired,
    AmbiguousRefreshState,
    ClaimsBuildFailure,
)

logger = logging.getLogger(__name__)

# identity error -> (error code, status)
IDENTITY_ERRORS = {
    InvalidCredentials: ("NOT_FOUND", 404),
    DuplicateRegistration: ("BAD_REQUEST", 400),
    MalformedToken: ("BAD_REQUEST", 400),
    UnknownSubject: ("BAD_REQUEST", 400),
    NoValidToken: ("UNAUTHORIZED", 401),
    TokenExpired: ("UNAUTHORIZED", 401),
    AmbiguousRefreshState: ("INTERNAL_ERROR", 500),
    ClaimsBuildFailure: ("INTERNAL_ERROR", 500),
}


def error_response(error: str, message: str, status: int, errors: dict | None = None):
    payload = {"error": error, "message": message, "status": status}
    if errors:
        payload["errors"] = errors
    return jsonify(payload), status


def register_error_handlers(app):
    @app.errorhandler(IdentityError)
    def handle_identity_error(err: IdentityError):
        error, status = IDENTITY_ERRORS.get(type(err), ("BAD_REQUEST", 400))
        if status >= 500:
            logger.error("identity fault: %s", err.message)
        return error_response(error, err.message, status, errors=getattr(err, "errors", None))

    # 404 Not Found
    @app.errorhandler(404)
    def not_found(e):
        return error_response("NOT_FOUND", "Resource not found", 404)

    # Marshmallow validation errors map to 422
    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        # err.messages contains field-level details
        return error_response("VALIDATION_ERROR", "Invalid input", 422, errors=err.messages)

    # Integrity errors (unique constraints, FK violations)
    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        message = str(getattr(err, "orig", err))
        if current_app and current_app.debug:
            logger.exception("Integrity error", exc_info=err)
        if "unique" in message.lower():
            return error_response("CONFLICT", "Unique constraint violated.", 409)
        return error_response("BAD_REQUEST", "Integrity error.", 400)

    # Werkzeug HTTPExceptions map to their status codes
    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        error = "UNAUTHORIZED" if err.code == 401 else "BAD_REQUEST"
        return error_response(error, err.description, err.code or 400)

    # 500 Internal Error (catch-all)
    @app.errorhandler(Exception)
    def internal_error(err: Exception):
        logger.exception("Unhandled exception", exc_info=err)
        errors = None
        # In dev, include exception details to speed up debugging
        if current_app and current_app.debug:
            errors = {"type": [err.__class__.__name__], "message": [str(err)]}
        return error_response("INTERNAL_ERROR", "An unexpected error occurred", 500, errors=errors)
