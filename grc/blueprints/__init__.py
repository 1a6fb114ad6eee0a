"""
GRC Scope Service
Blueprint registry and shared error mapping.

Services raise grc.core.exceptions types; register_error_handlers() maps
them to JSON responses once per blueprint so routes stay free of
try/except boilerplate.
"""

import logging

from flask import request
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from grc.core.exceptions import (
    AccessDeniedError,
    ConflictError,
    NotFoundError,
    TenantScopeError,
    ValidationError,
)
from grc.models import db
from grc.utils.errors import E, api_error

logger = logging.getLogger(__name__)

_HTTP_CODES = {
    400: E.VALIDATION_REQUIRED,
    401: E.UNAUTHORIZED,
    403: E.FORBIDDEN,
    404: E.NOT_FOUND,
    405: E.METHOD_NOT_ALLOWED,
    429: E.RATE_LIMITED,
}


def get_json_body() -> dict:
    """Request JSON as a dict; anything else becomes {}."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def register_error_handlers(bp):
    """Attach the canonical exception → HTTP mapping to ``bp``."""

    @bp.errorhandler(NotFoundError)
    def _handle_not_found(error: NotFoundError):
        # resource_id stays in the logs, not in the body
        logger.debug("Not found: %s", error)
        return api_error(E.NOT_FOUND, f"{error.resource} not found")

    @bp.errorhandler(ValidationError)
    def _handle_validation(error: ValidationError):
        return api_error(E.VALIDATION_INVALID, str(error), details=error.details)

    @bp.errorhandler(ConflictError)
    def _handle_conflict(error: ConflictError):
        return api_error(E.CONFLICT_DUPLICATE, str(error))

    @bp.errorhandler(TenantScopeError)
    def _handle_tenant_scope(error: TenantScopeError):
        return api_error(E.TENANT_REQUIRED, str(error))

    @bp.errorhandler(AccessDeniedError)
    def _handle_access_denied(error: AccessDeniedError):
        return api_error(E.FORBIDDEN, str(error) or "Access denied")

    @bp.errorhandler(SQLAlchemyError)
    def _handle_db_error(error: SQLAlchemyError):
        db.session.rollback()
        logger.exception("Database error in %s endpoint=%s", bp.name, request.endpoint)
        return api_error(E.DATABASE, "Database error")

    @bp.errorhandler(HTTPException)
    def _handle_http(error: HTTPException):
        code = _HTTP_CODES.get(error.code, E.INTERNAL)
        return api_error(code, error.description or error.name, status=error.code)

    @bp.errorhandler(Exception)
    def _handle_unexpected(error: Exception):
        logger.exception("Unexpected error in %s endpoint=%s", bp.name, request.endpoint)
        return api_error(E.INTERNAL, "Internal server error")

    return bp
