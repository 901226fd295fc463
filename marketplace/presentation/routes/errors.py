"""
JSON error responses

Every domain error becomes ``{"error": {"kind", "message", "retryable"}}``
with the status code its kind maps to.
"""

from flask import jsonify, request
from werkzeug.exceptions import HTTPException

from marketplace import db
from marketplace.buisness.errors import MarketplaceDomainError
from marketplace.logger import get_logger
from marketplace.utils.logging_sanitizer import sanitize_exception_message

logger = get_logger("marketplace.routes.errors")


def _error_response(kind, message, status, retryable=False):
    return jsonify({'error': {'kind': kind, 'message': message, 'retryable': retryable}}), status


def register_error_handlers(app):

    @app.errorhandler(MarketplaceDomainError)
    def handle_domain_error(error):
        db.session.rollback()
        logger.warning(f"{request.method} {request.path} -> {error.kind}: {error.message}")
        return _error_response(error.kind, error.message, error.http_status, error.retryable)

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return _error_response(error.name.replace(' ', ''), error.description, error.code)

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        db.session.rollback()
        logger.exception(
            f"Unhandled error on {request.method} {request.path}: {sanitize_exception_message(error)}"
        )
        return _error_response('InternalError', 'An unexpected error occurred', 500)
