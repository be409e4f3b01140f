# detailquote/errors.py
"""Typed failures raised by the pricing and quote operations.

Every error carries the HTTP status it maps to plus an optional ``field`` so
the client can attach the message to the input that caused it.
"""

import logging

from flask import jsonify
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class QuoteAppError(Exception):
    status_code = 400

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> dict:
        out = {'error': self.message}
        if self.field:
            out['field'] = self.field
        return out


class ValidationError(QuoteAppError):
    status_code = 400


class NotFound(QuoteAppError):
    status_code = 404

    def __init__(self, message: str = 'Not found', field: str | None = None) -> None:
        super().__init__(message, field)


class Unauthorized(QuoteAppError):
    status_code = 401

    def __init__(self, message: str = 'Unauthorized', field: str | None = None) -> None:
        super().__init__(message, field)


class Conflict(QuoteAppError):
    status_code = 409


class AlreadyFinalized(Conflict):
    """The quote is in a terminal state and cannot change status again."""


class QuoteExpired(AlreadyFinalized):
    def __init__(self, message: str = 'This quote has expired', field: str | None = None) -> None:
        super().__init__(message, field)


class NotificationError(QuoteAppError):
    status_code = 502


def register_error_handlers(app) -> None:
    @app.errorhandler(QuoteAppError)
    def handle_app_error(err):
        if err.status_code >= 500:
            logger.warning('%s: %s', type(err).__name__, err.message)
        return jsonify(err.to_dict()), err.status_code

    @app.errorhandler(404)
    def not_found(_):
        return jsonify(error='Not found'), 404

    @app.errorhandler(405)
    def method_not_allowed(_):
        return jsonify(error='Method not allowed'), 405

    @app.errorhandler(500)
    def server_error(_):
        return jsonify(error='Internal server error'), 500

    @app.errorhandler(HTTPException)
    def http_error(err):
        return jsonify(error=err.description), err.code
