import logging

from flask import jsonify, request
from werkzeug.exceptions import HTTPException

log = logging.getLogger(__name__)


class TokenGateError(Exception):
    status_code = 500
    public_message = 'Internal server error'

    def __init__(self, message=None):
        super().__init__(message or self.public_message)
        self.message = message or self.public_message


class AuthenticationError(TokenGateError):
    status_code = 401
    public_message = 'Unauthorized'


class ValidationError(TokenGateError):
    status_code = 400
    public_message = 'Invalid request'


class NotFoundError(TokenGateError):
    status_code = 404
    public_message = 'Not found'


class StorageError(TokenGateError):
    """Backend read/write failure. Never exposes backend detail to callers."""


class MalformedRecordError(StorageError):
    """A stored row failed schema validation on its way out of the store."""


class TokenCollisionError(StorageError):
    """Could not find a free token id within the retry budget."""


def register_error_handlers(app):
    @app.errorhandler(TokenGateError)
    def tokengate_error(e):
        if isinstance(e, StorageError):
            log.error('storage failure on %s: %s', request.path, e.message)
            return jsonify(error=TokenGateError.public_message), 500
        return jsonify(error=e.message), e.status_code

    @app.errorhandler(404)
    def not_found(e):
        return jsonify(error=NotFoundError.public_message), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify(error='Method not allowed'), 405

    @app.errorhandler(Exception)
    def unexpected(e):
        if isinstance(e, HTTPException):
            return jsonify(error=e.name), e.code
        log.exception('unhandled error on %s', request.path)
        return jsonify(error=TokenGateError.public_message), 500
