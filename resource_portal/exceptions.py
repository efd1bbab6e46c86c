"""
Error types raised by request handlers.

Every error carries the HTTP status it maps to; the application turns them
into ``{"error": message}`` JSON bodies (see ``register_error_handlers``).
"""

from flask import jsonify, request
from werkzeug.exceptions import HTTPException


class ApiError(Exception):
    """Base class for errors surfaced to API clients."""
    status_code = 500
    default_message = 'Internal server error'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self):
        return {'error': self.message}


class ValidationError(ApiError):
    status_code = 400
    default_message = 'Invalid input'


class InvalidFileType(ValidationError):
    default_message = 'Invalid file type. Only PDF, images, DOC, and PPT files are allowed.'


class FileTooLarge(ValidationError):
    default_message = 'File is too large'


class InvalidRating(ValidationError):
    default_message = 'Rating must be between 1 and 5'


class NotApproved(ValidationError):
    default_message = 'Only approved resources can be rated'


class AuthenticationError(ApiError):
    status_code = 401
    default_message = 'Authentication required'


class ForbiddenError(ApiError):
    status_code = 403
    default_message = 'Access denied'


class SelfRatingForbidden(ForbiddenError):
    default_message = 'You cannot rate your own resource'


class NotFoundError(ApiError):
    status_code = 404
    default_message = 'Not found'


class ConflictError(ApiError):
    status_code = 409
    default_message = 'Conflict'


class UpstreamError(ApiError):
    status_code = 502
    default_message = 'File storage is unavailable'


def register_error_handlers(app, db):
    """Render every failure as a JSON error body."""

    @app.errorhandler(ApiError)
    def handle_api_error(e):
        if e.status_code >= 500:
            db.session.rollback()
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify({'error': e.description}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        db.session.rollback()
        app.logger.exception('Unhandled error on %s %s', request.method, request.path)
        return jsonify({'error': str(e) or ApiError.default_message}), 500
