from flask import jsonify
from turfbook import db
from turfbook.exceptions import (
    ValidationError,
    ConflictError,
    AuthorizationError,
    NotFoundError,
)


def _error_response(message, status_code, **extra):
    return jsonify({'success': False, 'error': message, **extra}), status_code


def register_error_handlers(app):
    """Register error handlers with the Flask application"""

    @app.errorhandler(ValidationError)
    def validation_error(error):
        return _error_response(error.message, 400, field=error.field)

    @app.errorhandler(AuthorizationError)
    def authorization_error(error):
        return _error_response(error.message, 403)

    @app.errorhandler(NotFoundError)
    def missing_record_error(error):
        return _error_response(error.message, 404)

    @app.errorhandler(ConflictError)
    def conflict_error(error):
        return _error_response(error.message, 409)

    @app.errorhandler(403)
    def forbidden_error(error):
        return _error_response('Forbidden', 403)

    @app.errorhandler(404)
    def not_found_error(error):
        return _error_response('Not found', 404)

    @app.errorhandler(405)
    def method_not_allowed_error(error):
        return _error_response('Method not allowed', 405)

    @app.errorhandler(429)
    def rate_limited_error(error):
        return _error_response('Too many requests', 429)

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        return _error_response('Internal server error', 500)
