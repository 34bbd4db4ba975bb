"""Error handlers for the application."""
from flask import jsonify
from werkzeug.exceptions import HTTPException

from syncope_sync.core.accounts import EntityNotFoundError
from syncope_sync.core.syncope import DirectoryError, DirectoryUnavailableError


def error_response(status: int, error: str, message: str):
    """Build the JSON error body used by every endpoint."""
    return jsonify({"error": error, "message": message}), status


def directory_error_response(error: DirectoryError):
    """Translate a directory failure into a blocking HTTP error.

    An unreachable Syncope is reported as 503 with its message so the user
    can retry; any other directory failure is a 502.
    """
    if isinstance(error, DirectoryUnavailableError):
        return error_response(503, "Service Unavailable", str(error))
    return error_response(502, "Bad Gateway", str(error))


def register_error_handlers(app):
    """Register error handlers with the Flask app."""

    @app.errorhandler(DirectoryError)
    def directory_error(error):
        app.logger.error(f"Syncope error: {error}")
        return directory_error_response(error)

    @app.errorhandler(EntityNotFoundError)
    def entity_not_found(error):
        return error_response(404, "Not Found", str(error))

    @app.errorhandler(ValueError)
    def invalid_value(error):
        return error_response(400, "Bad Request", str(error))

    @app.errorhandler(400)
    def bad_request(error):
        """Handle 400 Bad Request errors."""
        return error_response(400, "Bad Request", getattr(error, "description", None) or str(error))

    @app.errorhandler(403)
    def forbidden(error):
        """Handle 403 Forbidden errors."""
        return error_response(403, "Forbidden", "Insufficient permissions")

    @app.errorhandler(404)
    def not_found(error):
        """Handle 404 Not Found errors."""
        return error_response(404, "Not Found", "Resource not found")

    @app.errorhandler(Exception)
    def handle_exception(error):
        """Handle uncaught exceptions."""
        if isinstance(error, HTTPException):
            return error
        app.logger.error(f"Unhandled exception: {error}", exc_info=True)
        return error_response(500, "Internal Server Error", "An unexpected error occurred")
