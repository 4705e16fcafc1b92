"""JSON error handlers for the API."""

from flask import Blueprint, current_app, jsonify
from google.api_core.exceptions import GoogleAPICallError

from .errors import AppError, StoreError

error_handlers_bp = Blueprint("error_handlers", __name__)


def _error_response(message, status_code):
    return jsonify({"success": False, "message": message}), status_code


@error_handlers_bp.app_errorhandler(StoreError)
def handle_store_error(error):
    """Handles persistence failures without exposing their details."""
    current_app.logger.error(f"Store Error: {error.message}")
    return _error_response(
        "A database error occurred. Please try again later.", error.status_code
    )


@error_handlers_bp.app_errorhandler(AppError)
def handle_app_error(error):
    """Handles validation, conflict, auth and not-found errors."""
    current_app.logger.warning(
        f"{type(error).__name__} ({error.status_code}): {error.message}"
    )
    return _error_response(error.message, error.status_code)


@error_handlers_bp.app_errorhandler(GoogleAPICallError)
def handle_db_error(e):
    """Handles database errors that escaped the service layer."""
    current_app.logger.error(f"Database Error: {e}")
    return _error_response("A database error occurred. Please try again later.", 500)


@error_handlers_bp.app_errorhandler(404)
def handle_404(e):
    """Handles generic 404 errors for routes that don't exist."""
    return _error_response("Not found", 404)


@error_handlers_bp.app_errorhandler(405)
def handle_405(e):
    """Handles requests with an unsupported method."""
    return _error_response("Method not allowed", 405)


@error_handlers_bp.app_errorhandler(500)
def handle_500(e):
    """Handles unexpected server errors."""
    current_app.logger.error(f"Internal Server Error: {e}")
    return _error_response("Server error", 500)
