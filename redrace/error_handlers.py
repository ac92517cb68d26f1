"""JSON error responses for every blueprint."""

from flask import Blueprint, current_app, jsonify
from flask_wtf.csrf import CSRFError
from google.api_core.exceptions import GoogleAPICallError

from .errors import AppError

error_handlers_bp = Blueprint("error_handlers", __name__)

GENERIC_ERROR_MESSAGE = "An internal error occurred."


@error_handlers_bp.app_errorhandler(AppError)
def handle_app_error(error):
    """Answer an application error with its own message and status code."""
    if error.status_code < 500:
        current_app.logger.warning(f"{type(error).__name__}: {error.message}")
    else:
        current_app.logger.error(f"{type(error).__name__}: {error.message}")
    return jsonify(error.to_dict()), error.status_code


@error_handlers_bp.app_errorhandler(404)
def handle_404(e):
    """Unknown routes."""
    return jsonify(error="Not found."), 404


@error_handlers_bp.app_errorhandler(405)
def handle_405(e):
    return jsonify(error="Method not allowed."), 405


@error_handlers_bp.app_errorhandler(500)
def handle_500(e):
    current_app.logger.error(f"Internal Server Error: {e}")
    return jsonify(error=GENERIC_ERROR_MESSAGE), 500


@error_handlers_bp.app_errorhandler(GoogleAPICallError)
def handle_db_error(e):
    """Firestore failures are logged in full and reported generically."""
    current_app.logger.error(f"Database Error: {e}")
    return jsonify(error=GENERIC_ERROR_MESSAGE), 500


@error_handlers_bp.app_errorhandler(CSRFError)
def handle_csrf_error(e):
    """A missing or stale X-CSRFToken header."""
    current_app.logger.warning(f"CSRF Error: {e.description}")
    return jsonify(error="Your session may have expired. Please try again."), 400
