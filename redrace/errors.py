"""Custom exception classes for the application.

Services raise these; :mod:`redrace.error_handlers` turns them into JSON
responses carrying ``status_code``.
"""


class AppError(Exception):
    """Base application error class."""

    status_code = 400
    default_message = "The request could not be processed."

    def __init__(self, message=None, status_code=None):
        self.message = message or self.default_message
        super().__init__(self.message)
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self):
        return {"error": self.message}


class ValidationError(AppError):
    """Raised when a request body or a tournament precondition is invalid."""

    default_message = "Validation failed."


class DuplicateResourceError(AppError):
    """Raised for a second one-off pickems submission or commentary signup."""

    status_code = 409
    default_message = "Resource already exists."


class NotFoundError(AppError):
    status_code = 404
    default_message = "Resource not found."


class ForbiddenError(AppError):
    """Raised when the current user lacks the role an action requires."""

    status_code = 403
    default_message = "Access denied."
