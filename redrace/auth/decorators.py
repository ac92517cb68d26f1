"""Decorators for the auth blueprint."""

from functools import wraps

from flask import g, jsonify, session

from redrace.constants import ROLE_RUNNER
from redrace.errors import ForbiddenError


def login_required(f=None, admin_required=False, runner_required=False):
    """Reject the request unless a user is logged in.

    Usage:
    @login_required
    def protected_view():
        ...

    @login_required(admin_required=True)
    def admin_view():
        ...

    @login_required(runner_required=True)
    def runner_view():
        ...
    """

    def decorator(func):
        @wraps(func)
        def decorated_function(*args, **kwargs):
            if "user_id" not in session or not g.get("user"):
                return jsonify(error="You must be logged in."), 401
            if admin_required and not g.user.get("isAdmin"):
                raise ForbiddenError(
                    "Access denied. You must be an admin to perform this action."
                )
            if runner_required and g.user.get("role") != ROLE_RUNNER:
                raise ForbiddenError(
                    "Access denied. You must be a runner to perform this action."
                )
            return func(*args, **kwargs)

        return decorated_function

    if f:
        return decorator(f)
    return decorator
