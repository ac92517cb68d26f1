"""The past results blueprint."""

from flask import Blueprint

bp = Blueprint("past_results", __name__, url_prefix="/past-results")

from . import routes  # noqa: E402

__all__ = ["routes"]
