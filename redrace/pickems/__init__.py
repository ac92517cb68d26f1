"""The pickems blueprint."""

from flask import Blueprint

bp = Blueprint("pickems", __name__, url_prefix="/pickems")

from . import routes  # noqa: E402

__all__ = ["routes"]
