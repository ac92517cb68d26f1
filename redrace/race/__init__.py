"""The race blueprint."""

from flask import Blueprint

bp = Blueprint("race", __name__, url_prefix="/races")

from . import routes  # noqa: E402, F401
from .services import RaceService  # noqa: E402

__all__ = ["RaceService", "routes"]
