"""Routes for the stats blueprint."""

from firebase_admin import firestore
from flask import jsonify

from . import bp
from .services import StatsService


@bp.route("/", methods=["GET"])
def stats():
    """Tournament-wide race statistics."""
    db = firestore.client()
    return jsonify(StatsService.get_stats(db))
