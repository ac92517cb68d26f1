"""Routes for the tournament blueprint."""

from __future__ import annotations

from typing import Any

from firebase_admin import firestore
from flask import current_app, jsonify

from redrace.auth.decorators import login_required

from . import bp
from .services import TournamentService


@bp.route("/standings", methods=["GET"])
def standings() -> Any:
    """Ranked list of all runners."""
    db = firestore.client()
    return jsonify(TournamentService.get_standings(db))


@bp.route("/round", methods=["GET"])
def round_status() -> Any:
    """Progress of the current round."""
    db = firestore.client()
    status = TournamentService.get_round_status(current_app.config["TOURNAMENT_ID"], db)
    return jsonify(status)


@bp.route("/top-cut", methods=["GET"])
def top_cut() -> Any:
    """Preview who would make the top cut if it were taken now."""
    db = firestore.client()
    cut = TournamentService.preview_top_cut(current_app.config["TOP_CUT_SIZE"], db)
    return jsonify(cut)


@bp.route("/end-round", methods=["POST"])
@login_required(admin_required=True)
def end_round() -> Any:
    """Score the current round and move the tournament on to the next one."""
    db = firestore.client()
    outcome = TournamentService.end_round(
        current_app.config["TOURNAMENT_ID"], current_app.config["TOP_CUT_SIZE"], db
    )
    return jsonify(outcome)
