"""Routes for the pickems blueprint."""

from __future__ import annotations

from typing import Any

from firebase_admin import firestore
from flask import current_app, g, jsonify, request

from redrace.auth.decorators import login_required
from redrace.errors import ValidationError
from redrace.tournament.services import TournamentService

from . import bp
from .models import OneOffSubmission
from .services import PickemsService, get_entry_or_404

DEFAULT_TOP_PICKS = 5


@bp.route("/submit-one-off", methods=["POST"])
@login_required
def submit_one_off() -> Any:
    """Submit the once-per-tournament predictions."""
    db = firestore.client()
    submission = OneOffSubmission.from_dict(request.get_json(silent=True) or {})
    PickemsService.submit_one_off(
        g.user["uid"], submission, current_app.config["TOP_CUT_SIZE"], db
    )
    return jsonify(message="Pickems submitted successfully."), 201


@bp.route("/submit-round", methods=["POST"])
@login_required
def submit_round() -> Any:
    """Submit picks for the current round."""
    db = firestore.client()
    data = request.get_json(silent=True) or {}
    round_name = PickemsService.submit_round_picks(
        g.user["uid"], current_app.config["TOURNAMENT_ID"], data.get("selectedRunners"), db
    )
    return jsonify(message=f"{round_name} picks submitted successfully.", round=round_name), 201


@bp.route("/", methods=["GET"])
@login_required
def my_pickems() -> Any:
    """The logged-in user's entry."""
    db = firestore.client()
    return jsonify(get_entry_or_404(g.user["uid"], db))


@bp.route("/leaderboard", methods=["GET"])
def leaderboard() -> Any:
    db = firestore.client()
    return jsonify(PickemsService.get_leaderboard(db))


@bp.route("/stats/top-picks", methods=["GET"])
def top_picks() -> Any:
    """Most picked competitors for one pickems field."""
    db = firestore.client()
    field = request.args.get("field", "top9")
    try:
        n = int(request.args.get("n", DEFAULT_TOP_PICKS))
    except ValueError as e:
        raise ValidationError("n must be a whole number.") from e
    return jsonify(PickemsService.get_top_picks(field, n, db))


@bp.route("/stats/favorites", methods=["GET"])
def favorites() -> Any:
    """Most picked member of each group in a round."""
    db = firestore.client()
    round_name = request.args.get("round") or TournamentService.current_round(
        current_app.config["TOURNAMENT_ID"], db
    )
    return jsonify(PickemsService.get_group_favorites(round_name, db))


@bp.route("/rescore", methods=["POST"])
@login_required(admin_required=True)
def rescore() -> Any:
    """Reconcile every entry against every completed race."""
    db = firestore.client()
    return jsonify(PickemsService.rescore_completed_races(db))


@bp.route("/award-top-cut", methods=["POST"])
@login_required(admin_required=True)
def award_top_cut() -> Any:
    """Award the top-cut prediction bonus."""
    db = firestore.client()
    summary = PickemsService.award_top_cut_points(current_app.config["TOURNAMENT_ID"], db)
    return jsonify(awarded=summary)


@bp.route("/<string:user_id>", methods=["GET"])
def user_pickems(user_id: str) -> Any:
    """Another user's entry."""
    db = firestore.client()
    return jsonify(get_entry_or_404(user_id, db))
