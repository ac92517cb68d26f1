"""Routes for the race blueprint."""

from __future__ import annotations

from typing import Any

from firebase_admin import firestore
from flask import current_app, g, jsonify, request

from redrace.auth.decorators import login_required

from . import bp
from .models import RaceCompletion, RaceSubmission
from .services import RaceService


@bp.route("/", methods=["GET"])
def upcoming() -> Any:
    """Races not yet completed."""
    db = firestore.client()
    return jsonify(RaceService.get_upcoming_races(db))


@bp.route("/ready-to-complete", methods=["GET"])
def ready_to_complete() -> Any:
    db = firestore.client()
    return jsonify(RaceService.get_ready_to_complete(db))


@bp.route("/completed", methods=["GET"])
def completed() -> Any:
    db = firestore.client()
    return jsonify(RaceService.get_completed_races(db))


@bp.route("/user", methods=["GET"])
@login_required
def my_races() -> Any:
    """Races the logged-in user raced in or commentated."""
    db = firestore.client()
    return jsonify(RaceService.get_user_races(g.user["uid"], db))


@bp.route("/user/<string:user_id>", methods=["GET"])
def user_races(user_id: str) -> Any:
    db = firestore.client()
    return jsonify(RaceService.get_user_races(user_id, db))


@bp.route("/submit", methods=["POST"])
@login_required(runner_required=True)
def submit() -> Any:
    """Schedule a race with the caller as the first racer."""
    db = firestore.client()
    submission = RaceSubmission.from_dict(g.user["uid"], request.get_json(silent=True) or {})
    race_id = RaceService.submit_race(submission, current_app.config["TOURNAMENT_ID"], db)
    return jsonify(message="Race submitted successfully.", id=race_id), 201


@bp.route("/<string:race_id>/complete", methods=["POST"])
@login_required(admin_required=True)
def complete(race_id: str) -> Any:
    """Record a race's results."""
    db = firestore.client()
    completion = RaceCompletion.from_dict(request.get_json(silent=True) or {})
    outcome = RaceService.complete_race(
        race_id, completion, current_app.config["TOURNAMENT_ID"], db
    )
    return jsonify(outcome)


@bp.route("/<string:race_id>/commentator", methods=["POST"])
@login_required
def add_commentator(race_id: str) -> Any:
    db = firestore.client()
    RaceService.add_commentator(race_id, g.user["uid"], db)
    return jsonify(message="You have been added as a commentator.")


@bp.route("/<string:race_id>/remove-commentator", methods=["POST"])
@login_required
def remove_commentator(race_id: str) -> Any:
    db = firestore.client()
    RaceService.remove_commentator(race_id, g.user["uid"], db)
    return jsonify(message="You have been removed as a commentator.")


@bp.route("/<string:race_id>/cancel", methods=["POST"])
@login_required(admin_required=True)
def cancel(race_id: str) -> Any:
    db = firestore.client()
    RaceService.set_cancelled(race_id, True, db)
    return jsonify(message="Race cancelled successfully.")


@bp.route("/<string:race_id>/uncancel", methods=["POST"])
@login_required(admin_required=True)
def uncancel(race_id: str) -> Any:
    db = firestore.client()
    RaceService.set_cancelled(race_id, False, db)
    return jsonify(message="Race uncancelled successfully.")


@bp.route("/<string:race_id>/restream", methods=["POST"])
@login_required(admin_required=True)
def restream(race_id: str) -> Any:
    """Plan a restream of the race."""
    db = firestore.client()
    data = request.get_json(silent=True) or {}
    race = RaceService.plan_restream(race_id, data.get("restreamChannel"), g.user["uid"], db)
    return jsonify(message="Restream planned successfully.", race=race)


@bp.route("/<string:race_id>/cancel-restream", methods=["POST"])
@login_required(admin_required=True)
def cancel_restream(race_id: str) -> Any:
    db = firestore.client()
    race = RaceService.cancel_restream(
        race_id, current_app.config["RESTREAM_DEFAULT_CHANNEL"], db
    )
    return jsonify(message="Restream cancelled successfully.", race=race)


@bp.route("/<string:race_id>", methods=["GET"])
def get_race(race_id: str) -> Any:
    db = firestore.client()
    return jsonify(RaceService.get_race(race_id, db))
