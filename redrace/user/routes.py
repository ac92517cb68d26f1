"""Routes for the user blueprint."""

from __future__ import annotations

from typing import Any

from firebase_admin import firestore
from flask import g, jsonify, request

from redrace.auth.decorators import login_required
from redrace.core.forms import validated

from . import bp
from .forms import DisplayNameForm
from .services import UserService


@bp.route("/me", methods=["GET"])
@login_required
def me() -> Any:
    """The logged-in user's profile."""
    db = firestore.client()
    return jsonify(UserService.get_user(g.user["uid"], db))


@bp.route("/displayName", methods=["POST"])
@login_required
def update_display_name() -> Any:
    db = firestore.client()
    form = validated(DisplayNameForm)
    UserService.update_display_name(g.user["uid"], form.displayName.data, db)
    return jsonify(message="Display name updated successfully.")


@bp.route("/pronouns", methods=["POST"])
@login_required
def update_pronouns() -> Any:
    db = firestore.client()
    data = request.get_json(silent=True) or {}
    UserService.update_pronouns(g.user["uid"], data.get("pronouns"), db)
    return jsonify(message="Pronouns updated successfully.")
