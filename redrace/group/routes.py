"""Routes for the group blueprint."""

from __future__ import annotations

from typing import Any

from firebase_admin import firestore
from flask import current_app, g, jsonify

from redrace.auth.decorators import login_required
from redrace.core.forms import validated

from . import bp
from .forms import CreateGroupForm
from .services import GroupService


@bp.route("/", methods=["GET"])
def list_groups() -> Any:
    db = firestore.client()
    return jsonify(GroupService.list_groups(db))


@bp.route("/count", methods=["GET"])
def count() -> Any:
    db = firestore.client()
    return jsonify(count=GroupService.count_groups(db))


@bp.route("/user/current", methods=["GET"])
@login_required(runner_required=True)
def current_group() -> Any:
    """The logged-in runner's group."""
    db = firestore.client()
    return jsonify(GroupService.get_current_group(g.user["uid"], db))


@bp.route("/", methods=["POST"])
@login_required(admin_required=True)
def create_group() -> Any:
    """Draw a new group."""
    db = firestore.client()
    form = validated(CreateGroupForm)
    group = GroupService.create_group(
        [form.pot1UserId.data, form.pot2UserId.data, form.pot3UserId.data],
        current_app.config["TOURNAMENT_ID"],
        round_name=form.round.data or None,
        bracket=form.bracket.data or None,
        db=db,
    )
    return jsonify(message="Group created successfully.", group=group), 201
