"""Admin routes for the application."""

from firebase_admin import firestore
from flask import jsonify

from redrace.auth.decorators import login_required
from redrace.core.forms import validated
from redrace.user.services import UserService

from . import bp
from .forms import AddUserForm


@bp.route("/add-user", methods=["POST"])
@login_required(admin_required=True)
def add_user():
    """Create a user, or update the one with the same Discord username."""
    db = firestore.client()
    form = validated(AddUserForm)
    user_id, created = UserService.admin_upsert_user(
        form.discordUsername.data.strip(),
        (form.displayName.data or "").strip() or None,
        form.role.data,
        bool(form.isAdmin.data),
        db,
    )
    message = "User added successfully." if created else "User updated successfully."
    return jsonify(message=message, id=user_id), 201 if created else 200
