"""Routes for the auth blueprint.

Discord sign-in itself lives in front of this service; it stores the
user's document id in ``session["user_id"]`` after calling
:meth:`redrace.user.services.UserService.upsert_on_login`.
"""

from flask import g, jsonify, session

from . import bp


@bp.route("/session", methods=["GET"])
def session_status():
    """Report who is logged in, if anyone."""
    if not g.user:
        return jsonify(authenticated=False, user=None)
    return jsonify(
        authenticated=True,
        user={
            "id": g.user["uid"],
            "discordUsername": g.user.get("discordUsername"),
            "displayName": g.user.get("displayName"),
            "role": g.user.get("role"),
            "isAdmin": bool(g.user.get("isAdmin")),
        },
    )


@bp.route("/logout", methods=["POST"])
def logout():
    """Log the current user out."""
    session.clear()
    return jsonify(message="Logged out.")
