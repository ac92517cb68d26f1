"""Routes for the past results blueprint."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from firebase_admin import firestore
from flask import jsonify

from redrace.constants import PAST_RESULTS_COLLECTION
from redrace.user.helpers import fetch_users_by_id

from . import bp

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

PODIUM = ("gold", "silver", "bronze")


def get_past_results(db: Client) -> list[dict[str, Any]]:
    """Every past tournament's podium, newest first.

    Podium places linked to a user account carry that user's current names.
    """
    results = []
    for doc in db.collection(PAST_RESULTS_COLLECTION).stream():
        data = doc.to_dict()
        if data:
            data["id"] = doc.id
            results.append(data)

    users = fetch_users_by_id(
        db, [(r.get(place) or {}).get("userId") for r in results for place in PODIUM]
    )
    for result in results:
        for place in PODIUM:
            entry = result.get(place)
            if entry and entry.get("userId") in users:
                user = users[entry["userId"]]
                result[place] = {
                    **entry,
                    "discordUsername": user.get("discordUsername"),
                    "displayName": user.get("displayName"),
                }
    results.sort(key=lambda r: r.get("tournamentYear") or 0, reverse=True)
    return results


@bp.route("/", methods=["GET"])
def past_results() -> Any:
    db = firestore.client()
    return jsonify(get_past_results(db))
