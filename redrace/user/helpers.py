"""Helper functions for user-related data."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable

from redrace.constants import USERS_COLLECTION

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client


def display_name(user_data: dict[str, Any] | None) -> str:
    """Return the name to show for a user, falling back to the Discord handle.

    Args:
        user_data: The user data dictionary from Firestore.

    Returns:
        The display name, the Discord username, or "Unknown".
    """
    if not user_data:
        return "Unknown"
    return user_data.get("displayName") or user_data.get("discordUsername") or "Unknown"


def user_summary(uid: str, user_data: dict[str, Any] | None) -> dict[str, Any]:
    """Build the small user object embedded in race and pickems payloads."""
    data = user_data or {}
    return {
        "id": uid,
        "discordUsername": data.get("discordUsername"),
        "displayName": display_name(data),
        "currentBracket": data.get("currentBracket"),
    }


def fetch_users_by_id(db: Client, user_ids: Iterable[str | None]) -> dict[str, dict[str, Any]]:
    """Fetch user documents for the given ids, skipping blanks and missing users."""
    users: dict[str, dict[str, Any]] = {}
    for uid in dict.fromkeys(u for u in user_ids if u):
        doc = db.collection(USERS_COLLECTION).document(uid).get()
        if doc.exists:
            data = doc.to_dict() or {}
            data["id"] = doc.id
            users[uid] = data
    return users
