"""Data models for the user blueprint."""

from __future__ import annotations

from typing import Any, Optional

from redrace.constants import BRACKET_NORMAL, DEFAULT_BEST_TIME_MS, ROLE_COMMENTATOR
from redrace.core.types import FirestoreDocument


class User(FirestoreDocument, total=False):
    """A user document in Firestore."""

    discordUsername: str
    displayName: str
    role: str
    isAdmin: bool
    pronouns: str
    country: Optional[str]
    currentBracket: str
    points: int
    tieBreakerValue: int
    hasDNF: bool
    bestTournamentTimeMilliseconds: int
    currentGroup: Optional[str]
    uid: str


def new_user(
    discord_username: str,
    display_name: str | None = None,
    role: str = ROLE_COMMENTATOR,
    is_admin: bool = False,
) -> dict[str, Any]:
    """Return the default document for a user seen for the first time."""
    return {
        "discordUsername": discord_username,
        "displayName": display_name or discord_username,
        "role": role,
        "isAdmin": is_admin,
        "pronouns": "",
        "country": None,
        "currentBracket": BRACKET_NORMAL,
        "points": 0,
        "tieBreakerValue": 0,
        "hasDNF": False,
        "bestTournamentTimeMilliseconds": DEFAULT_BEST_TIME_MS,
        "currentGroup": None,
    }
