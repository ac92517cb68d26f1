"""Utility functions for tournament standings."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from firebase_admin import firestore

from redrace.constants import ROLE_RUNNER, USERS_COLLECTION

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

DNF_TIEBREAK_VALUE = -1


def fetch_runners(db: Client) -> list[dict[str, Any]]:
    """Fetch every user document with the runner role."""
    docs = (
        db.collection(USERS_COLLECTION)
        .where(filter=firestore.FieldFilter("role", "==", ROLE_RUNNER))
        .stream()
    )
    runners = []
    for doc in docs:
        data = doc.to_dict()
        if data:
            data["id"] = doc.id
            runners.append(data)
    return runners


def standing_entry(runner: dict[str, Any]) -> dict[str, Any]:
    """Format one runner for the standings table.

    A runner that has ever recorded a DNF gets the worst tie-break value,
    whatever it has accumulated.
    """
    return {
        "id": runner.get("id"),
        "discordUsername": runner.get("discordUsername"),
        "displayName": runner.get("displayName") or runner.get("discordUsername"),
        "points": runner.get("points") or 0,
        "tieBreakerValue": DNF_TIEBREAK_VALUE
        if runner.get("hasDNF")
        else (runner.get("tieBreakerValue") or 0),
        "currentBracket": runner.get("currentBracket") or "Unknown",
    }


def sort_standings(runners: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Format and sort runners by points (desc), then tie-break value (desc)."""
    standings = [standing_entry(r) for r in runners]
    standings.sort(key=lambda s: (s["points"], s["tieBreakerValue"]), reverse=True)
    return standings


def get_standings(db: Client) -> list[dict[str, Any]]:
    """Orchestrate the calculation of tournament standings."""
    return sort_standings(fetch_runners(db))


def compute_top_cut(standings: list[dict[str, Any]], size: int) -> dict[str, Any]:
    """Split sorted standings at ``size`` and surface ties on the cut line.

    ``qualified`` holds the first ``size`` entries. ``tied`` holds the entries
    outside the cut whose points equal the last qualified entry's points, and
    ``boundary`` the qualified entries sharing those points. An admin settles
    those by hand.
    """
    qualified = standings[:size]
    if not qualified or size <= 0:
        return {"size": size, "cutoffPoints": None, "qualified": [], "boundary": [], "tied": []}

    cutoff_points = qualified[-1]["points"]
    tied = [s for s in standings[size:] if s["points"] == cutoff_points]
    boundary = [s for s in qualified if s["points"] == cutoff_points] if tied else []
    return {
        "size": size,
        "cutoffPoints": cutoff_points,
        "qualified": qualified,
        "boundary": boundary,
        "tied": tied,
    }
