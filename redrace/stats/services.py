"""Service layer for race statistics."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from firebase_admin import firestore

from redrace.constants import (
    RACES_COLLECTION,
    STATS_COMMENTATORS_LIMIT,
    STATS_TOP_TIMES_LIMIT,
)
from redrace.user.helpers import fetch_users_by_id, user_summary

from .utils import average_time_by, most_active_commentators, top_times, win_rates

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client


class StatsService:
    """Service for tournament-wide race statistics."""

    @staticmethod
    def get_stats(db: Client | None = None) -> dict[str, Any]:
        """Compute every statistic from the races collection in one pass over it."""
        if db is None:
            db = firestore.client()
        races = []
        for doc in db.collection(RACES_COLLECTION).stream():
            data = doc.to_dict()
            if data:
                data["id"] = doc.id
                races.append(data)

        times = top_times(races, STATS_TOP_TIMES_LIMIT)
        rates = win_rates(races)
        commentators = most_active_commentators(races, STATS_COMMENTATORS_LIMIT)

        users = fetch_users_by_id(
            db,
            [t["racer"] for t in times]
            + [r["racer"] for r in rates]
            + [c["commentator"] for c in commentators],
        )
        for row in times:
            row["racer"] = user_summary(row["racer"], users.get(row["racer"]))
        for row in rates:
            row["racer"] = user_summary(row["racer"], users.get(row["racer"]))
        for row in commentators:
            row["commentator"] = user_summary(row["commentator"], users.get(row["commentator"]))

        return {
            "topTimes": times,
            "averageTimePerRound": average_time_by(races, "round"),
            "averageTimePerBracket": average_time_by(races, "bracket"),
            "winRate": rates,
            "mostActiveCommentators": commentators,
        }
