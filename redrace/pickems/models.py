"""Data models for the pickems blueprint."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, TypedDict

from redrace.core.types import FirestoreDocument
from redrace.errors import ValidationError
from redrace.race.models import parse_finish_time
from redrace.race.ranking import total_milliseconds


class Pickems(FirestoreDocument, total=False):
    """A pickems document in Firestore, keyed by the predictor's user id."""

    userId: str
    top9: list[str]
    overallWinner: Optional[str]
    bestTimeWho: Optional[str]
    closestTime: Optional[int]
    round1Picks: list[str]
    round2Picks: list[str]
    round3Picks: list[str]
    quarterFinalsPicks: list[str]
    semiFinalsPicks: list[str]
    finalPick: Optional[str]
    points: int
    scoredRaces: list[str]
    top9PointsAwarded: bool


class LeaderboardEntry(TypedDict):
    """One row of the pickems leaderboard."""

    userId: str
    displayName: str
    points: int


def new_pickems(user_id: str) -> dict[str, Any]:
    """Return the default document for a user's first pickems submission."""
    return {
        "userId": user_id,
        "top9": [],
        "overallWinner": None,
        "bestTimeWho": None,
        "closestTime": None,
        "round1Picks": [],
        "round2Picks": [],
        "round3Picks": [],
        "quarterFinalsPicks": [],
        "semiFinalsPicks": [],
        "finalPick": None,
        "points": 0,
        "scoredRaces": [],
        "top9PointsAwarded": False,
    }


def as_user_id(value: Any) -> Optional[str]:
    """Accept a bare id or a user object carrying ``id``/``_id``."""
    if isinstance(value, dict):
        value = value.get("id") or value.get("_id")
    if value is None or value == "":
        return None
    return str(value)


def parse_id_list(value: Any, name: str) -> list[str]:
    """Validate an array of user ids, dropping duplicates but keeping order."""
    if not isinstance(value, list):
        raise ValidationError(f"{name} must be an array.")
    ids = [as_user_id(v) for v in value]
    if any(i is None for i in ids):
        raise ValidationError(f"{name} contains an empty selection.")
    return list(dict.fromkeys(i for i in ids if i))


@dataclass
class OneOffSubmission:
    """Predictions made once per tournament."""

    top_runners: list[str]
    overall_winner: str
    best_time_runner: str
    closest_time: int

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> OneOffSubmission:
        """Build a submission from the JSON body."""
        winner = as_user_id(data.get("selectedWinner"))
        best_time_runner = as_user_id(data.get("selectedBestTimeRunner"))
        if not winner or not best_time_runner:
            raise ValidationError("A winner and a best time runner must be selected.")
        best_time = data.get("bestTime")
        if not isinstance(best_time, dict):
            raise ValidationError("bestTime must be an object.")
        return cls(
            top_runners=parse_id_list(data.get("selectedRunners"), "selectedRunners"),
            overall_winner=winner,
            best_time_runner=best_time_runner,
            closest_time=total_milliseconds(parse_finish_time(best_time)),
        )

    def validate(self, top_cut_size: int) -> None:
        """Validate the submission for obvious errors."""
        if not self.top_runners:
            raise ValidationError("Select at least one runner for the top cut.")
        if len(self.top_runners) > top_cut_size:
            raise ValidationError(f"Select at most {top_cut_size} runners for the top cut.")

    def user_ids(self) -> list[str]:
        """Every competitor referenced by the submission."""
        return [*self.top_runners, self.overall_winner, self.best_time_runner]
