"""Data models for the tournament blueprint."""

from __future__ import annotations

from typing import Any, Optional, TypedDict

from redrace.core.types import FirestoreDocument


class TopCut(TypedDict, total=False):
    """The stored result of the cut between the Swiss and bracket rounds."""

    size: int
    cutoffPoints: Optional[int]
    qualified: list[str]
    boundary: list[str]
    tied: list[str]


class Tournament(FirestoreDocument, total=False):
    """A tournament document in Firestore."""

    name: str
    currentRound: str
    topCut: TopCut


class Standing(TypedDict, total=False):
    """One row of the standings table."""

    id: str
    discordUsername: str
    displayName: str
    points: int
    tieBreakerValue: int
    currentBracket: str


class RoundStatus(TypedDict):
    """Progress of the current round."""

    currentRound: str
    upcomingRaces: int
    awaitingResults: int
    completedRaces: int
    cancelledRaces: int


class EndRoundResult(TypedDict, total=False):
    """Outcome of ending a round."""

    message: str
    previousRound: str
    nextRound: str
    racesProcessed: int
    moves: list[dict[str, Any]]
    topCut: dict[str, Any]
