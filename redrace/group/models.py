"""Data models for the group blueprint."""

from __future__ import annotations

from typing import Optional

from redrace.core.types import FirestoreDocument


class Group(FirestoreDocument, total=False):
    """A group of two or three runners drawn for one round."""

    groupNumber: int
    members: list[str]
    round: str
    bracket: str
    raceStartTime: Optional[int]
    currentRace: Optional[str]
