"""Data models for the race blueprint."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, TypedDict

from redrace.constants import STATUS_DNF, STATUSES
from redrace.core.types import FirestoreDocument
from redrace.errors import ValidationError

MAX_MINUTES = 60
MAX_SECONDS = 60
MAX_MILLISECONDS = 1000


class FinishTime(TypedDict, total=False):
    """A finish time split into its parts."""

    hours: int
    minutes: int
    seconds: int
    milliseconds: int


class RaceResult(TypedDict, total=False):
    """One racer's result within a race."""

    racer: str
    status: str
    finishTime: FinishTime
    dnfOrder: int


class Race(FirestoreDocument, total=False):
    """A race document in Firestore."""

    racer1: str
    racer2: str
    racer3: Optional[str]
    raceDateTime: int
    raceSubmitted: int
    round: str
    bracket: str
    commentators: list[str]
    completed: bool
    cancelled: bool
    raceTimeId: Optional[str]
    results: list[RaceResult]
    winner: Optional[str]
    pointsAwardedTo: Optional[str]
    restreamPlanned: bool
    restreamChannel: str
    restreamer: Optional[str]


def racer_ids(race: dict[str, Any]) -> list[str]:
    """Return the ids of the two or three racers of a race, in slot order."""
    return [rid for rid in (race.get("racer1"), race.get("racer2"), race.get("racer3")) if rid]


def _as_int(value: Any, name: str) -> int:
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be a whole number.")
    try:
        number = int(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{name} must be a whole number.") from e
    if number < 0:
        raise ValidationError(f"{name} cannot be negative.")
    return number


def parse_finish_time(raw: Any) -> FinishTime:
    """Validate and normalise a finish time mapping."""
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ValidationError("finishTime must be an object.")
    finish_time: FinishTime = {
        "hours": _as_int(raw.get("hours"), "hours"),
        "minutes": _as_int(raw.get("minutes"), "minutes"),
        "seconds": _as_int(raw.get("seconds"), "seconds"),
        "milliseconds": _as_int(raw.get("milliseconds"), "milliseconds"),
    }
    if finish_time["minutes"] >= MAX_MINUTES or finish_time["seconds"] >= MAX_SECONDS:
        raise ValidationError("Minutes and seconds must be below 60.")
    if finish_time["milliseconds"] >= MAX_MILLISECONDS:
        raise ValidationError("Milliseconds must be below 1000.")
    return finish_time


@dataclass
class RaceSubmission:
    """Dataclass for a runner scheduling a race."""

    racer1: str
    racer2: str
    race_date_time: int
    racer3: Optional[str] = None

    @classmethod
    def from_dict(cls, racer1: str, data: dict[str, Any]) -> RaceSubmission:
        """Build a submission from a JSON body."""
        try:
            race_date_time = int(data.get("raceDateTime"))
        except (TypeError, ValueError) as e:
            raise ValidationError("raceDateTime must be a Unix timestamp.") from e
        return cls(
            racer1=racer1,
            racer2=data.get("racer2") or "",
            racer3=data.get("racer3") or None,
            race_date_time=race_date_time,
        )

    def validate(self) -> None:
        """Validate the submission for obvious errors."""
        if not self.racer2:
            raise ValidationError("A second racer is required.")
        racers = [r for r in (self.racer1, self.racer2, self.racer3) if r]
        if len(racers) != len(set(racers)):
            raise ValidationError("All racers in a race must be different.")
        if self.race_date_time <= 0:
            raise ValidationError("raceDateTime must be a Unix timestamp.")


@dataclass
class RaceCompletion:
    """Dataclass for an admin recording the results of a race."""

    results: list[RaceResult]
    race_time_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RaceCompletion:
        """Build a completion from a JSON body, normalising every result."""
        raw_results = data.get("results")
        if not isinstance(raw_results, list) or not raw_results:
            raise ValidationError("results must be a non-empty array.")

        results: list[RaceResult] = []
        for raw in raw_results:
            if not isinstance(raw, dict):
                raise ValidationError("Each result must be an object.")
            status = raw.get("status")
            if status not in STATUSES:
                raise ValidationError(
                    f"Invalid status '{status}'. Expected one of {', '.join(STATUSES)}."
                )
            if not raw.get("racer"):
                raise ValidationError("Each result needs a racer.")
            result: RaceResult = {
                "racer": str(raw["racer"]),
                "status": status,
                "finishTime": parse_finish_time(raw.get("finishTime")),
            }
            if status == STATUS_DNF and raw.get("dnfOrder") is not None:
                result["dnfOrder"] = _as_int(raw.get("dnfOrder"), "dnfOrder")
            results.append(result)

        race_time_id = data.get("raceTimeId") or None
        return cls(
            results=results,
            race_time_id=str(race_time_id) if race_time_id else None,
        )

    def validate_against(self, race: dict[str, Any]) -> None:
        """Check the results cover exactly the racers of ``race``."""
        expected = racer_ids(race)
        submitted = [r["racer"] for r in self.results]
        if len(submitted) != len(set(submitted)):
            raise ValidationError("Each racer can only have one result.")
        if sorted(submitted) != sorted(expected):
            raise ValidationError("Results must cover exactly the racers of this race.")
