"""Service layer for race data access and orchestration."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore
from flask import current_app

from redrace.constants import (
    COMPLETED,
    DEFAULT_BEST_TIME_MS,
    ELIMINATION_ROUNDS,
    GROUPS_COLLECTION,
    MAX_SWISS_COMMENTATORS,
    RACES_COLLECTION,
    ROUNDS,
    STATUS_DNF,
    STATUS_FINISHED,
    SWISS_ROUNDS,
    USERS_COLLECTION,
    WINNER_POINTS,
)
from redrace.errors import DuplicateResourceError, NotFoundError, ValidationError
from redrace.tournament.brackets import winner_points
from redrace.user.helpers import display_name, fetch_users_by_id, user_summary

from .models import RaceCompletion, RaceSubmission, racer_ids
from .ranking import rank_results_for_display, total_milliseconds, winner_of

if TYPE_CHECKING:
    from google.cloud.firestore_v1.batch import WriteBatch
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.document import DocumentReference

RACER_SLOTS = ("racer1", "racer2", "racer3")


def _docs_to_races(docs: Any) -> list[dict[str, Any]]:
    races = []
    for doc in docs:
        data = doc.to_dict()
        if data:
            data["id"] = doc.id
            races.append(data)
    return races


def _by_start(races: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return sorted(races, key=lambda r: r.get("raceDateTime") or 0)


def personal_record(racer_id: str, races: list[dict[str, Any]]) -> dict[str, Any]:
    """Best finish time and DNF flag of one racer across completed races."""
    best = DEFAULT_BEST_TIME_MS
    has_dnf = False
    for race in races:
        if not race.get("completed") or race.get("cancelled"):
            continue
        for result in race.get("results") or []:
            if result.get("racer") != racer_id:
                continue
            if result.get("status") == STATUS_FINISHED:
                best = min(best, total_milliseconds(result.get("finishTime")))
            elif result.get("status") == STATUS_DNF:
                has_dnf = True
    return {"bestTournamentTimeMilliseconds": best, "hasDNF": has_dnf}


class RaceService:
    """Service class for race-related operations."""

    @staticmethod
    def _get_race(db: Client, race_id: str) -> tuple[DocumentReference, dict[str, Any]]:
        ref = db.collection(RACES_COLLECTION).document(race_id)
        doc = cast(Any, ref.get())
        if not doc.exists:
            raise NotFoundError("Race not found.")
        data = cast(dict[str, Any], doc.to_dict() or {})
        data["id"] = doc.id
        return ref, data

    @staticmethod
    def _populate(db: Client, races: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Replace racer, commentator and restreamer ids with user summaries."""
        referenced: list[str] = []
        for race in races:
            referenced.extend(racer_ids(race))
            referenced.extend(race.get("commentators") or [])
            if race.get("restreamer"):
                referenced.append(race["restreamer"])
        users = fetch_users_by_id(db, referenced)

        populated = []
        for race in races:
            race = dict(race)
            for slot in RACER_SLOTS:
                if race.get(slot):
                    race[slot] = user_summary(race[slot], users.get(race[slot]))
            race["commentators"] = [
                user_summary(uid, users.get(uid)) for uid in race.get("commentators") or []
            ]
            if race.get("restreamer"):
                race["restreamer"] = user_summary(race["restreamer"], users.get(race["restreamer"]))
            race["results"] = [
                {**r, "racerName": display_name(users.get(r.get("racer")))}
                for r in race.get("results") or []
            ]
            populated.append(race)
        return populated

    @staticmethod
    def _races_for_racer(db: Client, racer_id: str) -> list[dict[str, Any]]:
        """Every race a user raced in, from any of the three racer slots."""
        races: dict[str, dict[str, Any]] = {}
        for slot in RACER_SLOTS:
            docs = (
                db.collection(RACES_COLLECTION)
                .where(filter=firestore.FieldFilter(slot, "==", racer_id))
                .stream()
            )
            for race in _docs_to_races(docs):
                races[race["id"]] = race
        return list(races.values())

    @staticmethod
    def submit_race(
        submission: RaceSubmission, tournament_id: str, db: Client | None = None
    ) -> str:
        """Schedule a race in the tournament's current round and return its id."""
        from redrace.tournament.services import TournamentService  # noqa: PLC0415

        if db is None:
            db = firestore.client()
        submission.validate()
        round_name = TournamentService.current_round(tournament_id, db)
        if round_name == COMPLETED or round_name not in ROUNDS:
            raise ValidationError("The tournament is not accepting races.")

        ids = [r for r in (submission.racer1, submission.racer2, submission.racer3) if r]
        users = fetch_users_by_id(db, ids)
        missing = [uid for uid in ids if uid not in users]
        if missing:
            raise ValidationError(f"Unknown racer(s): {', '.join(missing)}.")

        racer1 = users[submission.racer1]
        if not racer1.get("currentBracket"):
            raise ValidationError("Unable to determine your bracket.")
        group_id = racer1.get("currentGroup")
        if not group_id:
            raise ValidationError("You do not belong to any group.")
        group_ref = db.collection(GROUPS_COLLECTION).document(group_id)
        if not cast(Any, group_ref.get()).exists:
            raise ValidationError("Your group could not be found.")

        race_ref = db.collection(RACES_COLLECTION).document()
        race_data = {
            "racer1": submission.racer1,
            "racer2": submission.racer2,
            "racer3": submission.racer3,
            "raceDateTime": submission.race_date_time,
            "raceSubmitted": int(time.time()),
            "round": round_name,
            "bracket": racer1["currentBracket"],
            "commentators": [],
            "completed": False,
            "cancelled": False,
            "raceTimeId": None,
            "results": [],
            "winner": None,
            "pointsAwardedTo": None,
            "restreamPlanned": False,
            "restreamChannel": current_app.config["RESTREAM_DEFAULT_CHANNEL"],
            "restreamer": None,
        }

        batch = db.batch()
        batch.set(race_ref, race_data)
        batch.update(
            group_ref,
            {"raceStartTime": submission.race_date_time, "currentRace": race_ref.id},
        )
        batch.commit()
        current_app.logger.info(
            f"Race {race_ref.id} submitted for {round_name} by {submission.racer1}."
        )
        return race_ref.id

    @staticmethod
    def _queue_reconciliation(
        db: Client,
        batch: WriteBatch,
        race_id: str,
        race: dict[str, Any],
        previous_awardee: str | None,
    ) -> str | None:
        """Queue every write derived from a completed race's current state.

        ``race`` must already carry its new ``winner`` and ``cancelled``
        values. A cancelled race pays nobody: the winner bonus is released, the
        racers' records are rebuilt without it and the pickems bonus is
        revoked. Returns whoever now holds the winner bonus.
        """
        from redrace.pickems.services import PickemsService  # noqa: PLC0415

        ids = racer_ids(race)
        round_name = race["round"]
        winner = None if race.get("cancelled") else race.get("winner")
        awardee = winner if winner_points(round_name, winner) else None

        users = fetch_users_by_id(db, [*ids, previous_awardee])
        points_delta: dict[str, int] = {}
        if previous_awardee != awardee:
            if previous_awardee:
                points_delta[previous_awardee] = -WINNER_POINTS
            if awardee:
                points_delta[awardee] = points_delta.get(awardee, 0) + WINNER_POINTS

        for uid in dict.fromkeys([*ids, *points_delta]):
            if uid not in users:
                current_app.logger.warning(f"Race {race_id}: user {uid} no longer exists.")
                continue
            update: dict[str, Any] = {}
            if uid in ids:
                history = [r for r in RaceService._races_for_racer(db, uid) if r["id"] != race_id]
                update.update(personal_record(uid, [*history, race]))
            if points_delta.get(uid):
                update["points"] = (users[uid].get("points") or 0) + points_delta[uid]
            batch.update(db.collection(USERS_COLLECTION).document(uid), update)

        PickemsService.score_race(db, batch, race_id, round_name, winner)
        if previous_awardee != awardee:
            current_app.logger.info(
                f"Race {race_id}: winner bonus moved from {previous_awardee} to {awardee}."
            )
        return awardee

    @staticmethod
    def complete_race(
        race_id: str,
        completion: RaceCompletion,
        tournament_id: str,
        db: Client | None = None,
    ) -> dict[str, Any]:
        """Record a race's results and reconcile everything derived from them.

        The race, its racers and the pickems entries are written in one batch.
        Completing a race again reconciles against what the first completion
        stored, so identical results change nothing and corrected results move
        the winner bonus instead of paying it twice.
        """
        from redrace.tournament.services import TournamentService  # noqa: PLC0415

        if db is None:
            db = firestore.client()
        race_ref, race = RaceService._get_race(db, race_id)
        if race.get("cancelled"):
            raise ValidationError("A cancelled race cannot be completed.")
        current = TournamentService.current_round(tournament_id, db)
        if race.get("round") != current:
            raise ValidationError(
                f"This race belongs to {race.get('round')} but the tournament is in {current}."
            )
        completion.validate_against(race)

        ids = racer_ids(race)
        winner = winner_of(ids, list(completion.results))
        previous_awardee = race.get("pointsAwardedTo")

        race_update: dict[str, Any] = {
            "results": list(completion.results),
            "winner": winner,
            "completed": True,
        }
        if completion.race_time_id:
            race_update["raceTimeId"] = completion.race_time_id
        race.update(race_update)

        batch = db.batch()
        race_update["pointsAwardedTo"] = RaceService._queue_reconciliation(
            db, batch, race_id, race, previous_awardee
        )
        batch.update(race_ref, race_update)
        batch.commit()

        current_app.logger.info(f"Race {race_id} completed. Winner: {winner}.")
        return {"message": "Race completed successfully.", "winner": winner}

    @staticmethod
    def get_upcoming_races(db: Client | None = None) -> list[dict[str, Any]]:
        """Races not yet completed, soonest first."""
        if db is None:
            db = firestore.client()
        docs = (
            db.collection(RACES_COLLECTION)
            .where(filter=firestore.FieldFilter("completed", "==", False))
            .stream()
        )
        return RaceService._populate(db, _by_start(_docs_to_races(docs)))

    @staticmethod
    def get_ready_to_complete(
        db: Client | None = None, now: int | None = None
    ) -> list[dict[str, Any]]:
        """Races whose start time has passed but have no results yet."""
        if db is None:
            db = firestore.client()
        if now is None:
            now = int(time.time())
        docs = (
            db.collection(RACES_COLLECTION)
            .where(filter=firestore.FieldFilter("completed", "==", False))
            .stream()
        )
        races = [
            r
            for r in _docs_to_races(docs)
            if not r.get("cancelled") and (r.get("raceDateTime") or 0) < now
        ]
        return RaceService._populate(db, _by_start(races))

    @staticmethod
    def get_completed_races(db: Client | None = None) -> list[dict[str, Any]]:
        """Completed races with their results ordered finishers first."""
        if db is None:
            db = firestore.client()
        docs = (
            db.collection(RACES_COLLECTION)
            .where(filter=firestore.FieldFilter("completed", "==", True))
            .stream()
        )
        races = _by_start(_docs_to_races(docs))
        for race in races:
            race["results"] = rank_results_for_display(race.get("results") or [])
        return RaceService._populate(db, races)

    @staticmethod
    def get_user_races(user_id: str, db: Client | None = None) -> dict[str, Any]:
        """Races a user raced in and races they commentated."""
        if db is None:
            db = firestore.client()
        participated = _by_start(RaceService._races_for_racer(db, user_id))
        docs = (
            db.collection(RACES_COLLECTION)
            .where(filter=firestore.FieldFilter("commentators", "array_contains", user_id))
            .stream()
        )
        commentated = _by_start(_docs_to_races(docs))
        return {
            "racesParticipatedIn": RaceService._populate(db, participated),
            "racesCommentated": RaceService._populate(db, commentated),
        }

    @staticmethod
    def get_race(race_id: str, db: Client | None = None) -> dict[str, Any]:
        if db is None:
            db = firestore.client()
        _, race = RaceService._get_race(db, race_id)
        return RaceService._populate(db, [race])[0]

    @staticmethod
    def add_commentator(race_id: str, user_id: str, db: Client | None = None) -> None:
        """Sign a user up to commentate a race."""
        if db is None:
            db = firestore.client()
        ref, race = RaceService._get_race(db, race_id)
        commentators = list(race.get("commentators") or [])
        if user_id in commentators:
            raise DuplicateResourceError("You are already a commentator for this race.")
        if race.get("round") in SWISS_ROUNDS:
            if len(commentators) >= MAX_SWISS_COMMENTATORS:
                raise ValidationError(
                    f"Only {MAX_SWISS_COMMENTATORS} commentators are allowed for Swiss rounds."
                )
        elif race.get("round") not in ELIMINATION_ROUNDS:
            raise ValidationError("Invalid race round.")

        commentators.append(user_id)
        ref.update({"commentators": commentators})
        current_app.logger.info(f"User {user_id} will commentate race {race_id}.")

    @staticmethod
    def remove_commentator(race_id: str, user_id: str, db: Client | None = None) -> None:
        if db is None:
            db = firestore.client()
        ref, race = RaceService._get_race(db, race_id)
        commentators = list(race.get("commentators") or [])
        if user_id not in commentators:
            raise ValidationError("You are not a commentator for this race.")
        commentators.remove(user_id)
        ref.update({"commentators": commentators})
        current_app.logger.info(f"User {user_id} withdrew from commentating race {race_id}.")

    @staticmethod
    def set_cancelled(race_id: str, cancelled: bool, db: Client | None = None) -> None:
        """Cancel or restore a race.

        For a completed race the winner bonus, the racers' records and the
        pickems bonus follow the flag in the same batch.
        """
        if db is None:
            db = firestore.client()
        ref, race = RaceService._get_race(db, race_id)
        update: dict[str, Any] = {"cancelled": cancelled}
        if not race.get("completed"):
            ref.update(update)
        else:
            previous_awardee = race.get("pointsAwardedTo")
            race.update(update)
            batch = db.batch()
            update["pointsAwardedTo"] = RaceService._queue_reconciliation(
                db, batch, race_id, race, previous_awardee
            )
            batch.update(ref, update)
            batch.commit()
        current_app.logger.info(
            f"Race {race_id} {'cancelled' if cancelled else 'uncancelled'}."
        )

    @staticmethod
    def plan_restream(
        race_id: str, channel: str | None, restreamer_id: str, db: Client | None = None
    ) -> dict[str, Any]:
        """Plan a restream of a race on ``channel``."""
        if db is None:
            db = firestore.client()
        if not channel or not str(channel).strip():
            raise ValidationError("Restream channel is required.")
        ref, race = RaceService._get_race(db, race_id)
        update = {
            "restreamPlanned": True,
            "restreamChannel": str(channel).strip(),
            "restreamer": restreamer_id,
        }
        ref.update(update)
        race.update(update)
        current_app.logger.info(f"Restream of race {race_id} planned on {update['restreamChannel']}.")
        return race

    @staticmethod
    def cancel_restream(
        race_id: str, default_channel: str, db: Client | None = None
    ) -> dict[str, Any]:
        """Drop a planned restream and reset the channel."""
        if db is None:
            db = firestore.client()
        ref, race = RaceService._get_race(db, race_id)
        update = {
            "restreamPlanned": False,
            "restreamChannel": default_channel,
            "restreamer": None,
        }
        ref.update(update)
        race.update(update)
        current_app.logger.info(f"Restream of race {race_id} cancelled.")
        return race
