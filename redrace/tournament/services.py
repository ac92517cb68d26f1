"""Service layer for tournament business logic."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore
from flask import current_app

from redrace.constants import (
    COMPLETED,
    RACES_COLLECTION,
    ROUND_TRANSITIONS,
    TOP_CUT_ROUND,
    TOURNAMENTS_COLLECTION,
    USERS_COLLECTION,
)
from redrace.errors import NotFoundError, ValidationError
from redrace.race.models import racer_ids
from redrace.race.ranking import placements
from redrace.user.helpers import display_name, fetch_users_by_id

from .brackets import apply_race
from .models import EndRoundResult, RoundStatus, TopCut
from .utils import compute_top_cut, get_standings

if TYPE_CHECKING:
    from google.cloud.firestore_v1.batch import WriteBatch
    from google.cloud.firestore_v1.client import Client


def next_round(current_round: str) -> str:
    """Return the round that follows ``current_round``."""
    if current_round not in ROUND_TRANSITIONS:
        raise ValidationError(f"Round '{current_round}' cannot be ended.")
    return ROUND_TRANSITIONS[current_round]


class TournamentService:
    """Handles business logic and data access for tournaments."""

    @staticmethod
    def get_tournament(tournament_id: str, db: Client | None = None) -> dict[str, Any]:
        """Fetch a tournament document or raise NotFoundError."""
        if db is None:
            db = firestore.client()
        doc = cast(Any, db.collection(TOURNAMENTS_COLLECTION).document(tournament_id).get())
        if not doc.exists:
            raise NotFoundError("Tournament not found.")
        data = cast(dict[str, Any], doc.to_dict() or {})
        data["id"] = doc.id
        return data

    @staticmethod
    def current_round(tournament_id: str, db: Client | None = None) -> str:
        """Return the tournament's current round name."""
        return str(TournamentService.get_tournament(tournament_id, db).get("currentRound"))

    @staticmethod
    def fetch_round_races(db: Client, round_name: str) -> list[dict[str, Any]]:
        """Fetch every race scheduled in ``round_name``."""
        docs = (
            db.collection(RACES_COLLECTION)
            .where(filter=firestore.FieldFilter("round", "==", round_name))
            .stream()
        )
        races = []
        for doc in docs:
            data = doc.to_dict()
            if data:
                data["id"] = doc.id
                races.append(data)
        return races

    @staticmethod
    def get_round_status(
        tournament_id: str, db: Client | None = None, now: int | None = None
    ) -> RoundStatus:
        """Count the current round's races by progress."""
        if db is None:
            db = firestore.client()
        if now is None:
            now = int(time.time())
        round_name = TournamentService.current_round(tournament_id, db)
        races = TournamentService.fetch_round_races(db, round_name)

        active = [r for r in races if not r.get("cancelled")]
        return {
            "currentRound": round_name,
            "upcomingRaces": sum(
                1 for r in active if not r.get("completed") and r.get("raceDateTime", 0) > now
            ),
            "awaitingResults": sum(
                1 for r in active if not r.get("completed") and r.get("raceDateTime", 0) <= now
            ),
            "completedRaces": sum(1 for r in active if r.get("completed")),
            "cancelledRaces": len(races) - len(active),
        }

    @staticmethod
    def get_standings(db: Client | None = None) -> list[dict[str, Any]]:
        """Return the read-only standings of every runner."""
        if db is None:
            db = firestore.client()
        return get_standings(db)

    @staticmethod
    def preview_top_cut(size: int, db: Client | None = None) -> dict[str, Any]:
        """Compute the top cut from the live standings without storing it."""
        if db is None:
            db = firestore.client()
        return compute_top_cut(get_standings(db), size)

    @staticmethod
    def _apply_bracket_movement(
        db: Client,
        batch: WriteBatch,
        races: list[dict[str, Any]],
        round_name: str,
    ) -> list[dict[str, Any]]:
        """Queue tier and tie-break updates for every racer of ``races``."""
        all_ids = [rid for race in races for rid in racer_ids(race)]
        competitors = fetch_users_by_id(db, all_ids)

        moves = []
        for race in sorted(races, key=lambda r: r.get("raceDateTime") or 0):
            result = placements(racer_ids(race), race.get("results") or [])
            for move in apply_race(round_name, result, competitors):
                name = display_name(competitors.get(move.racer_id))
                current_app.logger.info(
                    f"Race {race['id']}: {name} {move.from_bracket} -> "
                    f"{move.to_bracket} (+{move.tiebreak_gain} tie-break)"
                )
                moves.append({
                    "raceId": race["id"],
                    "racer": move.racer_id,
                    "from": move.from_bracket,
                    "to": move.to_bracket,
                })

        for uid, competitor in competitors.items():
            batch.update(
                db.collection(USERS_COLLECTION).document(uid),
                {
                    "currentBracket": competitor.get("currentBracket"),
                    "tieBreakerValue": competitor.get("tieBreakerValue") or 0,
                },
            )
        return moves

    @staticmethod
    def end_round(
        tournament_id: str, top_cut_size: int, db: Client | None = None
    ) -> EndRoundResult:
        """Process every race of the current round and advance the tournament.

        Either every update is committed together or, when a race of the round
        is still incomplete, nothing is written at all.
        """
        if db is None:
            db = firestore.client()
        tournament = TournamentService.get_tournament(tournament_id, db)
        current = tournament.get("currentRound") or ""
        if current == COMPLETED:
            raise ValidationError("The tournament is already completed.")
        following = next_round(current)

        races = [
            r for r in TournamentService.fetch_round_races(db, current) if not r.get("cancelled")
        ]
        incomplete = [r for r in races if not r.get("completed")]
        if incomplete:
            raise ValidationError(
                f"Not all races are completed for the current round "
                f"({len(incomplete)} remaining)."
            )

        batch = db.batch()
        tournament_ref = db.collection(TOURNAMENTS_COLLECTION).document(tournament_id)
        tournament_update: dict[str, Any] = {"currentRound": following}
        outcome: EndRoundResult = {
            "message": "Round ended successfully",
            "previousRound": current,
            "nextRound": following,
            "racesProcessed": 0,
        }

        if current == TOP_CUT_ROUND:
            cut = compute_top_cut(get_standings(db), top_cut_size)
            stored: TopCut = {
                "size": cut["size"],
                "cutoffPoints": cut["cutoffPoints"],
                "qualified": [s["id"] for s in cut["qualified"]],
                "boundary": [s["id"] for s in cut["boundary"]],
                "tied": [s["id"] for s in cut["tied"]],
            }
            tournament_update["topCut"] = stored
            outcome["topCut"] = cut
            if cut["tied"]:
                current_app.logger.warning(
                    f"{len(cut['tied'])} runner(s) tied on the top {top_cut_size} cut "
                    f"at {cut['cutoffPoints']} points."
                )
        else:
            outcome["moves"] = TournamentService._apply_bracket_movement(
                db, batch, races, current
            )
            outcome["racesProcessed"] = len(races)

        batch.update(tournament_ref, tournament_update)
        batch.commit()
        current_app.logger.info(f"Tournament {tournament_id}: {current} -> {following}")
        return outcome
