"""Service layer for the pickems prediction game."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore
from flask import current_app

from redrace.constants import (
    COMPLETED,
    FINAL,
    GROUPS_COLLECTION,
    PICKEMS_COLLECTION,
    RACES_COLLECTION,
    ROLE_RUNNER,
    ROUND_PICK_FIELDS,
)
from redrace.core import BatchProcessor
from redrace.errors import DuplicateResourceError, NotFoundError, ValidationError
from redrace.tournament.services import TournamentService
from redrace.user.helpers import display_name, fetch_users_by_id, user_summary

from .models import LeaderboardEntry, OneOffSubmission, new_pickems, parse_id_list
from .scoring import reconcile_race, top_cut_award
from .stats import favorites_per_group, top_picks

if TYPE_CHECKING:
    from google.cloud.firestore_v1.batch import WriteBatch
    from google.cloud.firestore_v1.client import Client

POPULATED_FIELDS = ("top9", "overallWinner", "bestTimeWho", *ROUND_PICK_FIELDS.values())


def _stream_entries(db: Client) -> list[dict[str, Any]]:
    entries = []
    for doc in db.collection(PICKEMS_COLLECTION).stream():
        data = doc.to_dict()
        if data:
            data["id"] = doc.id
            entries.append(data)
    return entries


def _require_runners(db: Client, user_ids: list[str]) -> None:
    """Raise ValidationError unless every id belongs to an existing runner."""
    users = fetch_users_by_id(db, user_ids)
    unknown = [uid for uid in user_ids if users.get(uid, {}).get("role") != ROLE_RUNNER]
    if unknown:
        raise ValidationError(f"Unknown runner(s): {', '.join(dict.fromkeys(unknown))}.")


class PickemsService:
    """Service class for pickems submissions, scoring and statistics."""

    @staticmethod
    def get_entry(user_id: str, db: Client | None = None) -> dict[str, Any] | None:
        """Fetch a user's pickems entry, or None if they never submitted one."""
        if db is None:
            db = firestore.client()
        doc = cast(Any, db.collection(PICKEMS_COLLECTION).document(user_id).get())
        if not doc.exists:
            return None
        data = cast(dict[str, Any], doc.to_dict() or {})
        data["id"] = doc.id
        return data

    @staticmethod
    def get_entry_populated(user_id: str, db: Client | None = None) -> dict[str, Any] | None:
        """Fetch a pickems entry with every picked competitor resolved to a summary."""
        if db is None:
            db = firestore.client()
        entry = PickemsService.get_entry(user_id, db)
        if entry is None:
            return None

        referenced: list[str] = [user_id]
        for field in POPULATED_FIELDS:
            value = entry.get(field)
            if isinstance(value, list):
                referenced.extend(value)
            elif value:
                referenced.append(value)
        users = fetch_users_by_id(db, referenced)

        def resolve(uid: str) -> dict[str, Any]:
            return user_summary(uid, users.get(uid))

        for field in POPULATED_FIELDS:
            value = entry.get(field)
            if isinstance(value, list):
                entry[field] = [resolve(uid) for uid in value]
            elif value:
                entry[field] = resolve(value)
        entry["user"] = resolve(user_id)
        return entry

    @staticmethod
    def submit_one_off(
        user_id: str,
        submission: OneOffSubmission,
        top_cut_size: int,
        db: Client | None = None,
    ) -> None:
        """Store the once-per-tournament predictions."""
        if db is None:
            db = firestore.client()
        submission.validate(top_cut_size)
        _require_runners(db, submission.user_ids())

        existing = PickemsService.get_entry(user_id, db)
        if existing and (existing.get("top9") or existing.get("overallWinner")):
            raise DuplicateResourceError("You have already submitted your one-off picks.")

        fields = {
            "top9": submission.top_runners,
            "overallWinner": submission.overall_winner,
            "bestTimeWho": submission.best_time_runner,
            "closestTime": submission.closest_time,
        }
        ref = db.collection(PICKEMS_COLLECTION).document(user_id)
        if existing:
            ref.update(fields)
        else:
            ref.set({**new_pickems(user_id), **fields})
        current_app.logger.info(f"One-off pickems saved for user {user_id}.")

    @staticmethod
    def submit_round_picks(
        user_id: str,
        tournament_id: str,
        selected: Any,
        db: Client | None = None,
    ) -> str:
        """Store the user's picks for the tournament's current round.

        Returns the round the picks were stored for.
        """
        if db is None:
            db = firestore.client()
        round_name = TournamentService.current_round(tournament_id, db)
        if round_name == COMPLETED or round_name not in ROUND_PICK_FIELDS:
            raise ValidationError("Picks are closed; the tournament is over.")

        picks = parse_id_list(selected, "selectedRunners")
        if not picks:
            raise ValidationError("Select at least one runner.")
        if round_name == FINAL and len(picks) != 1:
            raise ValidationError("Pick exactly one runner to win the final.")
        _require_runners(db, picks)

        field = ROUND_PICK_FIELDS[round_name]
        existing = PickemsService.get_entry(user_id, db)
        if existing and existing.get(field):
            raise DuplicateResourceError(
                f"You have already submitted your picks for {round_name}."
            )

        value: Any = picks[0] if round_name == FINAL else picks
        ref = db.collection(PICKEMS_COLLECTION).document(user_id)
        if existing:
            ref.update({field: value})
        else:
            ref.set({**new_pickems(user_id), field: value})
        current_app.logger.info(f"{round_name} pickems saved for user {user_id}.")
        return round_name

    @staticmethod
    def get_leaderboard(db: Client | None = None) -> list[LeaderboardEntry]:
        """Every pickems entry ordered by points, highest first."""
        if db is None:
            db = firestore.client()
        entries = _stream_entries(db)
        users = fetch_users_by_id(db, [e.get("userId") or e["id"] for e in entries])

        leaderboard: list[LeaderboardEntry] = []
        for entry in entries:
            uid = entry.get("userId") or entry["id"]
            leaderboard.append({
                "userId": uid,
                "displayName": display_name(users.get(uid)),
                "points": entry.get("points") or 0,
            })
        leaderboard.sort(key=lambda e: e["points"], reverse=True)
        return leaderboard

    @staticmethod
    def score_race(
        db: Client,
        batch: WriteBatch,
        race_id: str,
        round_name: str,
        winner_id: str | None,
    ) -> dict[str, int]:
        """Queue the pickems updates that reconcile one race's winner bonus."""
        awarded = revoked = 0
        for entry in _stream_entries(db):
            delta = reconcile_race(entry, race_id, round_name, winner_id)
            if not delta:
                continue
            if delta > 0:
                awarded += 1
            else:
                revoked += 1
            batch.update(
                db.collection(PICKEMS_COLLECTION).document(entry["id"]),
                {"points": entry["points"], "scoredRaces": entry["scoredRaces"]},
            )

        if awarded or revoked:
            current_app.logger.info(
                f"Race {race_id} ({round_name}): winner {winner_id}. "
                f"Awarded {awarded} pickems entr(ies), revoked {revoked}."
            )
        else:
            current_app.logger.info(f"Race {race_id} ({round_name}): no pickems changes.")
        return {"awarded": awarded, "revoked": revoked}

    @staticmethod
    def rescore_completed_races(db: Client | None = None) -> dict[str, int]:
        """Reconcile every entry against every completed race.

        A cancelled race is reconciled as having no winner, so any bonus it
        paid is revoked. Safe to run any number of times; only entries that
        are out of date are written, in chunks of ``FIRESTORE_BATCH_LIMIT``.
        """
        if db is None:
            db = firestore.client()
        races = (
            db.collection(RACES_COLLECTION)
            .where(filter=firestore.FieldFilter("completed", "==", True))
            .stream()
        )
        entries = _stream_entries(db)
        changed: set[str] = set()
        awarded = revoked = 0
        for race_doc in races:
            race = race_doc.to_dict() or {}
            winner = None if race.get("cancelled") else race.get("winner")
            for entry in entries:
                delta = reconcile_race(entry, race_doc.id, race.get("round", ""), winner)
                if delta > 0:
                    awarded += 1
                elif delta < 0:
                    revoked += 1
                if delta:
                    changed.add(entry["id"])

        processor = BatchProcessor(db)
        for entry in entries:
            if entry["id"] in changed:
                processor.update(
                    db.collection(PICKEMS_COLLECTION).document(entry["id"]),
                    {"points": entry["points"], "scoredRaces": entry["scoredRaces"]},
                )
        processor.commit()
        current_app.logger.info(
            f"Pickems rescoring: {awarded} award(s), {revoked} revocation(s), "
            f"{len(changed)} entr(ies) updated."
        )
        return {"awarded": awarded, "revoked": revoked, "entriesUpdated": len(changed)}

    @staticmethod
    def award_top_cut_points(tournament_id: str, db: Client | None = None) -> list[dict[str, Any]]:
        """Award the top-cut bonus to every entry not yet awarded.

        Requires the tournament's stored top cut, taken when its Swiss phase
        ended. Each entry's points and ``top9PointsAwarded`` flag are written
        together, so an interrupted run can simply be repeated.
        """
        if db is None:
            db = firestore.client()
        tournament = TournamentService.get_tournament(tournament_id, db)
        top_cut = tournament.get("topCut")
        if not top_cut or not top_cut.get("qualified"):
            raise ValidationError("The top cut has not been decided yet.")

        summary = []
        processor = BatchProcessor(db)
        for entry in _stream_entries(db):
            correct = top_cut_award(entry, top_cut["qualified"])
            if correct is None:
                continue
            processor.update(
                db.collection(PICKEMS_COLLECTION).document(entry["id"]),
                {"points": entry["points"], "top9PointsAwarded": True},
            )
            summary.append({"userId": entry.get("userId") or entry["id"], "correctPicks": correct})
        processor.commit()
        summary.sort(key=lambda s: s["correctPicks"], reverse=True)
        current_app.logger.info(f"Top cut pickems points awarded to {len(summary)} entr(ies).")
        return summary

    @staticmethod
    def get_top_picks(field: str, n: int, db: Client | None = None) -> list[dict[str, Any]]:
        """Most picked competitors for a pickems field, with names."""
        if db is None:
            db = firestore.client()
        allowed = ("top9", "overallWinner", "bestTimeWho", *ROUND_PICK_FIELDS.values())
        if field not in allowed:
            raise ValidationError(f"Unknown pickems field '{field}'.")
        ranked = top_picks(_stream_entries(db), field, n)
        users = fetch_users_by_id(db, [r["racer"] for r in ranked])
        for row in ranked:
            row["racer"] = user_summary(row["racer"], users.get(row["racer"]))
        return ranked

    @staticmethod
    def get_group_favorites(round_name: str, db: Client | None = None) -> list[dict[str, Any]]:
        """Most picked member(s) of every group racing in ``round_name``."""
        if db is None:
            db = firestore.client()
        if round_name not in ROUND_PICK_FIELDS:
            raise ValidationError(f"Unknown round '{round_name}'.")
        groups = []
        query = (
            db.collection(GROUPS_COLLECTION)
            .where(filter=firestore.FieldFilter("round", "==", round_name))
            .stream()
        )
        for doc in query:
            data = doc.to_dict() or {}
            data["id"] = doc.id
            groups.append(data)

        favorites = favorites_per_group(_stream_entries(db), groups, round_name)
        users = fetch_users_by_id(db, [uid for f in favorites for uid in f["favorites"]])
        for row in favorites:
            row["favorites"] = [user_summary(uid, users.get(uid)) for uid in row["favorites"]]
        return favorites


def get_entry_or_404(user_id: str, db: Client | None = None) -> dict[str, Any]:
    """Fetch a populated pickems entry or raise NotFoundError."""
    entry = PickemsService.get_entry_populated(user_id, db)
    if entry is None:
        raise NotFoundError("Pickems not found for this user.")
    return entry
