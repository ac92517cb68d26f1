"""Service layer for groups."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore
from flask import current_app

from redrace.constants import (
    BRACKETS,
    GROUPS_COLLECTION,
    ROLE_RUNNER,
    ROUNDS,
    USERS_COLLECTION,
)
from redrace.errors import NotFoundError, ValidationError
from redrace.tournament.services import TournamentService
from redrace.user.helpers import fetch_users_by_id, user_summary

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client


def _stream_groups(db: Client) -> list[dict[str, Any]]:
    groups = []
    for doc in db.collection(GROUPS_COLLECTION).stream():
        data = doc.to_dict()
        if data:
            data["id"] = doc.id
            groups.append(data)
    return groups


class GroupService:
    """Service class for group-related operations."""

    @staticmethod
    def _populate(db: Client, groups: list[dict[str, Any]]) -> list[dict[str, Any]]:
        users = fetch_users_by_id(db, [uid for g in groups for uid in g.get("members") or []])
        return [
            {**g, "members": [user_summary(uid, users.get(uid)) for uid in g.get("members") or []]}
            for g in groups
        ]

    @staticmethod
    def create_group(
        member_ids: list[str],
        tournament_id: str,
        round_name: str | None = None,
        bracket: str | None = None,
        db: Client | None = None,
    ) -> dict[str, Any]:
        """Create a group and point each member's ``currentGroup`` at it."""
        if db is None:
            db = firestore.client()
        member_ids = [m for m in member_ids if m]
        if len(member_ids) != len(set(member_ids)):
            raise ValidationError("A runner can only be drawn once per group.")

        users = fetch_users_by_id(db, member_ids)
        invalid = [uid for uid in member_ids if users.get(uid, {}).get("role") != ROLE_RUNNER]
        if invalid:
            raise ValidationError(f"Unknown runner(s): {', '.join(invalid)}.")

        round_name = round_name or TournamentService.current_round(tournament_id, db)
        if round_name not in ROUNDS:
            raise ValidationError(f"Unknown round '{round_name}'.")
        bracket = bracket or users[member_ids[0]].get("currentBracket")
        if bracket not in BRACKETS:
            raise ValidationError(f"Unknown bracket '{bracket}'.")

        group_number = max((g.get("groupNumber") or 0 for g in _stream_groups(db)), default=0) + 1
        group_ref = db.collection(GROUPS_COLLECTION).document()
        group = {
            "groupNumber": group_number,
            "members": member_ids,
            "round": round_name,
            "bracket": bracket,
            "raceStartTime": None,
            "currentRace": None,
        }

        batch = db.batch()
        batch.set(group_ref, group)
        for uid in member_ids:
            batch.update(db.collection(USERS_COLLECTION).document(uid), {"currentGroup": group_ref.id})
        batch.commit()
        current_app.logger.info(f"Group {group_number} created for {round_name} ({bracket}).")
        return {**group, "id": group_ref.id}

    @staticmethod
    def list_groups(db: Client | None = None) -> list[dict[str, Any]]:
        """Every group ordered by group number, members embedded."""
        if db is None:
            db = firestore.client()
        groups = sorted(_stream_groups(db), key=lambda g: g.get("groupNumber") or 0)
        return GroupService._populate(db, groups)

    @staticmethod
    def count_groups(db: Client | None = None) -> int:
        if db is None:
            db = firestore.client()
        return len(_stream_groups(db))

    @staticmethod
    def get_current_group(user_id: str, db: Client | None = None) -> dict[str, Any]:
        """The group a user is currently drawn in."""
        if db is None:
            db = firestore.client()
        users = fetch_users_by_id(db, [user_id])
        group_id = users.get(user_id, {}).get("currentGroup")
        if not group_id:
            raise NotFoundError("You do not belong to any group.")
        doc = cast(Any, db.collection(GROUPS_COLLECTION).document(group_id).get())
        if not doc.exists:
            raise NotFoundError("Group not found.")
        group = cast(dict[str, Any], doc.to_dict() or {})
        group["id"] = doc.id
        return GroupService._populate(db, [group])[0]
