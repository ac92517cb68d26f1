"""Service layer for user accounts."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore
from flask import current_app

from redrace.constants import ROLES, USERS_COLLECTION
from redrace.errors import NotFoundError, ValidationError

from .models import new_user

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

MAX_PRONOUNS_LENGTH = 30


class UserService:
    """Service class for user-related operations."""

    @staticmethod
    def get_user(user_id: str, db: Client | None = None) -> dict[str, Any]:
        """Fetch a user document or raise NotFoundError."""
        if db is None:
            db = firestore.client()
        doc = cast(Any, db.collection(USERS_COLLECTION).document(user_id).get())
        if not doc.exists:
            raise NotFoundError("User not found.")
        data = cast(dict[str, Any], doc.to_dict() or {})
        data["id"] = doc.id
        return data

    @staticmethod
    def find_by_discord_username(
        discord_username: str, db: Client | None = None
    ) -> dict[str, Any] | None:
        """Return the user with ``discord_username``, or None."""
        if db is None:
            db = firestore.client()
        docs = (
            db.collection(USERS_COLLECTION)
            .where(filter=firestore.FieldFilter("discordUsername", "==", discord_username))
            .limit(1)
            .stream()
        )
        for doc in docs:
            data = doc.to_dict() or {}
            data["id"] = doc.id
            return data
        return None

    @staticmethod
    def upsert_on_login(
        discord_username: str, display_name: str | None = None, db: Client | None = None
    ) -> str:
        """Return the id of the user signing in, creating a commentator if new."""
        if db is None:
            db = firestore.client()
        existing = UserService.find_by_discord_username(discord_username, db)
        if existing:
            return existing["id"]

        ref = db.collection(USERS_COLLECTION).document()
        ref.set(new_user(discord_username, display_name))
        current_app.logger.info(f"New user {discord_username} created on first login.")
        return ref.id

    @staticmethod
    def update_display_name(user_id: str, display_name: str, db: Client | None = None) -> None:
        if db is None:
            db = firestore.client()
        display_name = (display_name or "").strip()
        if not display_name:
            raise ValidationError("Display name is required.")
        db.collection(USERS_COLLECTION).document(user_id).update({"displayName": display_name})

    @staticmethod
    def update_pronouns(user_id: str, pronouns: Any, db: Client | None = None) -> None:
        """Set a user's pronouns; an empty string clears them."""
        if db is None:
            db = firestore.client()
        if not isinstance(pronouns, str):
            raise ValidationError("Pronouns are required.")
        if len(pronouns) > MAX_PRONOUNS_LENGTH:
            raise ValidationError(f"Pronouns must be at most {MAX_PRONOUNS_LENGTH} characters.")
        db.collection(USERS_COLLECTION).document(user_id).update({"pronouns": pronouns.strip()})

    @staticmethod
    def admin_upsert_user(
        discord_username: str,
        display_name: str | None,
        role: str,
        is_admin: bool,
        db: Client | None = None,
    ) -> tuple[str, bool]:
        """Create or update a user by Discord username.

        Returns the user id and whether the user was created.
        """
        if db is None:
            db = firestore.client()
        if role not in ROLES:
            raise ValidationError(f"Role must be one of {', '.join(ROLES)}.")

        existing = UserService.find_by_discord_username(discord_username, db)
        if existing:
            update: dict[str, Any] = {"role": role, "isAdmin": is_admin}
            if display_name:
                update["displayName"] = display_name
            db.collection(USERS_COLLECTION).document(existing["id"]).update(update)
            current_app.logger.info(f"User {discord_username} updated by an admin.")
            return existing["id"], False

        ref = db.collection(USERS_COLLECTION).document()
        ref.set(new_user(discord_username, display_name, role, is_admin))
        current_app.logger.info(f"User {discord_username} added by an admin.")
        return ref.id, True
