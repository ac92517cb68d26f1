"""Mock utilities for Firestore."""

from __future__ import annotations

import unittest
import unittest.mock
from typing import Any, Optional

from mockfirestore import CollectionReference, MockFirestore, Query
from mockfirestore.document import DocumentReference

from redrace import create_app
from redrace.constants import (
    BRACKET_NORMAL,
    DEFAULT_BEST_TIME_MS,
    DEFAULT_TOURNAMENT_ID,
    RACES_COLLECTION,
    ROLE_RUNNER,
    ROUND_1,
    TOURNAMENTS_COLLECTION,
    USERS_COLLECTION,
)


class MockBatch:
    def __init__(self, db: Any) -> None:
        self.db = db
        self.updates: list[tuple[Any, Any, Any]] = []
        self.commit = unittest.mock.MagicMock(side_effect=self._real_commit)

    def update(self, ref: Any, data: Any) -> None:
        self.updates.append(("update", ref, data))

    def set(self, ref: Any, data: Any, merge: bool = False) -> None:
        self.updates.append(("set", ref, (data, merge)))

    def delete(self, ref: Any) -> None:
        self.updates.append(("delete", ref, None))

    def _real_commit(self) -> None:
        for op, ref, data in self.updates:
            if op == "delete":
                ref.delete()
            elif op == "set":
                ref.set(data[0], merge=data[1])
            else:
                ref.update(data)


def patch_mockfirestore() -> None:
    """Apply monkeypatches to mockfirestore to support FieldFilter and equality."""

    def collection_where(
        self: Any,
        field_path: Optional[str] = None,
        op_string: Optional[str] = None,
        value: Any = None,
        filter: Any = None,
    ) -> Any:
        if filter:
            return self._where(filter.field_path, filter.op_string, filter.value)
        return self._where(field_path, op_string, value)

    if not hasattr(CollectionReference, "_where"):
        CollectionReference._where = CollectionReference.where
        CollectionReference.where = collection_where

    def query_where(
        self: Any,
        field_path: Optional[str] = None,
        op_string: Optional[str] = None,
        value: Any = None,
        filter: Any = None,
    ) -> Any:
        if filter:
            return self._where(filter.field_path, filter.op_string, filter.value)
        return self._where(field_path, op_string, value)

    if not hasattr(Query, "_where"):
        Query._where = Query.where
        Query.where = query_where

    def doc_ref_eq(self: Any, other: Any) -> bool:
        if not isinstance(other, DocumentReference):
            return False
        return self._path == other._path

    if not hasattr(DocumentReference, "_orig_eq"):
        DocumentReference._orig_eq = DocumentReference.__eq__
        DocumentReference.__eq__ = doc_ref_eq
        DocumentReference.__hash__ = lambda self: hash(tuple(self._path))


def runner(name: str, **fields: Any) -> dict[str, Any]:
    """A runner document with tournament defaults."""
    data = {
        "discordUsername": name,
        "displayName": name.title(),
        "role": ROLE_RUNNER,
        "isAdmin": False,
        "pronouns": "",
        "currentBracket": BRACKET_NORMAL,
        "points": 0,
        "tieBreakerValue": 0,
        "hasDNF": False,
        "bestTournamentTimeMilliseconds": DEFAULT_BEST_TIME_MS,
        "currentGroup": None,
    }
    data.update(fields)
    return data


def finished(racer: str, hours: int = 0, minutes: int = 0, seconds: int = 0, ms: int = 0) -> dict:
    return {
        "racer": racer,
        "status": "Finished",
        "finishTime": {"hours": hours, "minutes": minutes, "seconds": seconds, "milliseconds": ms},
    }


def not_finished(racer: str, status: str, dnf_order: Optional[int] = None) -> dict:
    result = {
        "racer": racer,
        "status": status,
        "finishTime": {"hours": 0, "minutes": 0, "seconds": 0, "milliseconds": 0},
    }
    if dnf_order is not None:
        result["dnfOrder"] = dnf_order
    return result


class FirestoreTestCase(unittest.TestCase):
    """Base test case with an in-memory Firestore and an app context."""

    def setUp(self) -> None:
        """Set up a mock database, the app and a test client."""
        patch_mockfirestore()
        self.mock_db = MockFirestore()
        self.batches: list[MockBatch] = []

        def new_batch() -> MockBatch:
            batch = MockBatch(self.mock_db)
            self.batches.append(batch)
            return batch

        self.mock_db.batch = unittest.mock.MagicMock(side_effect=new_batch)

        patcher = unittest.mock.patch(
            "firebase_admin.firestore.client", return_value=self.mock_db
        )
        patcher.start()
        self.addCleanup(patcher.stop)

        self.app = create_app({"TESTING": True, "WTF_CSRF_ENABLED": False})
        self.client = self.app.test_client()
        self.app_context = self.app.app_context()
        self.app_context.push()
        self.addCleanup(self.app_context.pop)

    def add_user(self, uid: str, data: dict[str, Any]) -> None:
        self.mock_db.collection(USERS_COLLECTION).document(uid).set(data)

    def add_race(self, race_id: str, **fields: Any) -> None:
        data = {
            "racer1": None,
            "racer2": None,
            "racer3": None,
            "raceDateTime": 1_700_000_000,
            "raceSubmitted": 1_699_000_000,
            "round": ROUND_1,
            "bracket": BRACKET_NORMAL,
            "commentators": [],
            "completed": False,
            "cancelled": False,
            "results": [],
            "winner": None,
            "pointsAwardedTo": None,
            "restreamPlanned": False,
            "restreamChannel": "RedRaceTV",
            "restreamer": None,
        }
        data.update(fields)
        self.mock_db.collection(RACES_COLLECTION).document(race_id).set(data)

    def set_round(self, round_name: str, **fields: Any) -> None:
        self.mock_db.collection(TOURNAMENTS_COLLECTION).document(DEFAULT_TOURNAMENT_ID).set(
            {"name": DEFAULT_TOURNAMENT_ID, "currentRound": round_name, **fields}
        )

    def user(self, uid: str) -> dict[str, Any]:
        return self.mock_db.collection(USERS_COLLECTION).document(uid).get().to_dict()

    def race(self, race_id: str) -> dict[str, Any]:
        return self.mock_db.collection(RACES_COLLECTION).document(race_id).get().to_dict()

    def login(self, uid: str) -> None:
        with self.client.session_transaction() as sess:
            sess["user_id"] = uid
