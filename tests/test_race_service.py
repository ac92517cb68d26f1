"""Tests for race completion and the other race operations."""

from __future__ import annotations

import unittest

from redrace.constants import PICKEMS_COLLECTION
from redrace.errors import DuplicateResourceError, NotFoundError, ValidationError
from redrace.pickems.models import new_pickems
from redrace.race.models import RaceCompletion, RaceSubmission
from redrace.race.services import RaceService, personal_record
from tests.mock_utils import FirestoreTestCase, finished, not_finished, runner

TOURNAMENT_ID = "red2025"


def completion(*results: dict, race_time_id: str | None = None) -> RaceCompletion:
    data = {"results": list(results)}
    if race_time_id:
        data["raceTimeId"] = race_time_id
    return RaceCompletion.from_dict(data)


class PersonalRecordTestCase(unittest.TestCase):
    def test_best_time_and_dnf(self) -> None:
        races = [
            {"completed": True, "results": [finished("A", hours=2)]},
            {"completed": True, "results": [finished("A", hours=1, minutes=30)]},
            {"completed": True, "results": [not_finished("A", "DNF", 1)]},
            {"completed": True, "cancelled": True, "results": [finished("A", minutes=1)]},
            {"completed": False, "results": [finished("A", minutes=2)]},
        ]
        record = personal_record("A", races)
        self.assertEqual(record["bestTournamentTimeMilliseconds"], 5_400_000)
        self.assertTrue(record["hasDNF"])

    def test_defaults(self) -> None:
        record = personal_record("A", [])
        self.assertEqual(record["bestTournamentTimeMilliseconds"], 9_000_000)
        self.assertFalse(record["hasDNF"])


class CompleteRaceTestCase(FirestoreTestCase):
    """Test case for RaceService.complete_race."""

    def setUp(self) -> None:
        super().setUp()
        self.set_round("Round 1")
        self.add_user("A", runner("a"))
        self.add_user("B", runner("b"))
        self.add_race("r1", racer1="A", racer2="B")

    def _pickems(self, uid: str) -> dict:
        return self.mock_db.collection(PICKEMS_COLLECTION).document(uid).get().to_dict()

    def test_winner_gets_points_and_records(self) -> None:
        outcome = RaceService.complete_race(
            "r1",
            completion(finished("A", hours=1), finished("B", hours=1, minutes=5)),
            TOURNAMENT_ID,
            self.mock_db,
        )

        self.assertEqual(outcome["winner"], "A")
        race = self.race("r1")
        self.assertTrue(race["completed"])
        self.assertEqual(race["winner"], "A")
        self.assertEqual(race["pointsAwardedTo"], "A")
        self.assertEqual(self.user("A")["points"], 4)
        self.assertEqual(self.user("B")["points"], 0)
        self.assertEqual(self.user("A")["bestTournamentTimeMilliseconds"], 3_600_000)
        self.assertEqual(self.user("B")["bestTournamentTimeMilliseconds"], 3_900_000)
        self.assertEqual(len(self.batches), 1)

    def test_completing_twice_changes_nothing(self) -> None:
        """Completing the same race twice with identical results is a no-op."""
        self.mock_db.collection(PICKEMS_COLLECTION).document("fan").set(
            {**new_pickems("fan"), "round1Picks": ["A"]}
        )
        results = (finished("A", hours=1), finished("B", hours=1, minutes=5))
        RaceService.complete_race("r1", completion(*results), TOURNAMENT_ID, self.mock_db)
        first = (self.user("A"), self.user("B"), self._pickems("fan"))

        RaceService.complete_race("r1", completion(*results), TOURNAMENT_ID, self.mock_db)

        self.assertEqual((self.user("A"), self.user("B"), self._pickems("fan")), first)
        self.assertEqual(self.user("A")["points"], 4)
        self.assertEqual(self._pickems("fan")["points"], 5)
        self.assertEqual(self.user("A")["currentBracket"], "Normal")

    def test_corrected_results_move_the_bonus(self) -> None:
        RaceService.complete_race(
            "r1",
            completion(finished("A", hours=1), finished("B", hours=2)),
            TOURNAMENT_ID,
            self.mock_db,
        )
        RaceService.complete_race(
            "r1",
            completion(finished("A", hours=3), finished("B", hours=2)),
            TOURNAMENT_ID,
            self.mock_db,
        )

        self.assertEqual(self.user("A")["points"], 0)
        self.assertEqual(self.user("B")["points"], 4)
        self.assertEqual(self.race("r1")["pointsAwardedTo"], "B")

    def test_no_finisher_means_no_winner_or_points(self) -> None:
        RaceService.complete_race(
            "r1",
            completion(not_finished("A", "DNF", 2), not_finished("B", "DNF", 1)),
            TOURNAMENT_ID,
            self.mock_db,
        )
        race = self.race("r1")
        self.assertIsNone(race["winner"])
        self.assertIsNone(race["pointsAwardedTo"])
        self.assertEqual(self.user("A")["points"], 0)
        self.assertTrue(self.user("A")["hasDNF"])

    def test_no_points_in_elimination_rounds(self) -> None:
        self.set_round("Semifinals")
        self.add_race("semi", racer1="A", racer2="B", round="Semifinals")
        RaceService.complete_race(
            "semi",
            completion(finished("A", hours=1), finished("B", hours=2)),
            TOURNAMENT_ID,
            self.mock_db,
        )
        self.assertEqual(self.race("semi")["winner"], "A")
        self.assertEqual(self.user("A")["points"], 0)

    def test_pickems_bonus_awarded_once(self) -> None:
        self.mock_db.collection(PICKEMS_COLLECTION).document("fan").set(
            {**new_pickems("fan"), "round1Picks": ["A", "Z"]}
        )
        self.mock_db.collection(PICKEMS_COLLECTION).document("skeptic").set(
            {**new_pickems("skeptic"), "round1Picks": ["B"]}
        )
        RaceService.complete_race(
            "r1",
            completion(finished("A", hours=1), finished("B", hours=2)),
            TOURNAMENT_ID,
            self.mock_db,
        )
        self.assertEqual(self._pickems("fan")["points"], 5)
        self.assertEqual(self._pickems("fan")["scoredRaces"], ["r1"])
        self.assertEqual(self._pickems("skeptic")["points"], 0)

    def test_race_time_id_stored(self) -> None:
        RaceService.complete_race(
            "r1",
            completion(finished("A", hours=1), finished("B", hours=2), race_time_id="rt-42"),
            TOURNAMENT_ID,
            self.mock_db,
        )
        self.assertEqual(self.race("r1")["raceTimeId"], "rt-42")

    def test_results_must_cover_racers(self) -> None:
        with self.assertRaises(ValidationError):
            RaceService.complete_race(
                "r1", completion(finished("A", hours=1)), TOURNAMENT_ID, self.mock_db
            )
        with self.assertRaises(ValidationError):
            RaceService.complete_race(
                "r1",
                completion(finished("A", hours=1), finished("C", hours=2)),
                TOURNAMENT_ID,
                self.mock_db,
            )
        self.assertFalse(self.race("r1")["completed"])

    def test_invalid_status_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            RaceCompletion.from_dict({"results": [{"racer": "A", "status": "Won"}]})

    def test_negative_time_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            RaceCompletion.from_dict(
                {"results": [{"racer": "A", "status": "Finished", "finishTime": {"hours": -1}}]}
            )

    def test_cancelled_race_rejected(self) -> None:
        self.add_race("off", racer1="A", racer2="B", cancelled=True)
        with self.assertRaises(ValidationError):
            RaceService.complete_race(
                "off",
                completion(finished("A", hours=1), finished("B", hours=2)),
                TOURNAMENT_ID,
                self.mock_db,
            )

    def test_race_from_another_round_rejected(self) -> None:
        self.set_round("Round 2")
        with self.assertRaises(ValidationError):
            RaceService.complete_race(
                "r1",
                completion(finished("A", hours=1), finished("B", hours=2)),
                TOURNAMENT_ID,
                self.mock_db,
            )

    def test_missing_race(self) -> None:
        with self.assertRaises(NotFoundError):
            RaceService.complete_race(
                "nope",
                completion(finished("A", hours=1)),
                TOURNAMENT_ID,
                self.mock_db,
            )


class CancelCompletedRaceTestCase(FirestoreTestCase):
    """Test case for cancelling a race whose results were already recorded."""

    def setUp(self) -> None:
        super().setUp()
        self.set_round("Round 1")
        self.add_user("A", runner("a"))
        self.add_user("B", runner("b"))
        self.add_race("r1", racer1="A", racer2="B")
        self.mock_db.collection(PICKEMS_COLLECTION).document("fan").set(
            {**new_pickems("fan"), "round1Picks": ["A"]}
        )
        RaceService.complete_race(
            "r1",
            completion(finished("A", hours=1), not_finished("B", "DNF")),
            TOURNAMENT_ID,
            self.mock_db,
        )

    def _pickems(self) -> dict:
        return self.mock_db.collection(PICKEMS_COLLECTION).document("fan").get().to_dict()

    def test_cancel_releases_everything_the_race_paid(self) -> None:
        RaceService.set_cancelled("r1", True, self.mock_db)

        race = self.race("r1")
        self.assertTrue(race["cancelled"])
        self.assertIsNone(race["pointsAwardedTo"])
        self.assertEqual(race["winner"], "A")
        self.assertEqual(self.user("A")["points"], 0)
        self.assertEqual(self.user("A")["bestTournamentTimeMilliseconds"], 9_000_000)
        self.assertFalse(self.user("B")["hasDNF"])
        self.assertEqual(self._pickems()["points"], 0)
        self.assertEqual(self._pickems()["scoredRaces"], [])

    def test_cancel_then_rescore_stays_revoked(self) -> None:
        from redrace.pickems.services import PickemsService  # noqa: PLC0415

        RaceService.set_cancelled("r1", True, self.mock_db)
        PickemsService.rescore_completed_races(self.mock_db)
        self.assertEqual(self._pickems()["points"], 0)

    def test_uncancel_restores_the_race(self) -> None:
        RaceService.set_cancelled("r1", True, self.mock_db)
        RaceService.set_cancelled("r1", False, self.mock_db)

        self.assertEqual(self.race("r1")["pointsAwardedTo"], "A")
        self.assertEqual(self.user("A")["points"], 4)
        self.assertEqual(self.user("A")["bestTournamentTimeMilliseconds"], 3_600_000)
        self.assertTrue(self.user("B")["hasDNF"])
        self.assertEqual(self._pickems()["points"], 5)
        self.assertEqual(self._pickems()["scoredRaces"], ["r1"])

    def test_cancelling_twice_changes_nothing(self) -> None:
        RaceService.set_cancelled("r1", True, self.mock_db)
        RaceService.set_cancelled("r1", True, self.mock_db)
        self.assertEqual(self.user("A")["points"], 0)
        self.assertEqual(self._pickems()["points"], 0)

    def test_cancel_is_one_batch(self) -> None:
        before = len(self.batches)
        RaceService.set_cancelled("r1", True, self.mock_db)
        self.assertEqual(len(self.batches), before + 1)
        self.batches[-1].commit.assert_called_once()


class RaceOperationsTestCase(FirestoreTestCase):
    """Test case for scheduling, commentary, cancellation and restreams."""

    def setUp(self) -> None:
        super().setUp()
        self.set_round("Round 1")
        self.mock_db.collection("groups").document("g1").set(
            {"groupNumber": 1, "members": ["A", "B"], "round": "Round 1", "bracket": "Normal"}
        )
        self.add_user("A", runner("a", currentGroup="g1"))
        self.add_user("B", runner("b", currentGroup="g1"))

    def test_submit_race(self) -> None:
        race_id = RaceService.submit_race(
            RaceSubmission("A", "B", 1_800_000_000), TOURNAMENT_ID, self.mock_db
        )
        race = self.race(race_id)
        self.assertEqual(race["round"], "Round 1")
        self.assertEqual(race["bracket"], "Normal")
        self.assertFalse(race["completed"])
        group = self.mock_db.collection("groups").document("g1").get().to_dict()
        self.assertEqual(group["currentRace"], race_id)
        self.assertEqual(group["raceStartTime"], 1_800_000_000)

    def test_submit_rejects_same_racer_twice(self) -> None:
        with self.assertRaises(ValidationError):
            RaceService.submit_race(
                RaceSubmission("A", "A", 1_800_000_000), TOURNAMENT_ID, self.mock_db
            )

    def test_submit_rejects_unknown_racer(self) -> None:
        with self.assertRaises(ValidationError):
            RaceService.submit_race(
                RaceSubmission("A", "ghost", 1_800_000_000), TOURNAMENT_ID, self.mock_db
            )

    def test_swiss_rounds_allow_two_commentators(self) -> None:
        self.add_race("r1", racer1="A", racer2="B")
        RaceService.add_commentator("r1", "c1", self.mock_db)
        RaceService.add_commentator("r1", "c2", self.mock_db)
        with self.assertRaises(ValidationError):
            RaceService.add_commentator("r1", "c3", self.mock_db)
        self.assertEqual(self.race("r1")["commentators"], ["c1", "c2"])

    def test_final_allows_any_number_of_commentators(self) -> None:
        self.add_race("f", racer1="A", racer2="B", round="Final")
        for uid in ("c1", "c2", "c3"):
            RaceService.add_commentator("f", uid, self.mock_db)
        self.assertEqual(len(self.race("f")["commentators"]), 3)

    def test_duplicate_commentator(self) -> None:
        self.add_race("r1", racer1="A", racer2="B", commentators=["c1"])
        with self.assertRaises(DuplicateResourceError):
            RaceService.add_commentator("r1", "c1", self.mock_db)

    def test_remove_commentator(self) -> None:
        self.add_race("r1", racer1="A", racer2="B", commentators=["c1", "c2"])
        RaceService.remove_commentator("r1", "c1", self.mock_db)
        self.assertEqual(self.race("r1")["commentators"], ["c2"])
        with self.assertRaises(ValidationError):
            RaceService.remove_commentator("r1", "c1", self.mock_db)

    def test_cancel_and_uncancel(self) -> None:
        self.add_race("r1", racer1="A", racer2="B")
        RaceService.set_cancelled("r1", True, self.mock_db)
        self.assertTrue(self.race("r1")["cancelled"])
        RaceService.set_cancelled("r1", False, self.mock_db)
        self.assertFalse(self.race("r1")["cancelled"])

    def test_restream(self) -> None:
        self.add_race("r1", racer1="A", racer2="B")
        with self.assertRaises(ValidationError):
            RaceService.plan_restream("r1", "", "admin", self.mock_db)

        RaceService.plan_restream("r1", "OtherTV", "admin", self.mock_db)
        race = self.race("r1")
        self.assertTrue(race["restreamPlanned"])
        self.assertEqual(race["restreamChannel"], "OtherTV")
        self.assertEqual(race["restreamer"], "admin")

        RaceService.cancel_restream("r1", "RedRaceTV", self.mock_db)
        race = self.race("r1")
        self.assertFalse(race["restreamPlanned"])
        self.assertEqual(race["restreamChannel"], "RedRaceTV")
        self.assertIsNone(race["restreamer"])

    def test_listings(self) -> None:
        self.add_race("later", racer1="A", racer2="B", raceDateTime=300, commentators=["B"])
        self.add_race("sooner", racer1="B", racer2="A", raceDateTime=100)
        self.add_race(
            "done", racer1="A", racer2="B", raceDateTime=50, completed=True,
            results=[not_finished("A", "DNF", 1), finished("B", hours=1)], winner="B",
        )

        upcoming = RaceService.get_upcoming_races(self.mock_db)
        self.assertEqual([r["id"] for r in upcoming], ["sooner", "later"])
        self.assertEqual(upcoming[0]["racer1"]["displayName"], "B")

        ready = RaceService.get_ready_to_complete(self.mock_db, now=200)
        self.assertEqual([r["id"] for r in ready], ["sooner"])

        completed = RaceService.get_completed_races(self.mock_db)
        self.assertEqual([r["racer"] for r in completed[0]["results"]], ["B", "A"])

        mine = RaceService.get_user_races("B", self.mock_db)
        self.assertEqual(len(mine["racesParticipatedIn"]), 3)
        self.assertEqual([r["id"] for r in mine["racesCommentated"]], ["later"])


if __name__ == "__main__":
    unittest.main()
