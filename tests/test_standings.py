"""Tests for standings and the top cut."""

from __future__ import annotations

import unittest

from redrace.tournament.services import TournamentService
from redrace.tournament.utils import compute_top_cut, sort_standings
from tests.mock_utils import FirestoreTestCase, runner


class SortStandingsTestCase(unittest.TestCase):
    """Test case for ordering standings."""

    def test_points_then_tiebreak(self) -> None:
        runners = [
            {"id": "a", "points": 10, "tieBreakerValue": 5},
            {"id": "b", "points": 10, "tieBreakerValue": 8},
            {"id": "c", "points": 12, "tieBreakerValue": 0},
        ]
        self.assertEqual([s["id"] for s in sort_standings(runners)], ["c", "b", "a"])

    def test_dnf_forces_worst_tiebreak(self) -> None:
        runners = [
            {"id": "dnf", "points": 8, "tieBreakerValue": 50, "hasDNF": True},
            {"id": "clean", "points": 8, "tieBreakerValue": 0},
        ]
        standings = sort_standings(runners)
        self.assertEqual([s["id"] for s in standings], ["clean", "dnf"])
        self.assertEqual(standings[1]["tieBreakerValue"], -1)

    def test_defaults(self) -> None:
        entry = sort_standings([{"id": "x", "discordUsername": "xdude"}])[0]
        self.assertEqual(entry["points"], 0)
        self.assertEqual(entry["tieBreakerValue"], 0)
        self.assertEqual(entry["currentBracket"], "Unknown")
        self.assertEqual(entry["displayName"], "xdude")

    def test_equal_entries_keep_input_order(self) -> None:
        runners = [{"id": "first", "points": 4}, {"id": "second", "points": 4}]
        self.assertEqual([s["id"] for s in sort_standings(runners)], ["first", "second"])


class TopCutTestCase(unittest.TestCase):
    """Test case for the top cut."""

    def _standings(self, points: list[int]) -> list[dict]:
        return sort_standings(
            [{"id": f"r{i}", "points": p} for i, p in enumerate(points)]
        )

    def test_clean_cut(self) -> None:
        cut = compute_top_cut(self._standings([12, 10, 8, 4]), 2)
        self.assertEqual([s["id"] for s in cut["qualified"]], ["r0", "r1"])
        self.assertEqual(cut["cutoffPoints"], 10)
        self.assertEqual(cut["tied"], [])
        self.assertEqual(cut["boundary"], [])

    def test_ties_on_the_cut_line_are_reported(self) -> None:
        cut = compute_top_cut(self._standings([12, 8, 8, 8, 4]), 2)
        self.assertEqual([s["id"] for s in cut["qualified"]], ["r0", "r1"])
        self.assertEqual([s["id"] for s in cut["boundary"]], ["r1"])
        self.assertEqual([s["id"] for s in cut["tied"]], ["r2", "r3"])

    def test_fewer_runners_than_cut(self) -> None:
        cut = compute_top_cut(self._standings([5, 3]), 9)
        self.assertEqual(len(cut["qualified"]), 2)
        self.assertEqual(cut["tied"], [])

    def test_empty(self) -> None:
        cut = compute_top_cut([], 9)
        self.assertIsNone(cut["cutoffPoints"])


class StandingsServiceTestCase(FirestoreTestCase):
    """Test case for reading standings from Firestore."""

    def test_only_runners_are_ranked(self) -> None:
        self.add_user("a", runner("alpha", points=10, tieBreakerValue=5))
        self.add_user("b", runner("bravo", points=10, tieBreakerValue=8))
        self.add_user("c", runner("charlie", points=12))
        self.add_user("d", {"discordUsername": "caster", "role": "commentator", "points": 99})

        standings = TournamentService.get_standings(self.mock_db)
        self.assertEqual([s["id"] for s in standings], ["c", "b", "a"])

    def test_standings_route(self) -> None:
        self.add_user("a", runner("alpha", points=3))
        response = self.client.get("/tournament/standings")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()[0]["displayName"], "Alpha")


if __name__ == "__main__":
    unittest.main()
