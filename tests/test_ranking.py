"""Tests for race result ranking."""

from __future__ import annotations

import unittest

from redrace.race.ranking import (
    placements,
    rank_results,
    rank_results_for_display,
    total_milliseconds,
    winner_of,
)
from tests.mock_utils import finished, not_finished


class RankingTestCase(unittest.TestCase):
    """Test case for ranking race results."""

    def test_total_milliseconds(self) -> None:
        self.assertEqual(
            total_milliseconds({"hours": 1, "minutes": 2, "seconds": 3, "milliseconds": 4}),
            3_723_004,
        )
        self.assertEqual(total_milliseconds({"minutes": 1}), 60_000)
        self.assertEqual(total_milliseconds(None), 0)

    def test_faster_finisher_wins(self) -> None:
        """A finishes in 1:00:00.000 and B in 1:05:00.000, so A wins."""
        results = [finished("B", hours=1, minutes=5), finished("A", hours=1)]
        self.assertEqual(winner_of(["A", "B"], results), "A")

    def test_no_finisher_means_no_winner(self) -> None:
        results = [not_finished("A", "DNF", 1), not_finished("B", "DQ")]
        result = placements(["A", "B"], results)
        self.assertIsNone(result.winner)
        self.assertEqual(result.order, ["A", "B"])
        self.assertEqual(result.last, "B")

    def test_status_precedence(self) -> None:
        results = [
            not_finished("dq", "DQ"),
            not_finished("dns", "DNS"),
            not_finished("dnf", "DNF", 1),
            finished("fin", hours=3),
        ]
        ranked = rank_results(["dq", "dns", "dnf", "fin"], results)
        self.assertEqual([r["racer"] for r in ranked], ["fin", "dnf", "dns", "dq"])

    def test_unknown_status_ranks_after_dq(self) -> None:
        results = [not_finished("odd", "Retired"), not_finished("dq", "DQ")]
        ranked = rank_results(["odd", "dq"], results)
        self.assertEqual([r["racer"] for r in ranked], ["dq", "odd"])

    def test_later_dnf_ranks_better(self) -> None:
        results = [
            not_finished("early", "DNF", 1),
            not_finished("unknown", "DNF"),
            not_finished("late", "DNF", 2),
        ]
        ranked = rank_results(["early", "unknown", "late"], results)
        self.assertEqual([r["racer"] for r in ranked], ["late", "early", "unknown"])

    def test_missing_result_counts_as_dns(self) -> None:
        results = [finished("A", hours=1), not_finished("C", "DQ")]
        ranked = rank_results(["A", "B", "C"], results)
        self.assertEqual([r["racer"] for r in ranked], ["A", "B", "C"])
        self.assertEqual(ranked[1]["status"], "DNS")

    def test_equal_times_keep_slot_order(self) -> None:
        results = [finished("B", hours=1), finished("A", hours=1)]
        self.assertEqual(winner_of(["A", "B"], results), "A")

    def test_three_racers_have_a_middle(self) -> None:
        results = [finished("A", hours=2), finished("B", hours=1), finished("C", hours=3)]
        result = placements(["A", "B", "C"], results)
        self.assertEqual((result.winner, result.middle, result.last), ("B", "A", "C"))

    def test_two_racers_have_no_middle(self) -> None:
        result = placements(["A", "B"], [finished("A", hours=1), finished("B", hours=2)])
        self.assertIsNone(result.middle)

    def test_display_order(self) -> None:
        results = [
            not_finished("dnf", "DNF", 1),
            finished("slow", hours=2),
            not_finished("dq", "DQ"),
            finished("fast", hours=1),
        ]
        ordered = rank_results_for_display(results)
        self.assertEqual([r["racer"] for r in ordered], ["fast", "slow", "dnf", "dq"])


if __name__ == "__main__":
    unittest.main()
