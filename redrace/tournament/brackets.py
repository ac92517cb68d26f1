"""Tier movement rules applied to each race when a round ends.

Tiers from lowest to highest are Normal, Ascension, then Exhibition or
Playoffs. A rule is looked up by the round, the racer's tier before the race
and the racer's placement (winner, middle, last):

* Exhibition racers all move to Playoffs whatever their placement.
* A Normal winner is promoted to Ascension.
* An Ascension winner is promoted to Exhibition in Round 2 and to Playoffs in
  any other round.
* An Ascension racer finishing last is demoted to Normal.
* Playoffs is terminal.

Every racer of the race then gains the tie-break weight of the tier it ends
the race in.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from redrace.constants import (
    BRACKET_ASCENSION,
    BRACKET_EXHIBITION,
    BRACKET_NORMAL,
    BRACKET_PLAYOFFS,
    BRACKET_TIEBREAK_WEIGHTS,
    ELIMINATION_ROUNDS,
    ROUND_2,
    WINNER_POINTS,
)
from redrace.race.ranking import Placements


@dataclass
class BracketMove:
    """A single racer's tier change caused by one race."""

    racer_id: str
    from_bracket: str
    to_bracket: str
    tiebreak_gain: int


def ascension_target(round_name: str) -> str:
    """Tier an Ascension winner is promoted to in ``round_name``."""
    return BRACKET_EXHIBITION if round_name == ROUND_2 else BRACKET_PLAYOFFS


def next_bracket(
    round_name: str, current: str, is_winner: bool, is_last: bool
) -> str:
    """Look up the tier a racer moves to after one race."""
    if current == BRACKET_EXHIBITION:
        return BRACKET_PLAYOFFS
    if current == BRACKET_NORMAL and is_winner:
        return BRACKET_ASCENSION
    if current == BRACKET_ASCENSION:
        if is_winner:
            return ascension_target(round_name)
        if is_last:
            return BRACKET_NORMAL
    return current


def apply_race(
    round_name: str,
    result: Placements,
    competitors: dict[str, dict[str, Any]],
) -> list[BracketMove]:
    """Move the racers of one race between tiers, mutating ``competitors``.

    Tiers are read for every racer before any of this race's changes are
    written, so a promoted winner is never also treated as its new tier.
    Racers missing from ``competitors`` are skipped.
    """
    before = {
        rid: competitors[rid].get("currentBracket") or BRACKET_NORMAL
        for rid in result.order
        if rid in competitors
    }

    moves = []
    for racer_id, current in before.items():
        new_bracket = next_bracket(
            round_name,
            current,
            is_winner=racer_id == result.winner,
            is_last=racer_id == result.last and racer_id != result.winner,
        )
        gain = BRACKET_TIEBREAK_WEIGHTS.get(new_bracket, 0)
        competitor = competitors[racer_id]
        competitor["currentBracket"] = new_bracket
        competitor["tieBreakerValue"] = (competitor.get("tieBreakerValue") or 0) + gain
        moves.append(BracketMove(racer_id, current, new_bracket, gain))
    return moves


def winner_points(round_name: str, winner_id: Optional[str]) -> int:
    """Points a race's winner earns in ``round_name``; zero when nobody finished."""
    if not winner_id or round_name in ELIMINATION_ROUNDS:
        return 0
    return WINNER_POINTS
