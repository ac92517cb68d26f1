"""Pickems scoring against actual race winners.

Every entry records in ``scoredRaces`` the races whose correct-pick bonus it
currently holds, so scoring a race is a reconciliation rather than an
increment: running it again with the same winner changes nothing, and running
it with a corrected winner moves the bonus to the entries that now deserve it.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional

from redrace.constants import (
    POINTS_PER_CORRECT_PICK,
    POINTS_PER_TOP_CUT_PICK,
    ROUND_PICK_FIELDS,
)


def picks_for_round(entry: dict[str, Any], round_name: str) -> list[str]:
    """Return the competitors an entry picked to win races in ``round_name``."""
    field = ROUND_PICK_FIELDS.get(round_name)
    if not field:
        return []
    value = entry.get(field)
    if not value:
        return []
    if isinstance(value, list):
        return value
    return [value]


def reconcile_race(
    entry: dict[str, Any],
    race_id: str,
    round_name: str,
    winner_id: Optional[str],
) -> int:
    """Make ``entry`` hold the bonus for ``race_id`` exactly when it picked the winner.

    Mutates ``points`` and ``scoredRaces`` in place and returns the points
    delta (0 when the entry was already reconciled).
    """
    scored = list(entry.get("scoredRaces") or [])
    holds = race_id in scored
    earns = winner_id is not None and winner_id in picks_for_round(entry, round_name)
    if holds == earns:
        return 0

    if earns:
        scored.append(race_id)
        delta = POINTS_PER_CORRECT_PICK
    else:
        scored.remove(race_id)
        delta = -POINTS_PER_CORRECT_PICK
    entry["scoredRaces"] = scored
    entry["points"] = (entry.get("points") or 0) + delta
    return delta


def top_cut_award(entry: dict[str, Any], qualified_ids: Iterable[str]) -> Optional[int]:
    """Award the top-cut bonus once per entry.

    Returns the number of correct picks, or None when the entry was already
    awarded.
    """
    if entry.get("top9PointsAwarded"):
        return None
    qualified = set(qualified_ids)
    correct = [pick for pick in entry.get("top9") or [] if pick in qualified]
    entry["points"] = (entry.get("points") or 0) + len(correct) * POINTS_PER_TOP_CUT_PICK
    entry["top9PointsAwarded"] = True
    return len(correct)
