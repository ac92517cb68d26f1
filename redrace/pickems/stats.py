"""Aggregate statistics over pickems entries."""

from __future__ import annotations

from collections import Counter
from typing import Any

from .scoring import picks_for_round


def count_picks(entries: list[dict[str, Any]], field: str) -> Counter[str]:
    """Count how many entries picked each competitor in ``field``."""
    counts: Counter[str] = Counter()
    for entry in entries:
        value = entry.get(field)
        if not value:
            continue
        picks = value if isinstance(value, list) else [value]
        # An entry counts once per competitor
        counts.update(set(picks))
    return counts


def top_picks(entries: list[dict[str, Any]], field: str, n: int) -> list[dict[str, Any]]:
    """Return the ``n`` most picked competitors, plus anyone tied with the n-th."""
    ranked = count_picks(entries, field).most_common()
    if n <= 0 or not ranked:
        return []
    if len(ranked) > n:
        cutoff = ranked[n - 1][1]
        ranked = [(uid, count) for uid, count in ranked if count >= cutoff]
    return [{"racer": uid, "count": count} for uid, count in ranked]


def favorites_per_group(
    entries: list[dict[str, Any]], groups: list[dict[str, Any]], round_name: str
) -> list[dict[str, Any]]:
    """Find the most picked member(s) of each group for ``round_name``.

    Every member sharing the highest count is a favorite. A group nobody picked
    from has no favorites.
    """
    counts: Counter[str] = Counter()
    for entry in entries:
        counts.update(set(picks_for_round(entry, round_name)))

    favorites = []
    for group in sorted(groups, key=lambda g: g.get("groupNumber") or 0):
        members = group.get("members") or []
        member_counts = {uid: counts.get(uid, 0) for uid in members}
        best = max(member_counts.values(), default=0)
        favorites.append({
            "groupId": group.get("id"),
            "groupNumber": group.get("groupNumber"),
            "count": best,
            "favorites": [uid for uid, c in member_counts.items() if best and c == best],
        })
    return favorites
