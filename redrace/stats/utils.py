"""Aggregate statistics over completed races."""

from __future__ import annotations

from collections import Counter, defaultdict
from typing import Any, Iterator

from redrace.constants import STATUS_FINISHED
from redrace.race.models import racer_ids
from redrace.race.ranking import total_milliseconds


def counted_races(races: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Completed races that were not cancelled."""
    return [r for r in races if r.get("completed") and not r.get("cancelled")]


def finished_times(races: list[dict[str, Any]]) -> Iterator[tuple[dict[str, Any], str, int]]:
    """Yield ``(race, racer_id, milliseconds)`` for every finished result."""
    for race in counted_races(races):
        for result in race.get("results") or []:
            if result.get("status") == STATUS_FINISHED:
                yield race, result.get("racer"), total_milliseconds(result.get("finishTime"))


def top_times(races: list[dict[str, Any]], n: int) -> list[dict[str, Any]]:
    """The ``n`` fastest finishes, plus every finish tied with the n-th."""
    times = sorted(
        ({"racer": racer, "bestTime": ms, "raceId": race.get("id")}
         for race, racer, ms in finished_times(races)),
        key=lambda t: t["bestTime"],
    )
    if len(times) > n > 0:
        cutoff = times[n - 1]["bestTime"]
        times = [t for t in times if t["bestTime"] <= cutoff]
    return times


def average_time_by(races: list[dict[str, Any]], key: str) -> dict[str, float]:
    """Mean finish time in milliseconds grouped by a race field such as ``round``."""
    totals: dict[str, list[int]] = defaultdict(list)
    for race, _, ms in finished_times(races):
        if race.get(key):
            totals[race[key]].append(ms)
    return {group: sum(values) / len(values) for group, values in totals.items()}


def win_rates(races: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Percentage of counted races each racer won, best first."""
    raced: Counter[str] = Counter()
    won: Counter[str] = Counter()
    for race in counted_races(races):
        raced.update(racer_ids(race))
        if race.get("winner"):
            won[race["winner"]] += 1
    rates = [
        {"racer": uid, "races": count, "wins": won[uid], "winRate": round(won[uid] / count * 100, 2)}
        for uid, count in raced.items()
    ]
    rates.sort(key=lambda r: r["winRate"], reverse=True)
    return rates


def most_active_commentators(races: list[dict[str, Any]], n: int) -> list[dict[str, Any]]:
    """Commentators with the most races, cancelled races excluded."""
    counts: Counter[str] = Counter()
    for race in races:
        if not race.get("cancelled"):
            counts.update(race.get("commentators") or [])
    return [{"commentator": uid, "commentatedRaces": c} for uid, c in counts.most_common(n)]
