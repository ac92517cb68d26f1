"""Ranking of race results from best to worst."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from redrace.constants import STATUS_DNF, STATUS_DNS, STATUS_FINISHED, STATUSES

_STATUS_ORDER = {status: index for index, status in enumerate(STATUSES)}


def total_milliseconds(finish_time: dict[str, Any] | None) -> int:
    """Convert an {hours, minutes, seconds, milliseconds} mapping to milliseconds."""
    if not finish_time:
        return 0
    return (
        (finish_time.get("hours") or 0) * 3_600_000
        + (finish_time.get("minutes") or 0) * 60_000
        + (finish_time.get("seconds") or 0) * 1_000
        + (finish_time.get("milliseconds") or 0)
    )


def _sort_key(result: dict[str, Any]) -> tuple[int, int, int]:
    """Build the comparison key for one result.

    Unknown statuses rank after DQ. Among DNFs a higher ``dnfOrder`` means the
    racer dropped out later; a missing ``dnfOrder`` ranks last.
    """
    status = result.get("status")
    status_rank = _STATUS_ORDER.get(status, len(STATUSES))
    if status == STATUS_FINISHED:
        return (status_rank, 0, total_milliseconds(result.get("finishTime")))
    if status == STATUS_DNF:
        dnf_order = result.get("dnfOrder")
        if dnf_order is None:
            return (status_rank, 1, 0)
        return (status_rank, 0, -dnf_order)
    return (status_rank, 0, 0)


def rank_results(
    racer_ids: list[str], results: list[dict[str, Any]]
) -> list[dict[str, Any]]:
    """Return one result per racer, ordered best to worst.

    Racers without a submitted result are treated as DNS. The sort is stable,
    so identical keys keep the order of ``racer_ids``.
    """
    by_racer = {r.get("racer"): r for r in results if r}
    entries = [by_racer.get(rid) or {"racer": rid, "status": STATUS_DNS} for rid in racer_ids]
    return sorted(entries, key=_sort_key)


@dataclass
class Placements:
    """Placement roles of one race."""

    order: list[str]
    winner: Optional[str]
    last: Optional[str]
    middle: Optional[str] = None


def placements(racer_ids: list[str], results: list[dict[str, Any]]) -> Placements:
    """Derive winner, middle and last from the ranked results of a race."""
    ranked = rank_results(racer_ids, results)
    order = [entry["racer"] for entry in ranked]
    if not ranked:
        return Placements(order=[], winner=None, last=None)

    best = ranked[0]
    winner = best["racer"] if best.get("status") == STATUS_FINISHED else None
    middle = order[1] if len(order) == 3 else None  # noqa: PLR2004
    return Placements(order=order, winner=winner, last=order[-1], middle=middle)


def winner_of(racer_ids: list[str], results: list[dict[str, Any]]) -> Optional[str]:
    """Return the racer with the fastest finished time, or None if nobody finished."""
    return placements(racer_ids, results).winner


def rank_results_for_display(results: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Order finished results by time, followed by every non-finish in input order."""
    finished = sorted(
        (r for r in results if r.get("status") == STATUS_FINISHED),
        key=lambda r: total_milliseconds(r.get("finishTime")),
    )
    others = [r for r in results if r.get("status") != STATUS_FINISHED]
    return finished + others
