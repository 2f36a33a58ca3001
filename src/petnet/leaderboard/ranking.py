"""Deterministic leaderboard ranking.

Entries are ordered by score DESC; equal scores keep their input order
(Python's sort is stable). Ranks are dense and 1-indexed: ``[5, 5, 3]``
ranks as ``[1, 1, 2]``. Ranks are assigned over the whole ordered list
before the offset/limit window is cut, so a page never renumbers.
"""

from __future__ import annotations

from typing import Any, Callable


def rank_entries(
    entries: list[dict[str, Any]],
    score_key: str | Callable[[dict[str, Any]], float] = "score",
    offset: int = 0,
    limit: int | None = None,
) -> list[dict[str, Any]]:
    """Sort, rank and window a list of leaderboard entries.

    Input: list of dicts, each carrying a numeric score either under
    ``score_key`` or as computed by ``score_key(entry)``.

    Output: new dicts (inputs are not mutated) augmented with ``rank``,
    sliced to ``[offset : offset + limit]``.
    """
    if offset < 0:
        raise ValueError("offset must be >= 0")
    if limit is not None and limit < 0:
        raise ValueError("limit must be >= 0")
    if not entries:
        return []

    if callable(score_key):
        score_of = score_key
    else:
        def score_of(e: dict[str, Any]) -> float:
            return e.get(score_key, 0)

    ordered = sorted(entries, key=lambda e: -score_of(e))

    ranked: list[dict[str, Any]] = []
    rank = 0
    previous: float | None = None
    for e in ordered:
        score = score_of(e)
        if previous is None or score != previous:
            rank += 1
            previous = score
        ranked.append({**e, "rank": rank})

    end = None if limit is None else offset + limit
    return ranked[offset:end]
