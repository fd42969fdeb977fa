"""Rank candidate streams by similarity to a baseline stream.

Criteria are additive and independent:

- same category (both non-empty): +40, ``"same category"``
- start times within one day: +30, ``"same date"`` under 0.1 day,
  ``"close date"`` otherwise
- broadcast intervals overlap (open end = now): +20, ``"time overlap"``
- same platform: +10, ``"same platform"``

Candidates below ``MIN_SUGGESTION_SCORE`` are dropped, and ties keep the
order the candidate pool was supplied in.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta

from shared.models import SimilarityScore, StreamRecord

from .timeutil import parse_timestamp, utc_now

CATEGORY_WEIGHT = 40
DATE_WEIGHT = 30
OVERLAP_WEIGHT = 20
PLATFORM_WEIGHT = 10

CLOSE_DATE_WINDOW = timedelta(days=1)
SAME_DATE_WINDOW = timedelta(days=0.1)

MIN_SUGGESTION_SCORE = 40
MAX_SUGGESTIONS = 10


def _interval(stream: StreamRecord, now: datetime) -> tuple[datetime, datetime] | None:
    start = parse_timestamp(stream.started_at)
    if start is None:
        return None
    end = parse_timestamp(stream.ended_at) if stream.ended_at else None
    return start, end or now


def has_time_overlap(a: StreamRecord, b: StreamRecord, now: datetime | None = None) -> bool:
    """True when the two broadcasts were on air at the same time at any point."""
    now = now or utc_now()
    a_range = _interval(a, now)
    b_range = _interval(b, now)
    if a_range is None or b_range is None:
        return False
    return a_range[0] < b_range[1] and b_range[0] < a_range[1]


def score_stream(
    baseline: StreamRecord, candidate: StreamRecord, now: datetime | None = None
) -> SimilarityScore:
    """Score a single candidate against the baseline."""
    now = now or utc_now()
    score = 0
    reasons: list[str] = []

    if baseline.category and candidate.category == baseline.category:
        score += CATEGORY_WEIGHT
        reasons.append("same category")

    base_start = parse_timestamp(baseline.started_at)
    cand_start = parse_timestamp(candidate.started_at)
    if base_start is not None and cand_start is not None:
        gap = abs(cand_start - base_start)
        if gap <= CLOSE_DATE_WINDOW:
            score += DATE_WEIGHT
            reasons.append("same date" if gap < SAME_DATE_WINDOW else "close date")

    if has_time_overlap(baseline, candidate, now):
        score += OVERLAP_WEIGHT
        reasons.append("time overlap")

    if candidate.platform == baseline.platform:
        score += PLATFORM_WEIGHT
        reasons.append("same platform")

    return SimilarityScore(stream=candidate, score=score, reasons=reasons)


def score_candidates(
    baseline: StreamRecord,
    candidates: Iterable[StreamRecord],
    exclude_ids: Iterable[int] = (),
    now: datetime | None = None,
    limit: int | None = MAX_SUGGESTIONS,
) -> list[SimilarityScore]:
    """Score, filter and rank a candidate pool, highest score first.

    The baseline itself and any id in ``exclude_ids`` are skipped. Pass
    ``limit=None`` to keep every candidate that clears the threshold.
    """
    now = now or utc_now()
    excluded = set(exclude_ids)
    excluded.add(baseline.id)

    scored = [
        score_stream(baseline, candidate, now)
        for candidate in candidates
        if candidate.id not in excluded
    ]
    scored = [s for s in scored if s.score >= MIN_SUGGESTION_SCORE]
    # sorted() is stable, so equal scores keep pool order
    scored = sorted(scored, key=lambda s: s.score, reverse=True)
    return scored if limit is None else scored[:limit]
