from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable

from app.careergraph.models import CareerActivity

BASE_SKILL_WEIGHT = 20.0
NO_ACTIVITY_RECENCY_DAYS = 365
_SECONDS_PER_DAY = 24 * 60 * 60


def _clamp(value: float, minimum: float = 0.0, maximum: float = 100.0) -> float:
    return max(minimum, min(maximum, float(value)))


def _normalize_skill_name(name: str | None) -> str:
    return (name or "").strip().lower()


def matching_activities(skill_name: str, activities: Iterable[CareerActivity]) -> list[CareerActivity]:
    key = _normalize_skill_name(skill_name)
    if not key:
        return []
    return [a for a in activities if a.skill_name is not None and _normalize_skill_name(a.skill_name) == key]


def latest_timestamp(activities: Iterable[CareerActivity]) -> datetime | None:
    stamps = [a.timestamp for a in activities if a.timestamp is not None]
    return max(stamps) if stamps else None


def days_since(timestamp: datetime | None, now: datetime | None = None) -> int:
    """Whole days elapsed since ``timestamp``; 365 when there is no timestamp."""
    if timestamp is None:
        return NO_ACTIVITY_RECENCY_DAYS
    reference = now or datetime.now(timezone.utc)
    elapsed = (reference - timestamp).total_seconds()
    return max(0, int(elapsed // _SECONDS_PER_DAY))


def calculate_skill_weight(
    skill_name: str,
    activities: Iterable[CareerActivity],
    now: datetime | None = None,
) -> float:
    relevant = matching_activities(skill_name, activities)
    if not relevant:
        return BASE_SKILL_WEIGHT

    frequency_score = min(len(relevant) * 2, 40)

    days = days_since(latest_timestamp(relevant), now=now)
    recency_score = max(30 - days / 10, 0)

    avg_impact = sum(a.effective_impact for a in relevant) / len(relevant)
    intensity_score = avg_impact * 3

    return _clamp(frequency_score + recency_score + intensity_score)
