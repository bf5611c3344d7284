from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable

from app.careergraph.categorizer import categorize_skill
from app.careergraph.models import CareerActivity, SkillNode
from app.careergraph.weights import (
    calculate_skill_weight,
    days_since,
    latest_timestamp,
    matching_activities,
)
from core.logger import log_event

CO_OCCURRENCE_WINDOW = timedelta(days=7)

_WHITESPACE_RE = re.compile(r"\s+")


def slugify_skill(name: str) -> str:
    return _WHITESPACE_RE.sub("-", (name or "").strip().lower())


def find_slug_collisions(names: Iterable[str]) -> dict[str, list[str]]:
    """Slugs shared by more than one distinct display name."""
    by_slug: dict[str, list[str]] = {}
    for raw in names:
        name = (raw or "").strip()
        if not name:
            continue
        bucket = by_slug.setdefault(slugify_skill(name), [])
        if name not in bucket:
            bucket.append(name)
    return {slug: bucket for slug, bucket in by_slug.items() if len(bucket) > 1}


def find_connections(skill_name: str, activities: list[CareerActivity]) -> list[str]:
    key = (skill_name or "").strip().lower()
    timed = [a for a in activities if a.timestamp is not None and a.skill_name is not None]
    related: list[str] = []
    seen: set[str] = set()

    for anchor in timed:
        if anchor.skill_name.strip().lower() != key:
            continue
        for other in timed:
            other_key = other.skill_name.strip().lower()
            if other_key == key:
                continue
            if abs(other.timestamp - anchor.timestamp) >= CO_OCCURRENCE_WINDOW:
                continue
            slug = slugify_skill(other_key)
            if slug not in seen:
                seen.add(slug)
                related.append(slug)

    return related


def build_skill_node(skill_name: str, activities: list[CareerActivity], now: datetime | None = None) -> SkillNode:
    name = skill_name.strip()
    relevant = matching_activities(name, activities)
    return SkillNode(
        id=slugify_skill(name),
        name=name,
        category=categorize_skill(name),
        weight=calculate_skill_weight(name, activities, now=now),
        frequency=len(relevant),
        recency=days_since(latest_timestamp(relevant), now=now),
        connections=find_connections(name, activities),
    )


def build_skill_nodes(
    skill_names: Iterable[str],
    activities: Iterable[CareerActivity],
    now: datetime | None = None,
    user_id: str = "",
) -> list[SkillNode]:
    names = [name.strip() for name in skill_names if isinstance(name, str) and name.strip()]
    activity_list = list(activities)

    for slug, colliding in find_slug_collisions(names).items():
        log_event("careergraph", "slug_collision", user_id, slug=slug, names=colliding)

    nodes: dict[str, SkillNode] = {}
    for name in names:
        node = build_skill_node(name, activity_list, now=now)
        nodes[node.id] = node

    return list(nodes.values())


class SkillGraphBuilder:
    def __init__(self, clock: Callable[[], datetime] | None = None):
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def build(self, skill_names: Iterable[str], activities: Iterable[CareerActivity], user_id: str = "") -> list[SkillNode]:
        return build_skill_nodes(skill_names, activities, now=self._clock(), user_id=user_id)
