from __future__ import annotations

import logging
import time
import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable

from app.careergraph.builder import SkillGraphBuilder
from app.careergraph.heatmap import generate_heatmap, summarize_heatmap
from app.careergraph.models import (
    ActivityType,
    CareerActivity,
    CareerGraphData,
    HeatmapDay,
    HeatmapStats,
    SkillNode,
    UserProfile,
)
from app.careergraph.readiness import calculate_readiness_score
from app.careergraph.stores import ActivityStore, GraphStore, ProfileStore
from app.system_metrics import increment_metric, observe_graph_rebuild_ms
from core.config import ACTIVITY_FETCH_LIMIT, GRAPH_ACTIVITY_SNAPSHOT_LIMIT, GRAPH_LOOKBACK_DAYS
from core.logger import log_event

logger = logging.getLogger("app.careergraph")

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def _require_user_id(user_id: str) -> str:
    uid = str(user_id or "").strip()
    if not uid:
        raise ValueError("user_id is required")
    return uid


def sort_newest_first(activities: list[CareerActivity]) -> list[CareerActivity]:
    # Activities without a timestamp sort last.
    return sorted(activities, key=lambda a: a.timestamp or _OLDEST, reverse=True)


class CareerGraphService:
    def __init__(
        self,
        activity_store: ActivityStore,
        profile_store: ProfileStore,
        graph_store: GraphStore,
        clock: Callable[[], datetime] | None = None,
        lookback_days: int = GRAPH_LOOKBACK_DAYS,
        fetch_limit: int = ACTIVITY_FETCH_LIMIT,
        snapshot_limit: int = GRAPH_ACTIVITY_SNAPSHOT_LIMIT,
    ):
        self.activity_store = activity_store
        self.profile_store = profile_store
        self.graph_store = graph_store
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.lookback_days = max(1, int(lookback_days))
        self.fetch_limit = max(1, int(fetch_limit))
        self.snapshot_limit = max(1, int(snapshot_limit))
        self.builder = SkillGraphBuilder(clock=self._clock)

    def now(self) -> datetime:
        return self._clock()

    def log_activity(
        self,
        user_id: str,
        activity_type: ActivityType | str,
        metadata: dict | None = None,
        impact: float = 1.0,
    ) -> CareerActivity:
        uid = _require_user_id(user_id)
        try:
            kind = ActivityType(activity_type)
        except ValueError:
            raise ValueError(f"unknown activity type: {activity_type}") from None
        if float(impact) <= 0:
            raise ValueError("impact must be positive")

        activity = CareerActivity(
            id=str(uuid.uuid4()),
            user_id=uid,
            type=kind,
            timestamp=self.now(),
            metadata=dict(metadata or {}),
            impact=float(impact),
        )
        self.activity_store.append(activity)
        increment_metric("activities_logged_total")
        log_event(
            "careergraph",
            "activity_logged",
            uid,
            activity_type=kind.value,
            skill_name=activity.skill_name,
            metadata=activity.metadata,
        )

        self.update_career_graph(uid)
        return activity

    def fetch_activities(self, user_id: str) -> list[CareerActivity]:
        uid = _require_user_id(user_id)
        rows = self.activity_store.list_for_user(uid, since=self.lookback_start())
        return sort_newest_first(rows)[: self.fetch_limit]

    def lookback_start(self) -> datetime:
        # Midnight UTC of the heatmap's first day, so that whole day is included.
        today = self.now().astimezone(timezone.utc).date()
        return datetime.combine(today - timedelta(days=self.lookback_days), datetime.min.time(), tzinfo=timezone.utc)

    def get_profile(self, user_id: str) -> UserProfile:
        uid = _require_user_id(user_id)
        profile = self.profile_store.get_profile(uid)
        return profile if profile is not None else UserProfile(user_id=uid)

    def save_profile(self, profile: UserProfile) -> UserProfile:
        _require_user_id(profile.user_id)
        self.profile_store.save_profile(profile)
        log_event(
            "careergraph",
            "profile_saved",
            profile.user_id,
            skill_count=len(profile.skill_names),
            career_goals=profile.career_goals,
        )
        self.update_career_graph(profile.user_id)
        return profile

    def _declared_skill_names(self, user_id: str) -> list[str]:
        declared = self.profile_store.get_declared_skills(user_id) or []
        return [str(item.get("name")) for item in declared if isinstance(item, dict) and item.get("name")]

    def build_skill_graph(self, user_id: str, activities: list[CareerActivity] | None = None) -> list[SkillNode]:
        uid = _require_user_id(user_id)
        rows = activities if activities is not None else self.fetch_activities(uid)
        return self.builder.build(self._declared_skill_names(uid), rows, user_id=uid)

    def compute_heatmap(self, activities: list[CareerActivity]) -> tuple[list[HeatmapDay], HeatmapStats]:
        days = generate_heatmap(activities, today=self.now().date())
        return days, summarize_heatmap(days)

    @staticmethod
    def compute_readiness(skills: list[SkillNode], has_target: bool) -> float:
        return calculate_readiness_score(skills, has_target)

    def rebuild_career_graph(self, user_id: str) -> CareerGraphData:
        uid = _require_user_id(user_id)
        started = time.perf_counter()

        profile = self.get_profile(uid)
        activities = self.fetch_activities(uid)
        skills = self.build_skill_graph(uid, activities=activities)
        target_role = profile.career_goals or None

        graph = CareerGraphData(
            user_id=uid,
            current_role=profile.current_role,
            target_role=target_role,
            skills=skills,
            activities=activities[: self.snapshot_limit],
            readiness_score=self.compute_readiness(skills, has_target=bool(target_role)),
            last_updated=self.now(),
        )
        self.graph_store.save(uid, graph)

        elapsed_ms = (time.perf_counter() - started) * 1000.0
        observe_graph_rebuild_ms(elapsed_ms)
        log_event(
            "careergraph",
            "graph_rebuilt",
            uid,
            skill_count=len(skills),
            activity_count=len(activities),
            readiness_score=round(graph.readiness_score, 2),
            elapsed_ms=round(elapsed_ms, 2),
        )
        return graph

    def update_career_graph(self, user_id: str) -> CareerGraphData | None:
        try:
            return self.rebuild_career_graph(user_id)
        except Exception:
            increment_metric("graph_rebuild_failures_total")
            logger.exception("career graph rebuild failed user_id=%s", user_id)
            return None

    def fetch_career_graph(self, user_id: str) -> CareerGraphData | None:
        uid = _require_user_id(user_id)
        graph = self.graph_store.load(uid)
        if graph is not None:
            return graph
        return self.update_career_graph(uid)
