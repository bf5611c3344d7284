from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ActivityType(str, Enum):
    SKILL_ADDED = "skill_added"
    COURSE_COMPLETED = "course_completed"
    PROJECT_ADDED = "project_added"
    EXPERIENCE_ADDED = "experience_added"
    PROFILE_UPDATED = "profile_updated"
    INTERVIEW_COMPLETED = "interview_completed"
    LEARNING_SESSION = "learning_session"

    @property
    def label(self) -> str:
        return ACTIVITY_TYPE_LABELS.get(self, self.value.replace("_", " ").capitalize())


ACTIVITY_TYPE_LABELS = {
    ActivityType.SKILL_ADDED: "Added skill",
    ActivityType.COURSE_COMPLETED: "Completed course",
    ActivityType.PROJECT_ADDED: "Added project",
    ActivityType.EXPERIENCE_ADDED: "Updated experience",
    ActivityType.PROFILE_UPDATED: "Updated profile",
    ActivityType.INTERVIEW_COMPLETED: "Completed interview",
    ActivityType.LEARNING_SESSION: "Learning session",
}


class SkillCategory(str, Enum):
    TECHNICAL = "technical"
    SOFT = "soft"
    DOMAIN = "domain"
    TOOL = "tool"
    LANGUAGE = "language"


def parse_timestamp(value: Any) -> datetime | None:
    """Coerce a stored timestamp into an aware UTC datetime.

    Accepts datetimes, ISO-8601 strings (a trailing ``Z`` included) and epoch
    seconds. Anything else yields ``None`` so callers can skip the activity.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(float(value), tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    else:
        text = str(value).strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


@dataclass(frozen=True)
class CareerActivity:
    id: str
    user_id: str
    type: ActivityType
    timestamp: datetime | None
    metadata: dict = field(default_factory=dict)
    impact: float = 1.0

    @property
    def skill_name(self) -> str | None:
        raw = (self.metadata or {}).get("skillName")
        if isinstance(raw, str) and raw.strip():
            return raw
        return None

    @property
    def effective_impact(self) -> float:
        try:
            value = float(self.impact)
        except (TypeError, ValueError):
            return 1.0
        return value if value else 1.0

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "type": self.type.value,
            "timestamp": _isoformat(self.timestamp),
            "metadata": dict(self.metadata or {}),
            "impact": self.impact,
        }

    @classmethod
    def from_dict(cls, raw: dict) -> "CareerActivity":
        return cls(
            id=str(raw.get("id") or ""),
            user_id=str(raw.get("user_id") or raw.get("userId") or ""),
            type=ActivityType(str(raw.get("type") or ActivityType.PROFILE_UPDATED.value)),
            timestamp=parse_timestamp(raw.get("timestamp")),
            metadata=dict(raw.get("metadata") or {}),
            impact=float(raw.get("impact") or 1.0),
        )


@dataclass
class SkillNode:
    id: str
    name: str
    category: SkillCategory
    weight: float
    frequency: int = 0
    recency: int = 365
    connections: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        payload = asdict(self)
        payload["category"] = self.category.value
        return payload

    @classmethod
    def from_dict(cls, raw: dict) -> "SkillNode":
        return cls(
            id=str(raw.get("id") or ""),
            name=str(raw.get("name") or ""),
            category=SkillCategory(str(raw.get("category") or SkillCategory.TECHNICAL.value)),
            weight=float(raw.get("weight") or 0.0),
            frequency=int(raw.get("frequency") or 0),
            recency=int(raw.get("recency") if raw.get("recency") is not None else 365),
            connections=[str(item) for item in (raw.get("connections") or [])],
        )


@dataclass
class UserProfile:
    user_id: str
    skills: list[dict] = field(default_factory=list)
    career_goals: str | None = None
    current_role: str | None = None

    @property
    def skill_names(self) -> list[str]:
        names = []
        for item in self.skills or []:
            name = item.get("name") if isinstance(item, dict) else item
            if isinstance(name, str) and name.strip():
                names.append(name.strip())
        return names

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, raw: dict) -> "UserProfile":
        skills = [
            {"name": str(item.get("name"))}
            for item in (raw.get("skills") or [])
            if isinstance(item, dict) and item.get("name")
        ]
        return cls(
            user_id=str(raw.get("user_id") or ""),
            skills=skills,
            career_goals=raw.get("career_goals") or None,
            current_role=raw.get("current_role") or None,
        )


@dataclass
class CareerGraphData:
    user_id: str
    skills: list[SkillNode]
    activities: list[CareerActivity]
    readiness_score: float
    last_updated: datetime
    current_role: str | None = None
    target_role: str | None = None

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "current_role": self.current_role,
            "target_role": self.target_role,
            "skills": [node.to_dict() for node in self.skills],
            "activities": [activity.to_dict() for activity in self.activities],
            "readiness_score": self.readiness_score,
            "last_updated": _isoformat(self.last_updated),
        }

    @classmethod
    def from_dict(cls, raw: dict) -> "CareerGraphData":
        return cls(
            user_id=str(raw.get("user_id") or ""),
            current_role=raw.get("current_role") or None,
            target_role=raw.get("target_role") or None,
            skills=[SkillNode.from_dict(item) for item in (raw.get("skills") or []) if isinstance(item, dict)],
            activities=[CareerActivity.from_dict(item) for item in (raw.get("activities") or []) if isinstance(item, dict)],
            readiness_score=float(raw.get("readiness_score") or 0.0),
            last_updated=parse_timestamp(raw.get("last_updated")) or datetime.now(timezone.utc),
        )


@dataclass
class HeatmapDay:
    date: str
    count: int
    intensity: int
    activities: list[CareerActivity] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "date": self.date,
            "count": self.count,
            "intensity": self.intensity,
            "activities": [activity.to_dict() for activity in self.activities],
        }


@dataclass
class HeatmapStats:
    current_streak: int
    longest_streak: int
    total_activities: int
    active_days: int
    avg_per_day: float

    def to_dict(self) -> dict:
        return asdict(self)
