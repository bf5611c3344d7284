from typing import Any

from pydantic import BaseModel, Field

from app.careergraph.models import ActivityType


class LogActivityRequest(BaseModel):
    type: ActivityType
    metadata: dict[str, Any] = Field(default_factory=dict)
    impact: float = Field(default=1.0, gt=0)


class ActivityResponse(BaseModel):
    id: str
    user_id: str
    type: str
    timestamp: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    impact: float = 1.0


class DeclaredSkill(BaseModel):
    name: str = Field(min_length=1, max_length=120)


class ProfileUpdateRequest(BaseModel):
    skills: list[DeclaredSkill] = Field(default_factory=list)
    career_goals: str | None = None
    current_role: str | None = None


class ProfileResponse(BaseModel):
    user_id: str
    skills: list[DeclaredSkill]
    career_goals: str | None = None
    current_role: str | None = None


class SkillNodeResponse(BaseModel):
    id: str
    name: str
    category: str
    weight: float
    frequency: int
    recency: int
    connections: list[str]


class CareerGraphResponse(BaseModel):
    user_id: str
    current_role: str | None = None
    target_role: str | None = None
    skills: list[SkillNodeResponse]
    activities: list[ActivityResponse]
    readiness_score: float
    last_updated: str | None = None


class HeatmapStatsResponse(BaseModel):
    current_streak: int
    longest_streak: int
    total_activities: int
    active_days: int
    avg_per_day: float


class MonthLabel(BaseModel):
    month: str
    week_index: int


class HeatmapResponse(BaseModel):
    days: list[dict[str, Any]]
    stats: HeatmapStatsResponse
    weeks: list[list[str]]
    month_labels: list[MonthLabel]
