from __future__ import annotations

from dataclasses import asdict, dataclass, field

from app.careergraph.models import CareerGraphData, SkillNode
from app.careergraph.readiness import readiness_message


@dataclass
class Suggestion:
    type: str
    title: str
    description: str
    priority: str
    estimated_time: str
    relevance_score: int


@dataclass
class CareerInsights:
    user_id: str
    readiness_score: float
    readiness_message: str
    target_role: str | None
    total_skills: int
    top_skills: list[SkillNode]
    emerging_skills: list[SkillNode]
    stale_skills: list[SkillNode]
    recent_activities: list[dict]
    suggestions: list[Suggestion] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "readiness_score": round(self.readiness_score, 2),
            "readiness_message": self.readiness_message,
            "target_role": self.target_role,
            "total_skills": self.total_skills,
            "top_skills": [node.to_dict() for node in self.top_skills],
            "emerging_skills": [node.to_dict() for node in self.emerging_skills],
            "stale_skills": [node.to_dict() for node in self.stale_skills],
            "recent_activities": list(self.recent_activities),
            "suggestions": [asdict(item) for item in self.suggestions],
        }


def top_skills(skills: list[SkillNode], limit: int = 5) -> list[SkillNode]:
    return sorted(skills, key=lambda s: s.weight, reverse=True)[:limit]


def emerging_skills(skills: list[SkillNode], limit: int = 3) -> list[SkillNode]:
    candidates = [s for s in skills if s.frequency >= 3 and s.recency < 14]
    return sorted(candidates, key=lambda s: s.frequency, reverse=True)[:limit]


def stale_skills(skills: list[SkillNode], limit: int = 3) -> list[SkillNode]:
    candidates = [s for s in skills if s.recency > 60]
    return sorted(candidates, key=lambda s: s.weight, reverse=True)[:limit]


def suggest_next_steps(skills: list[SkillNode]) -> list[Suggestion]:
    suggestions: list[Suggestion] = []

    for skill in [s for s in skills if s.weight < 40][:2]:
        suggestions.append(
            Suggestion(
                type="course",
                title=f"Master {skill.name}",
                description=f"Boost your proficiency in {skill.name} with focused practice.",
                priority="high",
                estimated_time="2-4 weeks",
                relevance_score=90,
            )
        )

    for skill in [s for s in skills if s.recency > 60][:1]:
        suggestions.append(
            Suggestion(
                type="project",
                title=f"Practice {skill.name}",
                description=f"It's been a while! Build a project using {skill.name}.",
                priority="medium",
                estimated_time="1 week",
                relevance_score=75,
            )
        )

    return suggestions


def build_insights(graph: CareerGraphData, recent_limit: int = 10) -> CareerInsights:
    skills = list(graph.skills)
    recent = [
        {
            "id": activity.id,
            "type": activity.type.value,
            "label": activity.type.label,
            "skill_name": activity.skill_name,
            "timestamp": activity.timestamp.isoformat() if activity.timestamp else None,
        }
        for activity in graph.activities[:recent_limit]
    ]
    return CareerInsights(
        user_id=graph.user_id,
        readiness_score=graph.readiness_score,
        readiness_message=readiness_message(graph.readiness_score),
        target_role=graph.target_role,
        total_skills=len(skills),
        top_skills=top_skills(skills),
        emerging_skills=emerging_skills(skills),
        stale_skills=stale_skills(skills),
        recent_activities=recent,
        suggestions=suggest_next_steps(skills),
    )
