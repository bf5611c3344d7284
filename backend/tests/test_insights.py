from datetime import datetime, timezone

from app.careergraph.insights import build_insights, emerging_skills, stale_skills, suggest_next_steps, top_skills
from app.careergraph.models import CareerGraphData, SkillCategory, SkillNode


def _node(node_id: str, weight: float, frequency: int = 0, recency: int = 365) -> SkillNode:
    return SkillNode(
        id=node_id,
        name=node_id.title(),
        category=SkillCategory.TECHNICAL,
        weight=weight,
        frequency=frequency,
        recency=recency,
    )


def test_top_skills_are_ranked_by_weight():
    skills = [_node(f"s{i}", weight=i * 10) for i in range(7)]
    assert [s.id for s in top_skills(skills)] == ["s6", "s5", "s4", "s3", "s2"]


def test_emerging_and_stale_skills():
    skills = [
        _node("busy", 70, frequency=5, recency=2),
        _node("fresh-but-rare", 50, frequency=1, recency=1),
        _node("old", 45, frequency=4, recency=90),
    ]
    assert [s.id for s in emerging_skills(skills)] == ["busy"]
    assert [s.id for s in stale_skills(skills)] == ["old"]


def test_suggestions_cover_weak_and_stale_skills():
    skills = [_node("docker", 20, recency=365), _node("sql", 35, recency=10), _node("go", 30, recency=10)]
    suggestions = suggest_next_steps(skills)

    assert [(s.type, s.title) for s in suggestions] == [
        ("course", "Master Docker"),
        ("course", "Master Sql"),
        ("project", "Practice Docker"),
    ]


def test_build_insights_for_empty_graph():
    graph = CareerGraphData(user_id="user-1", skills=[], activities=[], readiness_score=0.0, last_updated=datetime.now(timezone.utc))
    payload = build_insights(graph).to_dict()

    assert payload["total_skills"] == 0
    assert payload["suggestions"] == []
    assert payload["readiness_message"].startswith("Just getting started")
