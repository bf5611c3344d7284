from datetime import timedelta

import pytest

from app.careergraph.builder import (
    SkillGraphBuilder,
    build_skill_nodes,
    find_connections,
    find_slug_collisions,
    slugify_skill,
)
from app.careergraph.models import SkillCategory


def _by_id(nodes):
    return {node.id: node for node in nodes}


def test_slugify_skill_lowercases_and_hyphenates():
    assert slugify_skill("Machine Learning") == "machine-learning"
    assert slugify_skill("  Critical \t Thinking ") == "critical-thinking"
    assert slugify_skill("C++") == "c++"


def test_nodes_carry_weight_frequency_recency_and_category(make_activity, now):
    activities = [
        make_activity("Python", now - timedelta(days=2)),
        make_activity("python", now - timedelta(days=5)),
    ]
    nodes = _by_id(build_skill_nodes(["Python", "Leadership"], activities, now=now))

    python = nodes["python"]
    assert python.name == "Python"
    assert python.category == SkillCategory.LANGUAGE
    assert python.frequency == 2
    assert python.recency == 2
    assert python.weight == pytest.approx(4 + (30 - 2 / 10) + 3)

    leadership = nodes["leadership"]
    assert leadership.frequency == 0
    assert leadership.recency == 365
    assert leadership.weight == 20
    assert leadership.category == SkillCategory.SOFT


def test_connections_use_strict_seven_day_window(make_activity, now):
    activities = [
        make_activity("Python", now),
        make_activity("React", now - timedelta(days=3)),
        make_activity("Leadership", now - timedelta(days=10)),
    ]
    nodes = _by_id(build_skill_nodes(["Python", "React", "Leadership"], activities, now=now))

    assert nodes["python"].connections == ["react"]
    # React and Leadership are exactly seven days apart
    assert nodes["react"].connections == ["python"]
    assert nodes["leadership"].connections == []


def test_connections_are_directed_towards_undeclared_skills(make_activity, now):
    activities = [
        make_activity("Python", now),
        make_activity("Docker Compose", now - timedelta(days=1)),
        make_activity("Docker Compose", now - timedelta(days=2)),
    ]
    nodes = _by_id(build_skill_nodes(["Python"], activities, now=now))

    assert nodes["python"].connections == ["docker-compose"]
    assert "docker-compose" not in nodes


def test_activities_without_timestamp_form_no_edges(make_activity, now):
    activities = [make_activity("Python", None), make_activity("React", None), make_activity("React", now)]
    assert find_connections("Python", activities) == []


def test_same_skill_activities_do_not_self_connect(make_activity, now):
    activities = [make_activity("Python", now), make_activity("PYTHON", now - timedelta(days=1))]
    assert find_connections("Python", activities) == []


def test_slug_collisions_are_detected_and_last_declaration_wins(make_activity, now):
    names = ["Machine Learning", "machine  learning", "SQL"]
    assert find_slug_collisions(names) == {"machine-learning": ["Machine Learning", "machine  learning"]}

    nodes = build_skill_nodes(names, [], now=now)
    assert [node.id for node in nodes] == ["machine-learning", "sql"]
    assert nodes[0].name == "machine  learning"


def test_blank_names_are_ignored(now):
    nodes = build_skill_nodes(["", "   ", "Go"], [], now=now)
    assert [node.id for node in nodes] == ["go"]


def test_builder_uses_injected_clock(make_activity, now):
    builder = SkillGraphBuilder(clock=lambda: now + timedelta(days=40))
    nodes = builder.build(["Python"], [make_activity("Python", now)])
    assert nodes[0].recency == 40
