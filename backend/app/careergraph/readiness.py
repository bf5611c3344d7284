from app.careergraph.models import SkillNode

RECENT_SKILL_DAYS = 30


def calculate_readiness_score(skills: list[SkillNode], has_target: bool) -> float:
    # The target role only gates the score; it never changes the weighting.
    if not has_target or not skills:
        return 0.0

    average_weight = sum(float(skill.weight) for skill in skills) / len(skills)

    categories = {skill.category for skill in skills}
    diversity_bonus = min(len(categories) * 5, 20)

    recent_count = sum(1 for skill in skills if skill.recency < RECENT_SKILL_DAYS)
    recency_bonus = min(recent_count * 2, 15)

    return min(average_weight + diversity_bonus + recency_bonus, 100.0)


def readiness_message(score: float) -> str:
    if score >= 80:
        return "Excellent! You're highly qualified for your target role."
    if score >= 60:
        return "Good progress! Focus on emerging skills to reach expert level."
    if score >= 40:
        return "Keep learning! You're building a strong foundation."
    return "Just getting started! Every expert was once a beginner."
