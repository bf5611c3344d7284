from app.careergraph.models import SkillCategory

# Checked in order; the first category with a substring hit wins.
CATEGORY_KEYWORDS: tuple[tuple[SkillCategory, tuple[str, ...]], ...] = (
    (
        SkillCategory.LANGUAGE,
        ("python", "java", "javascript", "typescript", "c++", "c#", "go", "rust", "ruby", "php", "kotlin", "swift"),
    ),
    (
        SkillCategory.TOOL,
        ("react", "angular", "vue", "node", "django", "flask", "spring", "docker", "kubernetes", "git", "aws", "azure"),
    ),
    (
        SkillCategory.SOFT,
        ("communication", "leadership", "teamwork", "problem solving", "critical thinking"),
    ),
    (
        SkillCategory.DOMAIN,
        ("machine learning", "data science", "web development", "mobile", "devops", "security", "blockchain"),
    ),
)


def categorize_skill(skill_name: str) -> SkillCategory:
    name = (skill_name or "").lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in name for keyword in keywords):
            return category
    return SkillCategory.TECHNICAL
