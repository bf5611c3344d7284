from app.careergraph.builder import SkillGraphBuilder, build_skill_nodes, slugify_skill
from app.careergraph.heatmap import generate_heatmap, summarize_heatmap
from app.careergraph.readiness import calculate_readiness_score
from app.careergraph.service import CareerGraphService
from app.careergraph.weights import calculate_skill_weight

__all__ = [
    "CareerGraphService",
    "SkillGraphBuilder",
    "build_skill_nodes",
    "calculate_readiness_score",
    "calculate_skill_weight",
    "generate_heatmap",
    "slugify_skill",
    "summarize_heatmap",
]
