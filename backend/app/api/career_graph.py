from fastapi import APIRouter, HTTPException, Request

from app.auth import get_user_id
from app.careergraph.heatmap import group_into_weeks, month_labels
from app.careergraph.insights import build_insights
from app.careergraph.models import UserProfile
from app.careergraph.service import CareerGraphService
from app.careergraph.stores import build_json_stores
from app.schemas import (
    CareerGraphResponse,
    HeatmapResponse,
    LogActivityRequest,
    ProfileResponse,
    ProfileUpdateRequest,
    SkillNodeResponse,
)
from core.config import CAREER_DATA_DIR

router = APIRouter(prefix="/api/career")

career_graph_service = CareerGraphService(*build_json_stores(CAREER_DATA_DIR))


def get_service() -> CareerGraphService:
    return career_graph_service


@router.post("/activities", status_code=201)
def log_activity(req: LogActivityRequest, request: Request):
    user_id = get_user_id(request)
    try:
        activity = get_service().log_activity(
            user_id,
            req.type,
            metadata=req.metadata,
            impact=req.impact,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return activity.to_dict()


@router.get("/activities")
def list_activities(request: Request, limit: int = 50):
    user_id = get_user_id(request)
    capped = max(1, min(int(limit or 50), 365))
    rows = get_service().fetch_activities(user_id)[:capped]
    return {"items": [activity.to_dict() for activity in rows]}


@router.get("/graph", response_model=CareerGraphResponse)
def get_career_graph(request: Request):
    user_id = get_user_id(request)
    graph = get_service().fetch_career_graph(user_id)
    if graph is None:
        raise HTTPException(status_code=503, detail="Career graph unavailable")
    return graph.to_dict()


@router.post("/graph/refresh", response_model=CareerGraphResponse)
def refresh_career_graph(request: Request):
    user_id = get_user_id(request)
    graph = get_service().update_career_graph(user_id)
    if graph is None:
        raise HTTPException(status_code=503, detail="Career graph rebuild failed")
    return graph.to_dict()


@router.get("/skills", response_model=list[SkillNodeResponse])
def get_skill_graph(request: Request):
    user_id = get_user_id(request)
    return [node.to_dict() for node in get_service().build_skill_graph(user_id)]


@router.get("/heatmap", response_model=HeatmapResponse)
def get_heatmap(request: Request):
    user_id = get_user_id(request)
    service = get_service()
    days, stats = service.compute_heatmap(service.fetch_activities(user_id))
    weeks = group_into_weeks(days)
    return {
        "days": [day.to_dict() for day in days],
        "stats": stats.to_dict(),
        "weeks": [[day.date for day in week] for week in weeks],
        "month_labels": [{"month": month, "week_index": index} for month, index in month_labels(weeks)],
    }


@router.get("/insights")
def get_insights(request: Request):
    user_id = get_user_id(request)
    graph = get_service().fetch_career_graph(user_id)
    if graph is None:
        raise HTTPException(status_code=404, detail="No career graph yet")
    return build_insights(graph).to_dict()


@router.get("/profile", response_model=ProfileResponse)
def get_profile(request: Request):
    user_id = get_user_id(request)
    return get_service().get_profile(user_id).to_dict()


@router.put("/profile", response_model=ProfileResponse)
def update_profile(req: ProfileUpdateRequest, request: Request):
    user_id = get_user_id(request)
    profile = UserProfile(
        user_id=user_id,
        skills=[{"name": item.name.strip()} for item in req.skills if item.name.strip()],
        career_goals=(req.career_goals or "").strip() or None,
        current_role=(req.current_role or "").strip() or None,
    )
    return get_service().save_profile(profile).to_dict()
