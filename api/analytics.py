"""
Analytics API Endpoints

Read-only aggregates for the admin dashboard.
"""
from fastapi import APIRouter, Depends

from database import get_repository
from models import EntityKind
from schemas import DashboardStats, FeedbackAnalyticsResponse
from core.repository import Repository
from services.analytics_service import aggregate_candidate_feedback, dashboard_stats

router = APIRouter(prefix="/api", tags=["analytics"])


@router.get("/analytics/candidate-feedback", response_model=FeedbackAnalyticsResponse)
def candidate_feedback_analytics(repo: Repository = Depends(get_repository)):
    """
    Rating distribution per category (overall, process, interviewer,
    environment) and the weighted average score of each.
    """
    return aggregate_candidate_feedback(repo.list(EntityKind.CANDIDATE_FEEDBACK))


@router.get("/stats", response_model=DashboardStats)
def get_dashboard_stats(repo: Repository = Depends(get_repository)):
    return dashboard_stats(repo.list(EntityKind.CANDIDATE), repo.list(EntityKind.PANEL))
