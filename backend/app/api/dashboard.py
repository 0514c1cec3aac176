"""Dashboard overview endpoints."""

from datetime import date

from fastapi import APIRouter, Depends, Query

from backend.app.core.security import get_current_user
from backend.app.crud.base import ReportingRepository
from backend.app.dependencies.reporting import get_repository
from backend.app.models.user import User
from backend.app.schemas.dashboard import DashboardStats
from backend.app.services.dashboard_service import DashboardService

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=DashboardStats)
def get_dashboard_stats(
    today: date | None = Query(default=None),
    repository: ReportingRepository = Depends(get_repository),
    current_user: User = Depends(get_current_user),
):
    return DashboardService(repository).get_dashboard_stats(current_user.id, today=today)
