# app/routers/admin_stats.py
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from app.core.auth import require_admin
from app.database import get_session
from app.repositories.stats_repo import StatsRepository
from app.schemas.stats import StatsResponse
from app.services.stats_service import StatsService

router = APIRouter(prefix="/admin/stats", tags=["Admin Stats"])

service = StatsService(StatsRepository())


@router.get("", response_model=StatsResponse, dependencies=[Depends(require_admin)])
def dashboard_stats(
    session: Session = Depends(get_session),
    year: int | None = Query(None, ge=2000, le=9999),
    month: int | None = None,
    top: int = Query(5, ge=1, le=50),
    latest: int = Query(5, ge=1, le=50),
):
    """
    Admin dashboard numbers.

    `year`/`month` pick the daily sales window and default to the current
    month. `top` and `latest` size the best-seller and recent-order lists.
    """
    stats = service.get_admin_dashboard_stats(
        session, year, month, top_n_products=top, latest_n_orders=latest
    )
    return StatsResponse(stats=stats)
