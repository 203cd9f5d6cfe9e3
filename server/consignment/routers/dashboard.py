from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from consignment.dashboard.schemas import DashboardMetricsResponse
from consignment.dashboard.service import get_dashboard_metrics
from consignment.db import get_db

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("/metrics", response_model=DashboardMetricsResponse)
def dashboard_metrics(db: Session = Depends(get_db)):
    return get_dashboard_metrics(db)
