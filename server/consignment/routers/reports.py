"""Report API endpoints.

KPIs, time series, grouped breakdowns, item profitability, inventory health
and payment-method mix. Every endpoint accepts the same date range and
dimension filters.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from consignment.db import get_db
from consignment.reports.breakdown import grouped_metrics, payment_method_breakdown
from consignment.reports.inventory import inventory_health
from consignment.reports.kpis import calc_report_kpis
from consignment.reports.profitability import DEFAULT_LIMIT, MAX_LIMIT, item_profitability
from consignment.reports.schemas import (
    GroupedMetricRow,
    InventoryHealthResponse,
    ItemProfitabilityResponse,
    KpiReportResponse,
    PaymentMethodRow,
    TimeSeriesPoint,
)
from consignment.reports.timeseries import build_time_series

from .common import ReportScope, http_error, report_scope

router = APIRouter(prefix="/api/reports", tags=["reports"])


@router.get("/kpis", response_model=KpiReportResponse)
def get_kpis(scope: ReportScope = Depends(report_scope), db: Session = Depends(get_db)):
    return calc_report_kpis(db, scope.date_range, scope.filters)


@router.get("/timeseries", response_model=List[TimeSeriesPoint])
def get_timeseries(
    metric: str = Query("revenue", pattern="^(revenue|profit|itemsSold|payments|expenses)$"),
    granularity: str = Query("day", pattern="^(day|week|month)$"),
    dense: bool = Query(False),
    scope: ReportScope = Depends(report_scope),
    db: Session = Depends(get_db),
):
    try:
        return build_time_series(db, scope.date_range, scope.filters, metric, granularity, dense=dense)
    except ValueError as exc:
        raise http_error(exc)


@router.get("/grouped", response_model=List[GroupedMetricRow], response_model_exclude_none=True)
def get_grouped(
    group_by: str = Query(..., pattern="^(brand|vendor|client|category)$"),
    metrics: Optional[List[str]] = Query(None),
    scope: ReportScope = Depends(report_scope),
    db: Session = Depends(get_db),
):
    if metrics:
        metrics = [name.strip() for value in metrics for name in value.split(",") if name.strip()]
    try:
        return grouped_metrics(db, group_by, scope.date_range, scope.filters, metrics)
    except ValueError as exc:
        raise http_error(exc)


@router.get("/items", response_model=ItemProfitabilityResponse)
def get_item_profitability(
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    offset: int = Query(0, ge=0),
    scope: ReportScope = Depends(report_scope),
    db: Session = Depends(get_db),
):
    return item_profitability(db, scope.date_range, scope.filters, limit=limit, offset=offset)


@router.get("/inventory", response_model=InventoryHealthResponse)
def get_inventory_health(scope: ReportScope = Depends(report_scope), db: Session = Depends(get_db)):
    return inventory_health(db, scope.filters)


@router.get("/payment-methods", response_model=List[PaymentMethodRow])
def get_payment_methods(scope: ReportScope = Depends(report_scope), db: Session = Depends(get_db)):
    return payment_method_breakdown(db, scope.date_range, scope.filters)
