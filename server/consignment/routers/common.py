from dataclasses import dataclass
from datetime import date
from typing import List, Optional

from fastapi import HTTPException, Query

from consignment.errors import ConflictError, NotFoundError
from consignment.reports.filters import DateRange, ReportFilters, resolve_date_range


def http_error(exc: ValueError) -> HTTPException:
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, ConflictError):
        return HTTPException(
            status_code=409,
            detail={"message": str(exc), "blocking_count": exc.blocking_count},
        )
    return HTTPException(status_code=400, detail=str(exc))


@dataclass(frozen=True)
class ReportScope:
    date_range: DateRange
    filters: ReportFilters


def report_scope(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    vendor_ids: Optional[List[int]] = Query(None),
    brand_ids: Optional[List[int]] = Query(None),
    category_ids: Optional[List[int]] = Query(None),
    client_ids: Optional[List[int]] = Query(None),
) -> ReportScope:
    try:
        date_range = resolve_date_range(start_date, end_date)
    except ValueError as exc:
        raise http_error(exc)
    filters = ReportFilters.build(
        vendor_ids=vendor_ids,
        brand_ids=brand_ids,
        category_ids=category_ids,
        client_ids=client_ids,
    )
    return ReportScope(date_range=date_range, filters=filters)
