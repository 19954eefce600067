from datetime import datetime
from decimal import Decimal
from fastapi import APIRouter, Depends, HTTPException, Query, status
from typing import Optional

from bartab.api.deps import get_session
from bartab.core.clock import as_venue_time
from bartab.schemas.response import SuccessResponse
from bartab.services import audit, reports
from bartab.services.session import BarSession

router = APIRouter()


def _range(start: datetime, end: datetime):
    start, end = as_venue_time(start), as_venue_time(end)
    if start > end:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="start must not be after end.")
    return start, end


# ----------- Audit log -----------

@router.get("/logs", response_model=SuccessResponse)
async def list_audit_logs(
    user_id: Optional[str] = None,
    action: Optional[str] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    limit: int = Query(100, ge=1, le=1000),
    session: BarSession = Depends(get_session),
):
    """Most recent entries first. Filters combine."""
    logs = list(session.state.audit_logs)
    if user_id is not None:
        logs = audit.filter_by_user(logs, user_id)
    if action is not None:
        logs = audit.filter_by_action(logs, action)
    if start is not None or end is not None:
        lower = as_venue_time(start) if start else min((e.timestamp for e in logs), default=session.now())
        upper = as_venue_time(end) if end else session.now()
        logs = audit.filter_by_date_range(logs, lower, upper)
    return SuccessResponse(data={"entries": list(reversed(logs))[:limit], "total": len(logs)})


@router.get("/users/{user_id}/summary", response_model=SuccessResponse)
async def user_activity(user_id: str, session: BarSession = Depends(get_session)):
    return SuccessResponse(data=audit.user_activity_summary(session.state.audit_logs, user_id))


@router.get("/actions/top", response_model=SuccessResponse)
async def top_actions(limit: int = Query(10, ge=1, le=100), session: BarSession = Depends(get_session)):
    return SuccessResponse(data=audit.most_frequent_actions(session.state.audit_logs, limit))


# ----------- Sales reports -----------

@router.get("/reports/sales", response_model=SuccessResponse)
async def sales_report(start: datetime, end: datetime, session: BarSession = Depends(get_session)):
    """Closed orders in the range with their recomputed totals."""
    start, end = _range(start, end)
    orders = reports.sales_by_date_range(session.state.orders, start, end)
    summaries = [reports.order_summary(session.state, o.id) for o in orders]
    revenue = sum((reports.order_total(o) for o in orders), Decimal("0"))
    return SuccessResponse(data={"orders": summaries, "count": len(orders), "revenue": revenue})


@router.get("/reports/top-products", response_model=SuccessResponse)
async def top_products_report(
    start: datetime,
    end: datetime,
    limit: int = Query(10, ge=1, le=100),
    session: BarSession = Depends(get_session),
):
    start, end = _range(start, end)
    return SuccessResponse(data=reports.top_products(session.state, start, end, limit))


@router.get("/reports/consumption-by-category", response_model=SuccessResponse)
async def consumption_report(start: datetime, end: datetime, session: BarSession = Depends(get_session)):
    start, end = _range(start, end)
    return SuccessResponse(data=reports.consumption_by_category(session.state, start, end))
