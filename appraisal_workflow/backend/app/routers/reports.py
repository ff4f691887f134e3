# backend/app/routers/reports.py
from __future__ import annotations

import logging
from datetime import date, datetime, time
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from ..auth import require_admin
from ..context import AppContext, get_context
from ..domain.report_schema import FullReport
from ..schemas import ReportListItem
from ..services.report_assembler import FORBIDDEN, NOT_AVAILABLE, list_reports, load_full_report
from ..store import SchemaUnavailableError

log = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("", response_model=list[ReportListItem])
def admin_list_reports(
    q: Optional[str] = Query(default=None, description="search in address or owner name"),
    property_type: Optional[str] = None,
    review_status: Optional[str] = None,
    delivered_from: Optional[date] = None,
    delivered_to: Optional[date] = None,
    limit: int = Query(default=200, ge=1, le=1000),
    _admin=Depends(require_admin),
    ctx: AppContext = Depends(get_context),
):
    try:
        return list_reports(
            ctx.store,
            q=q,
            property_type=property_type,
            review_status=review_status,
            delivered_from=datetime.combine(delivered_from, time.min) if delivered_from else None,
            # inclusive: the whole "to" day counts
            delivered_to=datetime.combine(delivered_to, time.max) if delivered_to else None,
            limit=limit,
        )
    except SchemaUnavailableError:
        log.warning("admin report listing without view", extra={"user_id": ctx.principal.user_id})
        raise HTTPException(status_code=503, detail="report view not loaded; apply the latest migration")


@router.get("/{appraisal_id}", response_model=FullReport)
def get_report(appraisal_id: int, response: Response, ctx: AppContext = Depends(get_context)):
    result = load_full_report(ctx.store, appraisal_id=appraisal_id, principal=ctx.principal)
    if result.status == NOT_AVAILABLE:
        raise HTTPException(status_code=404, detail=result.reason)
    if result.status == FORBIDDEN:
        raise HTTPException(status_code=403, detail=result.reason)

    response.headers["X-Report-Source"] = result.source or ""
    return result.report
