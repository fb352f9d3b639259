"""
Reports API Endpoints
Sales, inventory, customer and financial reports as JSON, CSV or XLSX

Author: SmartStore
Date: 2025-11-07
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

from smartstore.core.auth import TokenUser, get_organization_scope, require_permission
from smartstore.core.database import get_db
from smartstore.core.rbac import Permission, has_permission
from smartstore.domain.finance import ReportFormat, ReportRequest
from smartstore.services.report_service import ReportService

router = APIRouter()


@router.post("/generate")
async def generate_report(
    request: ReportRequest,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.REPORTS_VIEW)),
    db: Session = Depends(get_db),
):
    """
    Generate a report

    - report_type: sales, inventory, customers or financial
    - start_date / end_date: defaults to the last 30 days
    - format: json (inline), csv or xlsx (file download, needs reports.export)
    """
    if request.format != ReportFormat.JSON and not has_permission(user.role, Permission.REPORTS_EXPORT, user.role_tag):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Access denied. Required permission: {Permission.REPORTS_EXPORT.value}",
        )

    service = ReportService(db, get_organization_scope(user, organization_id))
    report = service.generate(request.report_type, request.start_date, request.end_date)

    if request.format == ReportFormat.JSON:
        return {"status": "success", "data": report}

    content, media_type, filename = service.export(report, request.format)
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
