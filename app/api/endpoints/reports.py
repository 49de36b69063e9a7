from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query

from app.core import schemas
from app.core.database import get_gateway
from app.core.gateway.service import GatewayService

router = APIRouter(prefix="/reports", tags=["Reports"])

gateway_dep = Annotated[GatewayService, Depends(get_gateway)]


@router.get("/{report}")
async def run_report(
    report: str,
    gateway: gateway_dep,
    date_from: Annotated[Optional[str], Query(alias="from")] = None,
    date_to: Annotated[Optional[str], Query(alias="to")] = None,
    year: Optional[int] = None,
    month: Optional[int] = None,
    q: Optional[str] = None,
    is_confirmed: Annotated[Optional[bool], Query(alias="isConfirmed")] = None,
):
    """
    Run one of the predefined analytical reports.

    Which filters are supplied picks the report's SQL variant, e.g.
    monthly-production with year+month, year only, or neither.
    """
    filters = schemas.ReportFilters(
        date_from=date_from,
        date_to=date_to,
        year=year,
        month=month,
        q=q,
        is_confirmed=is_confirmed,
    )
    return await gateway.run_report(report, filters.as_filters())
