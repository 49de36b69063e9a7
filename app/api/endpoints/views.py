from typing import Annotated

from fastapi import APIRouter, Depends

from app.core.database import get_gateway
from app.core.gateway.service import GatewayService

router = APIRouter(prefix="/views", tags=["Views"])

gateway_dep = Annotated[GatewayService, Depends(get_gateway)]


@router.get("/{view}")
async def list_view_rows(view: str, gateway: gateway_dep):
    """Return the rows of a view in whatever order the view defines."""
    return await gateway.list_view(view)
