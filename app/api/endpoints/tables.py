from typing import Annotated

from fastapi import APIRouter, Depends, status

from app.core import schemas
from app.core.database import get_gateway
from app.core.gateway.service import GatewayService

router = APIRouter(prefix="/tables", tags=["Tables"])

gateway_dep = Annotated[GatewayService, Depends(get_gateway)]


@router.get("/{table}")
async def list_rows(table: str, gateway: gateway_dep):
    """Return every row of a table ordered by id."""
    return await gateway.list_table(table)


# Must be declared before /{table}/{row_id} or "filter" is parsed as an id
@router.get("/{table}/filter")
async def filter_rows(table: str, column: str, value: str, gateway: gateway_dep):
    """Return rows whose `column` equals `value` (e.g. a foreign key lookup)."""
    return await gateway.filter_rows(table, column, value)


@router.get("/{table}/{row_id}")
async def get_row(table: str, row_id: int, gateway: gateway_dep):
    return await gateway.get_row(table, row_id)


@router.post(
    "/{table}",
    response_model=schemas.CreateResult,
    status_code=status.HTTP_201_CREATED,
)
async def create_row(table: str, row: schemas.RowPayload, gateway: gateway_dep):
    # Any "id" in the body is dropped, the database assigns it
    return await gateway.create_row(table, row)


@router.put(
    "/{table}/{row_id}",
    response_model=schemas.MutationResult,
    response_model_exclude_none=True,
)
async def update_row(
    table: str, row_id: int, row: schemas.RowPayload, gateway: gateway_dep
):
    return await gateway.update_row(table, row_id, row)


@router.delete(
    "/{table}/{row_id}",
    response_model=schemas.MutationResult,
    response_model_exclude_none=True,
)
async def delete_row(table: str, row_id: int, gateway: gateway_dep):
    return await gateway.delete_row(table, row_id)
