import logging
from typing import Any, Dict, List, Mapping, Optional

from app.core.gateway.coercion import coerce_value
from app.core.gateway.exceptions import RecordNotFound
from app.core.gateway.executor import QueryExecutor, Row
from app.core.gateway.identifiers import validate_identifier
from app.core.gateway.mutations import (
    build_exists,
    build_insert,
    build_update,
    strip_id,
)
from app.core.gateway.reports import select_report

logger = logging.getLogger(__name__)


class GatewayService:
    """Table, view and report operations exposed to the HTTP layer."""

    def __init__(self, executor: QueryExecutor):
        self.executor = executor

    async def list_table(self, table: str) -> List[Row]:
        validate_identifier(table)
        return await self.executor.fetch_all(f"SELECT * FROM {table} ORDER BY id")

    async def list_view(self, view: str) -> List[Row]:
        validate_identifier(view, "view")
        return await self.executor.fetch_all(f"SELECT * FROM {view}")

    async def get_row(self, table: str, row_id: int) -> Row:
        validate_identifier(table)
        return await self.executor.fetch_one(
            f"SELECT * FROM {table} WHERE id = :id",
            {"id": row_id},
            not_found_message=f"Record with id {row_id} not found",
        )

    async def filter_rows(self, table: str, column: str, value: str) -> List[Row]:
        """Rows where `column` equals the coerced `value`, ordered by id."""
        validate_identifier(table)
        validate_identifier(column, "column")
        sql = f"SELECT * FROM {table} WHERE {column} = :value ORDER BY id"
        return await self.executor.fetch_all(sql, {"value": coerce_value(value)})

    async def create_row(self, table: str, payload: Mapping[str, Any]) -> Dict[str, Any]:
        statement = build_insert(table, strip_id(payload))
        new_id = await self.executor.insert_returning(statement.sql, statement.params)
        logger.info(f"Inserted row {new_id} into {table}")
        return {"success": True, "id": new_id}

    async def update_row(
        self, table: str, row_id: int, payload: Mapping[str, Any]
    ) -> Dict[str, Any]:
        """
        Update one row by id.

        The row must exist before anything else happens; an empty payload
        (after dropping `id`) is a successful no-op and issues no UPDATE.
        """
        check = build_exists(table, row_id)
        count = await self.executor.scalar(check.sql, check.params)
        if not count:
            raise RecordNotFound(f"Record with id {row_id} not found")

        statement = build_update(table, row_id, strip_id(payload))
        if statement is None:
            return {"success": True, "rowsAffected": 0, "message": "No fields to update"}

        rows_affected = await self.executor.execute(statement.sql, statement.params)
        logger.info(f"Updated row {row_id} in {table} ({rows_affected} affected)")
        return {"success": rows_affected > 0, "rowsAffected": rows_affected}

    async def delete_row(self, table: str, row_id: int) -> Dict[str, Any]:
        validate_identifier(table)
        rows_affected = await self.executor.execute(
            f"DELETE FROM {table} WHERE id = :id", {"id": row_id}
        )
        return {"success": rows_affected > 0, "rowsAffected": rows_affected}

    async def run_report(
        self, report_name: str, filters: Optional[Mapping[str, Any]] = None
    ) -> List[Row]:
        statement = select_report(report_name, filters)
        return await self.executor.fetch_all(statement.sql, statement.params)
