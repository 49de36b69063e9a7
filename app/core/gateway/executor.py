import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.gateway.exceptions import DatabaseError, RecordNotFound

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


class QueryExecutor:
    """
    Runs fully built SQL with named parameters on one request-scoped session.

    This is the only place that talks to the driver. It never builds SQL
    itself; the mutation builder and the report selector do that.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _run(self, sql: str, params: Optional[Dict[str, Any]], write: bool):
        logger.debug("Executing SQL: %s | params=%s", sql, params)
        try:
            result = await self.session.execute(text(sql), params or {})
            if write:
                # Buffer before commit; the cursor is gone afterwards
                rows = result.all() if result.returns_rows else None
                rowcount = result.rowcount
                await self.session.commit()
                return rows, rowcount
            return result, None
        except SQLAlchemyError as error:
            await self.session.rollback()
            logger.error(f"Database error while executing statement: {error}")
            raise DatabaseError("Database error") from error

    async def fetch_all(self, sql: str, params: Optional[Dict[str, Any]] = None) -> List[Row]:
        result, _ = await self._run(sql, params, write=False)
        return [dict(row) for row in result.mappings().all()]

    async def fetch_one(
        self,
        sql: str,
        params: Optional[Dict[str, Any]] = None,
        not_found_message: str = "Record not found",
    ) -> Row:
        result, _ = await self._run(sql, params, write=False)
        row = result.mappings().first()
        if row is None:
            raise RecordNotFound(not_found_message)
        return dict(row)

    async def scalar(self, sql: str, params: Optional[Dict[str, Any]] = None) -> Any:
        result, _ = await self._run(sql, params, write=False)
        return result.scalar()

    async def execute(self, sql: str, params: Optional[Dict[str, Any]] = None) -> int:
        """Run a write statement and return the number of affected rows."""
        _, rowcount = await self._run(sql, params, write=True)
        return rowcount

    async def insert_returning(self, sql: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Run an INSERT ... RETURNING and return the first returned value."""
        rows, _ = await self._run(sql, params, write=True)
        if not rows:
            return None
        return rows[0][0]
