import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from app.core import schemas
from app.core.database import get_executor
from app.core.gateway.exceptions import DatabaseError
from app.core.gateway.executor import QueryExecutor

router = APIRouter(prefix="/health", tags=["Health"])

executor_dep = Annotated[QueryExecutor, Depends(get_executor)]


@router.get("", response_model=schemas.HealthResponse)
async def health_check(executor: executor_dep):
    """Database connectivity check."""
    try:
        await executor.scalar("SELECT 1")
    except DatabaseError as error:
        logging.error(f"Health check failed: {error}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database unavailable",
        )
    return {"status": "healthy", "database": "reachable"}
