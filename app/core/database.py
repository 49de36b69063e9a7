from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

from app.core.config import settings
from app.core.gateway.executor import QueryExecutor
from app.core.gateway.service import GatewayService

engine = create_async_engine(settings.DATABASE_URL, echo=settings.DB_ECHO)

# Talk to the DB through async sessions without refreshes after closed conn to avoid errors in async programming
AsyncSessionLocal = async_sessionmaker(
    bind=engine, class_=AsyncSession, expire_on_commit=False
)


# One pooled connection per request, released when the request is done however it ends
async def get_db():
    async with AsyncSessionLocal() as session:
        yield session


def get_executor(db: Annotated[AsyncSession, Depends(get_db)]) -> QueryExecutor:
    return QueryExecutor(db)


def get_gateway(
    executor: Annotated[QueryExecutor, Depends(get_executor)],
) -> GatewayService:
    return GatewayService(executor)
