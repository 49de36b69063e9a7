from fastapi import APIRouter
from app.api.endpoints import tables, views, reports, health

api_router = APIRouter(prefix="/api")

# Combine all sub-routers into one
api_router.include_router(tables.router)
api_router.include_router(views.router)
api_router.include_router(reports.router)
api_router.include_router(health.router)
