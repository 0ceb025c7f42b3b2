"""Centralized v1 API router: all module routers are included here."""

from fastapi import APIRouter

from inventra.modules.export.router import router as export_router

v1_router = APIRouter(prefix="/api/v1")
v1_router.include_router(export_router)
