from __future__ import annotations

from fastapi import APIRouter

from crawlwatch.api.routers import diagnostics, operations, progress, ranges

router = APIRouter(prefix="/api/v1")
router.include_router(progress.router)
router.include_router(ranges.router)
router.include_router(operations.router)
router.include_router(diagnostics.router)
