from fastapi import APIRouter

from src.api.routes.early_access import router as early_access_router
from src.api.routes.ops import router as ops_router

api_router = APIRouter()
api_router.include_router(early_access_router, prefix="/api", tags=["early-access"])
api_router.include_router(ops_router, prefix="/ops", tags=["ops"])
