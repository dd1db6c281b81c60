from fastapi import APIRouter
from iacgen.api.routes_health import router as health_router
from iacgen.api.routes_generate import router as generate_router
from iacgen.api.routes_requests import router as requests_router

router = APIRouter()
router.include_router(health_router, tags=["health"])
router.include_router(generate_router, tags=["generate"])
router.include_router(requests_router, tags=["requests"])
