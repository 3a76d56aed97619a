"""API route aggregation.

All routers registered here get mounted in main.py under /api.

Learn: Authentication is out of scope for this service, so every router
is mounted open. Routers that write clinical records depend on both the
ClinicalStore and the RealtimeHub.
"""

from fastapi import APIRouter

from careboard.api.alerts import router as alerts_router
from careboard.api.dashboard import router as dashboard_router
from careboard.api.health import router as health_router
from careboard.api.insights import router as insights_router
from careboard.api.patients import router as patients_router
from careboard.api.realtime import router as realtime_router

api_router = APIRouter(prefix="/api")

api_router.include_router(health_router, tags=["health"])
api_router.include_router(dashboard_router, tags=["dashboard"])
api_router.include_router(patients_router, tags=["patients", "vitals", "labs"])
api_router.include_router(alerts_router, tags=["alerts"])
api_router.include_router(insights_router, tags=["ai"])
api_router.include_router(realtime_router, tags=["realtime"])
