"""Health check endpoint.

Learn: Simple GET endpoint that verifies the server is running and
reports how many dashboards are attached to the real-time hub.
"""

from fastapi import APIRouter, Depends

from careboard import __version__
from careboard.realtime.hub import RealtimeHub, get_hub

router = APIRouter()


@router.get("/health")
async def health_check(hub: RealtimeHub = Depends(get_hub)):
    """Check server health."""
    return {
        "status": "healthy",
        "server": "ok",
        "version": __version__,
        "realtimeConnections": hub.connection_count(),
    }
