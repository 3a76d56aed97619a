"""Real-time hub status and on-demand system status broadcast."""

from fastapi import APIRouter, Depends

from careboard.realtime.hub import RealtimeHub, get_hub
from careboard.schemas.clinical import RealtimeStatus, SystemStatusBroadcast

router = APIRouter()


@router.get("/realtime/status", response_model=RealtimeStatus)
async def realtime_status(hub: RealtimeHub = Depends(get_hub)):
    """Number of dashboards currently connected to the hub."""
    return RealtimeStatus(active_connections=hub.connection_count())


@router.post("/realtime/system-status", status_code=202)
async def broadcast_system_status(
    body: SystemStatusBroadcast,
    hub: RealtimeHub = Depends(get_hub),
):
    """Push a system_status envelope to every connected dashboard."""
    await hub.notify_system_status(body.model_dump(exclude_none=True))
    return {"broadcast": True, "activeConnections": hub.connection_count()}
