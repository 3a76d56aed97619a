"""Alert API routes — raise and acknowledge clinical alerts."""

from fastapi import APIRouter, Depends, HTTPException

from careboard.realtime.hub import RealtimeHub, get_hub
from careboard.schemas.clinical import AlertAcknowledge, AlertCreate, AlertRead
from careboard.services.clinical_store import ClinicalStore, RecordNotFoundError, get_store

router = APIRouter()


@router.get("/alerts", response_model=list[AlertRead])
async def list_alerts(store: ClinicalStore = Depends(get_store)):
    """Active (unacknowledged) alerts across all patients."""
    return store.list_active_alerts()


@router.post("/alerts", response_model=AlertRead, status_code=201)
async def create_alert(
    body: AlertCreate,
    store: ClinicalStore = Depends(get_store),
    hub: RealtimeHub = Depends(get_hub),
):
    try:
        alert = store.create_alert(body)
    except RecordNotFoundError:
        raise HTTPException(status_code=404, detail="Patient not found")
    await hub.notify_alert(alert)
    return alert


@router.patch("/alerts/{alert_id}/acknowledge", response_model=AlertRead)
async def acknowledge_alert(
    alert_id: str,
    body: AlertAcknowledge,
    store: ClinicalStore = Depends(get_store),
    hub: RealtimeHub = Depends(get_hub),
):
    """Acknowledge an alert. The acknowledged record is broadcast as an alert."""
    try:
        alert = store.acknowledge_alert(alert_id, body.acknowledged_by)
    except RecordNotFoundError:
        raise HTTPException(status_code=404, detail="Alert not found")
    await hub.notify_alert(alert)
    return alert
