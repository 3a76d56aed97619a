"""AI insight API routes.

Learn: Analysis is synchronous and local (see services/insights.py). The
stored insight is what gets broadcast, so dashboards receive the same id
and timestamps a later GET would return.
"""

from fastapi import APIRouter, Depends, HTTPException

from careboard.realtime.hub import RealtimeHub, get_hub
from careboard.schemas.clinical import InsightRead
from careboard.services.clinical_store import ClinicalStore, get_store
from careboard.services.insights import analyze_patient

router = APIRouter()


@router.post("/ai/analyze-patient/{patient_id}", response_model=InsightRead)
async def analyze(
    patient_id: str,
    store: ClinicalStore = Depends(get_store),
    hub: RealtimeHub = Depends(get_hub),
):
    """Analyze a patient's vitals and labs, store the insight, broadcast it."""
    patient = store.get_patient(patient_id)
    if not patient:
        raise HTTPException(status_code=404, detail="Patient not found")

    draft = analyze_patient(
        patient,
        store.list_vitals(patient_id),
        store.list_labs(patient_id),
    )
    insight = store.create_insight(
        patient_id=patient.id,
        type=draft.type,
        title=draft.title,
        content=draft.content,
        confidence=draft.confidence,
        priority=draft.priority,
        data=draft.data,
    )
    await hub.notify_insight(insight)
    return insight


@router.get("/patients/{patient_id}/insights", response_model=list[InsightRead])
async def list_insights(patient_id: str, store: ClinicalStore = Depends(get_store)):
    return store.list_insights(patient_id)
