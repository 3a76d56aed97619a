"""Patient, vital sign and lab result API routes.

Learn: Every write follows the same two steps:
1. Persist through the ClinicalStore
2. Hand the stored record to the hub's ingress hook

Step 2 never fails the request; the hub logs and swallows its own errors.
"""

from fastapi import APIRouter, Depends, HTTPException

from careboard.config import settings
from careboard.realtime.hub import RealtimeHub, get_hub
from careboard.schemas.clinical import (
    LabResultCreate,
    LabResultRead,
    PatientCreate,
    PatientRead,
    VitalSignsCreate,
    VitalSignsRead,
)
from careboard.services.clinical_store import ClinicalStore, RecordNotFoundError, get_store

router = APIRouter()


# ═══════════════════════════════════════════════════════════
# Patients
# ═══════════════════════════════════════════════════════════


@router.get("/patients", response_model=list[PatientRead])
async def list_patients(store: ClinicalStore = Depends(get_store)):
    """List active (admitted) patients."""
    return store.list_active_patients()


@router.get("/patients/{patient_id}", response_model=PatientRead)
async def get_patient(patient_id: str, store: ClinicalStore = Depends(get_store)):
    patient = store.get_patient(patient_id)
    if not patient:
        raise HTTPException(status_code=404, detail="Patient not found")
    return patient


@router.post("/patients", response_model=PatientRead, status_code=201)
async def create_patient(
    body: PatientCreate,
    store: ClinicalStore = Depends(get_store),
    hub: RealtimeHub = Depends(get_hub),
):
    """Admit a patient and broadcast the new record."""
    patient = store.create_patient(body)
    await hub.notify_patient_change(patient)
    return patient


@router.put("/patients/{patient_id}", response_model=PatientRead)
async def update_patient(
    patient_id: str,
    body: PatientCreate,
    store: ClinicalStore = Depends(get_store),
    hub: RealtimeHub = Depends(get_hub),
):
    """Replace a patient's demographics and status."""
    try:
        patient = store.update_patient(patient_id, **body.model_dump())
    except RecordNotFoundError:
        raise HTTPException(status_code=404, detail="Patient not found")
    await hub.notify_patient_change(patient)
    return patient


@router.delete("/patients/{patient_id}")
async def discharge_patient(
    patient_id: str,
    store: ClinicalStore = Depends(get_store),
    hub: RealtimeHub = Depends(get_hub),
):
    """Mark a patient discharged. Records are never deleted."""
    try:
        patient = store.discharge_patient(patient_id)
    except RecordNotFoundError:
        raise HTTPException(status_code=404, detail="Patient not found")
    await hub.notify_patient_change(patient)
    return {"message": "Patient marked as discharged"}


# ═══════════════════════════════════════════════════════════
# Vital signs
# ═══════════════════════════════════════════════════════════


@router.get("/patients/{patient_id}/vitals", response_model=list[VitalSignsRead])
async def list_vitals(patient_id: str, store: ClinicalStore = Depends(get_store)):
    return store.list_vitals(patient_id)


@router.get("/vitals/recent", response_model=list[VitalSignsRead])
async def recent_vitals(store: ClinicalStore = Depends(get_store)):
    return store.recent_vitals(limit=settings.recent_limit)


@router.post(
    "/patients/{patient_id}/vitals",
    response_model=VitalSignsRead,
    status_code=201,
)
async def record_vitals(
    patient_id: str,
    body: VitalSignsCreate,
    store: ClinicalStore = Depends(get_store),
    hub: RealtimeHub = Depends(get_hub),
):
    """Record a vital-signs reading and push it to every dashboard."""
    try:
        vitals = store.create_vitals(patient_id, body)
    except RecordNotFoundError:
        raise HTTPException(status_code=404, detail="Patient not found")
    await hub.notify_vitals(vitals)
    return vitals


# ═══════════════════════════════════════════════════════════
# Lab results
# ═══════════════════════════════════════════════════════════


@router.get("/patients/{patient_id}/labs", response_model=list[LabResultRead])
async def list_labs(patient_id: str, store: ClinicalStore = Depends(get_store)):
    return store.list_labs(patient_id)


@router.get("/labs/recent", response_model=list[LabResultRead])
async def recent_labs(store: ClinicalStore = Depends(get_store)):
    return store.recent_labs()


@router.post(
    "/patients/{patient_id}/labs",
    response_model=LabResultRead,
    status_code=201,
)
async def record_lab_result(
    patient_id: str,
    body: LabResultCreate,
    store: ClinicalStore = Depends(get_store),
    hub: RealtimeHub = Depends(get_hub),
):
    """Record a completed lab result and push it to every dashboard."""
    try:
        lab = store.create_lab(patient_id, body)
    except RecordNotFoundError:
        raise HTTPException(status_code=404, detail="Patient not found")
    await hub.notify_lab_result(lab)
    return lab
