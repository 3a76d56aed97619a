"""Clinical store — in-memory records for patients, vitals, labs, alerts, insights.

Learn: Persistence is not what this service is about, so the store is a
plain dict-per-table holder with the query methods the routes need.
Records are pydantic Read models; updates replace the stored record with a
copy, so a record handed to the hub is never mutated afterwards.

Every write returns the freshly stored record. Route handlers pass that
record straight to the hub's notify_* hook.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import Request

from careboard.schemas.clinical import (
    AlertCreate,
    AlertRead,
    DashboardStats,
    InsightRead,
    LabResultCreate,
    LabResultRead,
    PatientCreate,
    PatientRead,
    VitalSignsCreate,
    VitalSignsRead,
)


class RecordNotFoundError(Exception):
    """Raised when a record id does not exist in the store."""
    pass


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


class ClinicalStore:
    """In-memory clinical records, one dict per record type."""

    def __init__(self):
        self.patients: dict[str, PatientRead] = {}
        self.vitals: dict[str, VitalSignsRead] = {}
        self.labs: dict[str, LabResultRead] = {}
        self.alerts: dict[str, AlertRead] = {}
        self.insights: dict[str, InsightRead] = {}

    # ─── Patients ────────────────────────────────────────

    def get_patient(self, patient_id: str) -> Optional[PatientRead]:
        return self.patients.get(patient_id)

    def require_patient(self, patient_id: str) -> PatientRead:
        patient = self.patients.get(patient_id)
        if patient is None:
            raise RecordNotFoundError(f"Patient {patient_id} not found")
        return patient

    def list_patients(self) -> list[PatientRead]:
        return list(self.patients.values())

    def list_active_patients(self) -> list[PatientRead]:
        return [p for p in self.patients.values() if p.status == "active"]

    def create_patient(self, body: PatientCreate) -> PatientRead:
        now = _now()
        patient = PatientRead(
            id=_new_id(),
            created_at=now,
            updated_at=now,
            **body.model_dump(),
        )
        self.patients[patient.id] = patient
        return patient

    def update_patient(self, patient_id: str, **changes: Any) -> PatientRead:
        """Apply field changes (snake_case names) and bump updated_at."""
        current = self.require_patient(patient_id)
        updated = current.model_copy(update={**changes, "updated_at": _now()})
        self.patients[patient_id] = updated
        return updated

    def discharge_patient(self, patient_id: str) -> PatientRead:
        """Patients are never deleted, only marked discharged."""
        return self.update_patient(patient_id, status="discharged")

    # ─── Vital signs ─────────────────────────────────────

    def list_vitals(self, patient_id: str) -> list[VitalSignsRead]:
        rows = [v for v in self.vitals.values() if v.patient_id == patient_id]
        return sorted(rows, key=lambda v: v.timestamp, reverse=True)

    def latest_vitals(self, patient_id: str) -> Optional[VitalSignsRead]:
        rows = self.list_vitals(patient_id)
        return rows[0] if rows else None

    def recent_vitals(self, limit: int = 50) -> list[VitalSignsRead]:
        rows = sorted(self.vitals.values(), key=lambda v: v.timestamp, reverse=True)
        return rows[:limit]

    def create_vitals(self, patient_id: str, body: VitalSignsCreate) -> VitalSignsRead:
        self.require_patient(patient_id)
        vitals = VitalSignsRead(
            id=_new_id(),
            patient_id=patient_id,
            timestamp=_now(),
            **body.model_dump(),
        )
        self.vitals[vitals.id] = vitals
        return vitals

    # ─── Lab results ─────────────────────────────────────

    def list_labs(self, patient_id: str) -> list[LabResultRead]:
        rows = [r for r in self.labs.values() if r.patient_id == patient_id]
        return sorted(rows, key=lambda r: r.completed_at, reverse=True)

    def recent_labs(self, limit: int = 10) -> list[LabResultRead]:
        rows = sorted(self.labs.values(), key=lambda r: r.completed_at, reverse=True)
        return rows[:limit]

    def pending_labs(self) -> list[LabResultRead]:
        """Labs nobody has reviewed yet."""
        return [r for r in self.labs.values() if r.reviewed_at is None]

    def create_lab(self, patient_id: str, body: LabResultCreate) -> LabResultRead:
        self.require_patient(patient_id)
        lab = LabResultRead(
            id=_new_id(),
            patient_id=patient_id,
            completed_at=_now(),
            **body.model_dump(),
        )
        self.labs[lab.id] = lab
        return lab

    # ─── Alerts ──────────────────────────────────────────

    def list_active_alerts(self) -> list[AlertRead]:
        return [a for a in self.alerts.values() if a.is_active]

    def list_patient_alerts(self, patient_id: str) -> list[AlertRead]:
        return [
            a for a in self.alerts.values()
            if a.patient_id == patient_id and a.is_active
        ]

    def create_alert(self, body: AlertCreate) -> AlertRead:
        self.require_patient(body.patient_id)
        alert = AlertRead(id=_new_id(), created_at=_now(), **body.model_dump())
        self.alerts[alert.id] = alert
        return alert

    def acknowledge_alert(self, alert_id: str, acknowledged_by: str) -> AlertRead:
        """Acknowledging an alert also deactivates it."""
        current = self.alerts.get(alert_id)
        if current is None:
            raise RecordNotFoundError(f"Alert {alert_id} not found")
        updated = current.model_copy(update={
            "acknowledged_by": acknowledged_by,
            "acknowledged_at": _now(),
            "is_active": False,
        })
        self.alerts[alert_id] = updated
        return updated

    # ─── AI insights ─────────────────────────────────────

    def create_insight(
        self,
        patient_id: Optional[str],
        type: str,
        title: str,
        content: str,
        confidence: float,
        priority: str = "medium",
        data: Optional[dict[str, Any]] = None,
    ) -> InsightRead:
        insight = InsightRead(
            id=_new_id(),
            patient_id=patient_id,
            type=type,
            title=title,
            content=content,
            confidence=confidence,
            priority=priority,
            data=data,
            created_at=_now(),
        )
        self.insights[insight.id] = insight
        return insight

    def list_insights(self, patient_id: Optional[str] = None) -> list[InsightRead]:
        rows = list(self.insights.values())
        if patient_id is not None:
            rows = [i for i in rows if i.patient_id == patient_id]
        return sorted(rows, key=lambda i: i.created_at, reverse=True)

    # ─── Dashboard ───────────────────────────────────────

    def dashboard_stats(self) -> DashboardStats:
        active = self.list_active_patients()
        return DashboardStats(
            total_patients=len(self.patients),
            active_patients=len(active),
            critical_alerts=sum(
                1 for a in self.list_active_alerts() if a.severity == "critical"
            ),
            pending_labs=len(self.pending_labs()),
            active_monitoring=len(active),
        )


def get_store(request: Request) -> ClinicalStore:
    """FastAPI dependency: the store attached in create_app()."""
    return request.app.state.store
