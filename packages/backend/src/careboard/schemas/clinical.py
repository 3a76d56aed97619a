"""Pydantic schemas for patients, vitals, lab results, alerts and AI insights.

Learn: Separate "Create" schemas (input) from "Read" schemas (output).
All of them speak camelCase on the wire (firstName, heartRate, ...) because
the dashboard and the real-time envelopes share these shapes; Python code
still uses snake_case attributes thanks to populate_by_name.
"""

from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ─── Patients ───────────────────────────────────────────

class PatientCreate(CamelModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    date_of_birth: date
    gender: str = Field(..., min_length=1)
    room: Optional[str] = None
    admission_date: Optional[datetime] = None
    status: str = Field(default="active", pattern=r"^(active|discharged|transferred)$")
    medical_record_number: str = Field(..., min_length=1)


class PatientRead(CamelModel):
    id: str
    first_name: str
    last_name: str
    date_of_birth: date
    gender: str
    room: Optional[str] = None
    admission_date: Optional[datetime] = None
    status: str
    medical_record_number: str
    created_at: datetime
    updated_at: datetime


# ─── Vital signs ────────────────────────────────────────

class VitalSignsCreate(CamelModel):
    heart_rate: Optional[int] = Field(None, ge=0, le=300)
    systolic_bp: Optional[int] = Field(None, ge=0, le=300, alias="systolicBP")
    diastolic_bp: Optional[int] = Field(None, ge=0, le=300, alias="diastolicBP")
    temperature: Optional[float] = Field(None, ge=80, le=115)  # Fahrenheit
    respiratory_rate: Optional[int] = Field(None, ge=0, le=100)
    oxygen_saturation: Optional[int] = Field(None, ge=0, le=100)
    recorded_by: Optional[str] = None


class VitalSignsRead(CamelModel):
    id: str
    patient_id: str
    heart_rate: Optional[int] = None
    systolic_bp: Optional[int] = Field(None, alias="systolicBP")
    diastolic_bp: Optional[int] = Field(None, alias="diastolicBP")
    temperature: Optional[float] = None
    respiratory_rate: Optional[int] = None
    oxygen_saturation: Optional[int] = None
    timestamp: datetime
    recorded_by: Optional[str] = None


# ─── Lab results ────────────────────────────────────────

class LabResultCreate(CamelModel):
    test_name: str = Field(..., min_length=1)
    result: str = Field(..., min_length=1)
    unit: Optional[str] = None
    reference_range: Optional[str] = None
    status: str = Field(..., pattern=r"^(normal|elevated|critical|low)$")
    ordered_by: Optional[str] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None


class LabResultRead(CamelModel):
    id: str
    patient_id: str
    test_name: str
    result: str
    unit: Optional[str] = None
    reference_range: Optional[str] = None
    status: str
    ordered_by: Optional[str] = None
    completed_at: datetime
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None


# ─── Alerts ─────────────────────────────────────────────

class AlertCreate(CamelModel):
    patient_id: str = Field(..., min_length=1)
    type: str = Field(..., pattern=r"^(vital|lab|medication|system)$")
    severity: str = Field(..., pattern=r"^(low|medium|high|critical)$")
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    is_active: bool = True


class AlertAcknowledge(CamelModel):
    acknowledged_by: str = Field(..., min_length=1)


class AlertRead(CamelModel):
    id: str
    patient_id: str
    type: str
    severity: str
    title: str
    description: str
    is_active: bool
    acknowledged_by: Optional[str] = None
    acknowledged_at: Optional[datetime] = None
    created_at: datetime


# ─── AI insights ────────────────────────────────────────

class InsightRead(CamelModel):
    id: str
    patient_id: Optional[str] = None
    type: str  # prediction, recommendation, analysis
    title: str
    content: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    priority: str = "medium"  # low, medium, high, critical
    data: Optional[dict[str, Any]] = None
    created_at: datetime


# ─── Dashboard + realtime status ────────────────────────

class DashboardStats(CamelModel):
    total_patients: int
    active_patients: int
    critical_alerts: int
    pending_labs: int
    active_monitoring: int


class RealtimeStatus(CamelModel):
    active_connections: int
    status: str = "active"


class SystemStatusBroadcast(CamelModel):
    status: str = Field(..., min_length=1)
    message: Optional[str] = None
