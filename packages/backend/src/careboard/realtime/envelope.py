"""Envelope — the typed, immutable unit pushed over the real-time hub.

Learn: An envelope is a tagged union over six kinds. Each kind carries its
own payload model, and pydantic picks the right model from the `type`
discriminator when decoding. Wire keys are camelCase because the dashboard
consumes the records exactly as the REST API returns them.

Wire shape (one envelope per text frame):
    {"type": "alert", "data": {...}, "timestamp": "2024-01-01T00:00:00Z",
     "patientId": "p-1"}

`patientId` is omitted when the event is not about a single patient.
Payload models allow unknown keys, and only the keys a record actually
carries are written back out, so records pass through verbatim.

Required payload fields are the ones a receiver acts on. An alert without
a `title` is rejected as malformed even when its severity is critical,
so no notification is raised for it.
"""

import json
from datetime import datetime, timezone
from typing import Annotated, Any, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from careboard.events.types import (
    AI_INSIGHT,
    ALERT,
    ALL_KINDS,
    LAB_RESULT,
    PATIENT_UPDATE,
    SYSTEM_STATUS,
    VITALS_UPDATE,
)


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with a trailing Z."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


# ═══════════════════════════════════════════════════════════
# Payloads
# ═══════════════════════════════════════════════════════════


class _Payload(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        frozen=True,
    )


class VitalsPayload(_Payload):
    id: Optional[str] = None
    patient_id: str
    heart_rate: Optional[int] = None
    systolic_bp: Optional[int] = Field(None, alias="systolicBP")
    diastolic_bp: Optional[int] = Field(None, alias="diastolicBP")
    temperature: Optional[float] = None
    respiratory_rate: Optional[int] = None
    oxygen_saturation: Optional[int] = None
    timestamp: Optional[str] = None
    recorded_by: Optional[str] = None


class LabResultPayload(_Payload):
    id: Optional[str] = None
    patient_id: Optional[str] = None
    test_name: str
    result: str
    status: str  # normal, elevated, critical, low
    unit: Optional[str] = None
    reference_range: Optional[str] = None
    ordered_by: Optional[str] = None
    completed_at: Optional[str] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[str] = None


class AlertPayload(_Payload):
    id: Optional[str] = None
    patient_id: Optional[str] = None
    type: Optional[str] = None  # vital, lab, medication, system
    severity: str  # low, medium, high, critical
    title: str
    description: Optional[str] = None
    is_active: Optional[bool] = None
    acknowledged_by: Optional[str] = None
    acknowledged_at: Optional[str] = None
    created_at: Optional[str] = None


class InsightPayload(_Payload):
    id: Optional[str] = None
    patient_id: Optional[str] = None
    type: str  # prediction, recommendation, analysis
    title: str
    content: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    priority: Optional[str] = None
    data: Optional[dict[str, Any]] = None


class PatientPayload(_Payload):
    id: str
    first_name: str
    last_name: str
    status: str  # active, discharged, transferred
    date_of_birth: Optional[str] = None
    gender: Optional[str] = None
    room: Optional[str] = None
    admission_date: Optional[str] = None
    medical_record_number: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class SystemStatusPayload(_Payload):
    status: str
    message: Optional[str] = None


# ═══════════════════════════════════════════════════════════
# Envelopes
# ═══════════════════════════════════════════════════════════


class BaseEnvelope(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    timestamp: str
    patient_id: Optional[str] = Field(None, alias="patientId")


class VitalsUpdate(BaseEnvelope):
    type: Literal["vitals_update"] = VITALS_UPDATE
    data: VitalsPayload


class LabResultEvent(BaseEnvelope):
    type: Literal["lab_result"] = LAB_RESULT
    data: LabResultPayload


class AlertEvent(BaseEnvelope):
    type: Literal["alert"] = ALERT
    data: AlertPayload


class InsightEvent(BaseEnvelope):
    type: Literal["ai_insight"] = AI_INSIGHT
    data: InsightPayload


class PatientUpdate(BaseEnvelope):
    type: Literal["patient_update"] = PATIENT_UPDATE
    data: PatientPayload


class SystemStatus(BaseEnvelope):
    type: Literal["system_status"] = SYSTEM_STATUS
    data: SystemStatusPayload


Envelope = Annotated[
    Union[
        VitalsUpdate,
        LabResultEvent,
        AlertEvent,
        InsightEvent,
        PatientUpdate,
        SystemStatus,
    ],
    Field(discriminator="type"),
]

ENVELOPE_TYPES: dict[str, type[BaseEnvelope]] = {
    VITALS_UPDATE: VitalsUpdate,
    LAB_RESULT: LabResultEvent,
    ALERT: AlertEvent,
    AI_INSIGHT: InsightEvent,
    PATIENT_UPDATE: PatientUpdate,
    SYSTEM_STATUS: SystemStatus,
}

_unmapped = set(ALL_KINDS) ^ set(ENVELOPE_TYPES)
if _unmapped:
    raise RuntimeError(f"Envelope kinds without a model: {sorted(_unmapped)}")

_envelope_adapter: TypeAdapter = TypeAdapter(Envelope)


# ═══════════════════════════════════════════════════════════
# Construction + codec
# ═══════════════════════════════════════════════════════════


def build_envelope(
    kind: str,
    data: Mapping[str, Any],
    patient_id: Optional[str] = None,
    timestamp: Optional[str] = None,
) -> BaseEnvelope:
    """Build a validated envelope of the given kind.

    `timestamp` defaults to now: the envelope is stamped when it is sent,
    not when the underlying record was written.
    """
    try:
        model = ENVELOPE_TYPES[kind]
    except KeyError:
        raise ValueError(f"Unknown envelope type: {kind!r}") from None
    return model.model_validate({
        "type": kind,
        "data": dict(data),
        "timestamp": timestamp or utc_timestamp(),
        "patientId": patient_id,
    })


def encode_envelope(envelope: BaseEnvelope) -> str:
    """Serialize an envelope to its JSON text frame."""
    payload = envelope.model_dump(mode="json", by_alias=True, exclude_unset=True)
    if payload.get("patientId") is None:
        payload.pop("patientId", None)
    return json.dumps(payload)


def decode_envelope(raw: str | bytes) -> BaseEnvelope:
    """Parse a text frame into the matching envelope model.

    Raises pydantic.ValidationError for malformed JSON, an unknown `type`,
    or a payload missing required fields.
    """
    return _envelope_adapter.validate_json(raw)
