"""Patient analyzer — turns recent vitals and labs into an AI-style insight.

Learn: The dashboard treats insights as opaque: a type, a title, some
content, a confidence in [0, 1] and a priority. This analyzer produces
that shape from fixed clinical thresholds, so the insight pipeline (store,
then broadcast) runs without an external model.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from careboard.schemas.clinical import LabResultRead, PatientRead, VitalSignsRead

# (field, low, high) — outside [low, high] counts as abnormal
VITAL_RANGES: tuple[tuple[str, float, float], ...] = (
    ("heart_rate", 60, 100),
    ("systolic_bp", 90, 140),
    ("diastolic_bp", 60, 90),
    ("temperature", 97.0, 100.4),
    ("respiratory_rate", 12, 20),
    ("oxygen_saturation", 95, 100),
)


@dataclass(frozen=True)
class InsightDraft:
    """An insight before it is stored."""
    type: str
    title: str
    content: str
    confidence: float
    priority: str
    data: dict[str, Any] = field(default_factory=dict)


def abnormal_vitals(vitals: Optional[VitalSignsRead]) -> list[str]:
    """Names of vital signs outside their normal range."""
    if vitals is None:
        return []
    flagged = []
    for name, low, high in VITAL_RANGES:
        value = getattr(vitals, name)
        if value is not None and not (low <= value <= high):
            flagged.append(name)
    return flagged


def analyze_patient(
    patient: PatientRead,
    vitals: list[VitalSignsRead],
    labs: list[LabResultRead],
) -> InsightDraft:
    """Summarize the latest vitals and the lab history for one patient."""
    latest = vitals[0] if vitals else None
    flagged = abnormal_vitals(latest)
    critical_labs = [lab for lab in labs if lab.status == "critical"]
    abnormal_labs = [lab for lab in labs if lab.status in ("elevated", "low")]

    if critical_labs or len(flagged) >= 3:
        priority = "critical"
    elif flagged or abnormal_labs:
        priority = "high" if len(flagged) >= 2 else "medium"
    else:
        priority = "low"

    name = f"{patient.first_name} {patient.last_name}"
    findings = []
    if flagged:
        findings.append("abnormal vitals: " + ", ".join(flagged))
    if critical_labs:
        findings.append(
            "critical labs: "
            + ", ".join(f"{lab.test_name} {lab.result}" for lab in critical_labs)
        )
    if abnormal_labs:
        findings.append(
            "out-of-range labs: " + ", ".join(lab.test_name for lab in abnormal_labs)
        )

    if findings:
        title = f"Clinical attention needed for {name}"
        content = f"{name} shows " + "; ".join(findings) + "."
        kind = "recommendation"
    else:
        title = f"{name} is stable"
        content = f"No abnormal vitals or lab results on record for {name}."
        kind = "analysis"

    # More data points → more confidence, capped below certainty
    observations = (1 if latest else 0) + len(labs)
    confidence = round(min(0.95, 0.5 + 0.05 * observations), 2)

    return InsightDraft(
        type=kind,
        title=title,
        content=content,
        confidence=confidence,
        priority=priority,
        data={
            "abnormalVitals": flagged,
            "criticalLabs": [lab.id for lab in critical_labs],
            "vitalsConsidered": len(vitals),
            "labsConsidered": len(labs),
        },
    )
