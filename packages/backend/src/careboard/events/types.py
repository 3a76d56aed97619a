"""Envelope kind constants.

Learn: Centralizing the kinds as constants prevents typos across the
hub, the REST layer and the subscriber. The wire value of each kind is
the string itself.
"""

# ─── Clinical records ────────────────────────────────────

VITALS_UPDATE = "vitals_update"
LAB_RESULT = "lab_result"
ALERT = "alert"
PATIENT_UPDATE = "patient_update"

# ─── Derived / operational ───────────────────────────────

AI_INSIGHT = "ai_insight"
SYSTEM_STATUS = "system_status"

ALL_KINDS = (
    VITALS_UPDATE,
    LAB_RESULT,
    ALERT,
    AI_INSIGHT,
    PATIENT_UPDATE,
    SYSTEM_STATUS,
)
