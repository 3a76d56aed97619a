"""REST API tests — each write must reach the hub as the right envelope.

Learn: A FakeConnection registered on the app's hub stands in for a
dashboard. After each write we check both the HTTP response and the
frame the dashboard would have received.

Pattern: test_<verb>_<noun>_<scenario>
"""

import json

import pytest

from fakes import PATIENT_BODY


def _last_frame(conn) -> dict:
    return json.loads(conn.frames[-1])


# ═══════════════════════════════════════════════════════════
# Patients
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_create_patient_broadcasts(client, connect):
    conns = connect(3)
    resp = await client.post("/api/patients", json=PATIENT_BODY)
    assert resp.status_code == 201
    patient = resp.json()
    assert patient["firstName"] == "Emily"
    assert patient["status"] == "active"
    assert "id" in patient

    frames = [c.frames for c in conns]
    assert frames[0] == frames[1] == frames[2]
    frame = _last_frame(conns[0])
    assert frame["type"] == "patient_update"
    assert frame["patientId"] == patient["id"]
    assert frame["data"] == patient


@pytest.mark.asyncio
async def test_create_patient_validates(client, connect):
    (conn,) = connect(1)
    resp = await client.post("/api/patients", json={"firstName": "No", "lastName": "Dob"})
    assert resp.status_code == 422
    assert conn.frames == []


@pytest.mark.asyncio
async def test_list_and_get_patient(client, patient):
    resp = await client.get("/api/patients")
    assert [p["id"] for p in resp.json()] == [patient["id"]]

    resp = await client.get(f"/api/patients/{patient['id']}")
    assert resp.status_code == 200
    assert resp.json()["medicalRecordNumber"] == "MRN001"


@pytest.mark.asyncio
async def test_get_patient_not_found(client):
    resp = await client.get("/api/patients/nope")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_update_patient_broadcasts(client, patient, connect):
    (conn,) = connect(1)
    body = {**PATIENT_BODY, "room": "310B"}
    resp = await client.put(f"/api/patients/{patient['id']}", json=body)
    assert resp.status_code == 200
    assert resp.json()["room"] == "310B"
    assert _last_frame(conn)["data"]["room"] == "310B"


@pytest.mark.asyncio
async def test_update_missing_patient(client, connect):
    (conn,) = connect(1)
    resp = await client.put("/api/patients/nope", json=PATIENT_BODY)
    assert resp.status_code == 404
    assert conn.frames == []


@pytest.mark.asyncio
async def test_discharge_patient_broadcasts(client, patient, connect):
    (conn,) = connect(1)
    resp = await client.delete(f"/api/patients/{patient['id']}")
    assert resp.status_code == 200
    frame = _last_frame(conn)
    assert frame["type"] == "patient_update"
    assert frame["data"]["status"] == "discharged"

    # Discharged patients drop off the active list
    resp = await client.get("/api/patients")
    assert resp.json() == []


# ═══════════════════════════════════════════════════════════
# Vitals + labs
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_record_vitals_broadcasts(client, patient, connect):
    (conn,) = connect(1)
    resp = await client.post(
        f"/api/patients/{patient['id']}/vitals",
        json={"heartRate": 88, "systolicBP": 118, "oxygenSaturation": 97, "recordedBy": "RN Ito"},
    )
    assert resp.status_code == 201
    vitals = resp.json()
    assert vitals["patientId"] == patient["id"]

    frame = _last_frame(conn)
    assert frame["type"] == "vitals_update"
    assert frame["patientId"] == patient["id"]
    assert frame["data"]["systolicBP"] == 118

    resp = await client.get("/api/vitals/recent")
    assert [v["id"] for v in resp.json()] == [vitals["id"]]


@pytest.mark.asyncio
async def test_record_vitals_unknown_patient(client, connect):
    (conn,) = connect(1)
    resp = await client.post("/api/patients/ghost/vitals", json={"heartRate": 80})
    assert resp.status_code == 404
    assert conn.frames == []


@pytest.mark.asyncio
async def test_record_lab_broadcasts(client, patient, connect):
    (conn,) = connect(1)
    resp = await client.post(
        f"/api/patients/{patient['id']}/labs",
        json={"testName": "Troponin", "result": "0.8", "unit": "ng/mL", "status": "critical"},
    )
    assert resp.status_code == 201
    frame = _last_frame(conn)
    assert frame["type"] == "lab_result"
    assert frame["data"]["testName"] == "Troponin"
    assert frame["data"]["status"] == "critical"

    resp = await client.get(f"/api/patients/{patient['id']}/labs")
    assert len(resp.json()) == 1


@pytest.mark.asyncio
async def test_record_lab_rejects_bad_status(client, patient):
    resp = await client.post(
        f"/api/patients/{patient['id']}/labs",
        json={"testName": "CBC", "result": "ok", "status": "weird"},
    )
    assert resp.status_code == 422


# ═══════════════════════════════════════════════════════════
# Alerts
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_alert_lifecycle_broadcasts(client, patient, connect):
    (conn,) = connect(1)
    resp = await client.post("/api/alerts", json={
        "patientId": patient["id"],
        "type": "vital",
        "severity": "critical",
        "title": "SpO2 below 88%",
        "description": "Sustained desaturation",
    })
    assert resp.status_code == 201
    alert = resp.json()
    assert alert["isActive"] is True
    assert _last_frame(conn)["data"]["severity"] == "critical"

    resp = await client.patch(
        f"/api/alerts/{alert['id']}/acknowledge",
        json={"acknowledgedBy": "Dr. Osei"},
    )
    assert resp.status_code == 200
    acked = resp.json()
    assert acked["isActive"] is False
    assert acked["acknowledgedBy"] == "Dr. Osei"

    frame = _last_frame(conn)
    assert frame["type"] == "alert"
    assert frame["data"]["acknowledgedBy"] == "Dr. Osei"
    assert len(conn.frames) == 2

    resp = await client.get("/api/alerts")
    assert resp.json() == []


@pytest.mark.asyncio
async def test_acknowledge_requires_name(client):
    resp = await client.patch("/api/alerts/whatever/acknowledge", json={})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_acknowledge_unknown_alert(client):
    resp = await client.patch("/api/alerts/nope/acknowledge", json={"acknowledgedBy": "x"})
    assert resp.status_code == 404


# ═══════════════════════════════════════════════════════════
# AI insights + dashboard
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_analyze_patient_broadcasts_insight(client, patient, connect):
    await client.post(
        f"/api/patients/{patient['id']}/labs",
        json={"testName": "Lactate", "result": "4.2", "status": "critical"},
    )
    (conn,) = connect(1)

    resp = await client.post(f"/api/ai/analyze-patient/{patient['id']}")
    assert resp.status_code == 200
    insight = resp.json()
    assert insight["priority"] == "critical"
    assert 0 <= insight["confidence"] <= 1

    frame = _last_frame(conn)
    assert frame["type"] == "ai_insight"
    assert frame["patientId"] == patient["id"]
    assert frame["data"]["id"] == insight["id"]

    resp = await client.get(f"/api/patients/{patient['id']}/insights")
    assert [i["id"] for i in resp.json()] == [insight["id"]]


@pytest.mark.asyncio
async def test_analyze_unknown_patient(client):
    resp = await client.post("/api/ai/analyze-patient/ghost")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_dashboard_stats(client, patient):
    await client.post("/api/alerts", json={
        "patientId": patient["id"],
        "type": "lab",
        "severity": "critical",
        "title": "K+ 6.5",
        "description": "Repeat and treat",
    })
    await client.post(
        f"/api/patients/{patient['id']}/labs",
        json={"testName": "K", "result": "6.5", "status": "critical"},
    )
    resp = await client.get("/api/dashboard/stats")
    assert resp.json() == {
        "totalPatients": 1,
        "activePatients": 1,
        "criticalAlerts": 1,
        "pendingLabs": 1,
        "activeMonitoring": 1,
    }


# ═══════════════════════════════════════════════════════════
# Realtime status
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_realtime_status_counts_connections(client, connect):
    resp = await client.get("/api/realtime/status")
    assert resp.json() == {"activeConnections": 0, "status": "active"}

    connect(2)
    resp = await client.get("/api/realtime/status")
    assert resp.json()["activeConnections"] == 2


@pytest.mark.asyncio
async def test_system_status_on_demand(client, connect):
    (conn,) = connect(1)
    resp = await client.post(
        "/api/realtime/system-status",
        json={"status": "degraded", "message": "Lab interface delayed"},
    )
    assert resp.status_code == 202
    frame = _last_frame(conn)
    assert frame["type"] == "system_status"
    assert frame["data"] == {"status": "degraded", "message": "Lab interface delayed"}
    assert "patientId" not in frame


@pytest.mark.asyncio
async def test_write_succeeds_when_every_dashboard_is_gone(client, connect):
    """Broadcast failures never fail the originating request."""
    conns = connect(2, fail=True)
    resp = await client.post("/api/patients", json=PATIENT_BODY)
    assert resp.status_code == 201
    assert all(c.attempts == 1 for c in conns)
    resp = await client.get("/api/realtime/status")
    assert resp.json()["activeConnections"] == 0
