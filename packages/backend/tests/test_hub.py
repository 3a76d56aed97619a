"""RealtimeHub ingress hook and lifecycle tests.

Learn: Hooks are exercised with fake connections registered straight on
the hub's registry; no sockets involved. The REST → hook wiring is
covered in test_clinical_api.py.
"""

import asyncio
import json

import pytest

from careboard.realtime.hub import RealtimeHub
from careboard.realtime.registry import ConnectionRegistry
from careboard.realtime.router import BroadcastRouter
from careboard.schemas.clinical import VitalSignsRead

from fakes import FakeConnection, StalledConnection


def _frames(conn: FakeConnection) -> list[dict]:
    return [json.loads(f) for f in conn.frames]


@pytest.mark.asyncio
async def test_notify_vitals_wraps_record(hub, connect):
    (conn,) = connect(1)
    record = VitalSignsRead(
        id="v-1",
        patient_id="p-1",
        heart_rate=72,
        systolic_bp=120,
        diastolic_bp=80,
        temperature=98.6,
        respiratory_rate=16,
        oxygen_saturation=98,
        timestamp="2024-01-01T00:00:00Z",
        recorded_by="Nurse Kim",
    )

    await hub.notify_vitals(record)

    (frame,) = _frames(conn)
    assert frame["type"] == "vitals_update"
    assert frame["patientId"] == "p-1"
    assert frame["data"]["heartRate"] == 72
    assert frame["data"]["systolicBP"] == 120
    assert frame["data"]["recordedBy"] == "Nurse Kim"
    # Envelope time is send time, not the reading's own timestamp
    assert frame["timestamp"] != frame["data"]["timestamp"]


@pytest.mark.asyncio
async def test_notify_lab_result_and_alert_kinds(hub, connect):
    (conn,) = connect(1)
    await hub.notify_lab_result({
        "patientId": "p-2", "testName": "Potassium", "result": "6.1", "status": "elevated",
    })
    await hub.notify_alert({
        "patientId": "p-2", "severity": "critical", "title": "Hyperkalemia",
    })
    kinds = [(f["type"], f["patientId"]) for f in _frames(conn)]
    assert kinds == [("lab_result", "p-2"), ("alert", "p-2")]


@pytest.mark.asyncio
async def test_notify_insight_without_patient(hub, connect):
    (conn,) = connect(1)
    await hub.notify_insight({
        "type": "prediction", "title": "Census rising", "content": "...", "confidence": 0.7,
    })
    (frame,) = _frames(conn)
    assert frame["type"] == "ai_insight"
    assert "patientId" not in frame


@pytest.mark.asyncio
async def test_notify_patient_change_uses_record_id(hub, connect):
    (conn,) = connect(1)
    await hub.notify_patient_change({
        "id": "p-3", "firstName": "Ana", "lastName": "Silva", "status": "discharged",
    })
    (frame,) = _frames(conn)
    assert frame["type"] == "patient_update"
    assert frame["patientId"] == "p-3"
    assert frame["data"] == {
        "id": "p-3", "firstName": "Ana", "lastName": "Silva", "status": "discharged",
    }


@pytest.mark.asyncio
async def test_notify_system_status(hub, connect):
    conns = connect(2)
    await hub.notify_system_status({"status": "maintenance", "message": "Back at 02:00"})
    for c in conns:
        (frame,) = _frames(c)
        assert frame["data"] == {"status": "maintenance", "message": "Back at 02:00"}


@pytest.mark.asyncio
async def test_notify_never_raises_on_bad_record(hub, connect):
    """A record that fails validation is logged, not raised to the route."""
    (conn,) = connect(1)
    await hub.notify_alert({"title": "missing severity"})
    assert conn.frames == []


@pytest.mark.asyncio
async def test_notify_never_raises_when_router_fails():
    class ExplodingRouter:
        async def broadcast(self, envelope):
            raise RuntimeError("boom")

    hub = RealtimeHub(router=ExplodingRouter())
    await hub.notify_patient_change({
        "id": "p-1", "firstName": "A", "lastName": "B", "status": "active",
    })


@pytest.mark.asyncio
async def test_notify_with_no_connections(hub):
    await hub.notify_vitals({"patientId": "p-1", "heartRate": 80})
    assert hub.connection_count() == 0


@pytest.mark.asyncio
async def test_shutdown_closes_everything(hub, connect):
    conns = connect(3)
    assert hub.connection_count() == 3
    await hub.shutdown()
    assert hub.connection_count() == 0
    assert all(c.close_codes == [1001] for c in conns)


@pytest.mark.asyncio
async def test_notify_returns_when_a_dashboard_stops_reading():
    registry = ConnectionRegistry()
    hub = RealtimeHub(registry, BroadcastRouter(registry, send_timeout=0.05))
    live, stalled = FakeConnection(), StalledConnection()
    registry.register(live)
    registry.register(stalled)

    await asyncio.wait_for(
        hub.notify_alert({"patientId": "p-1", "severity": "low", "title": "Fall risk"}),
        1.0,
    )

    assert len(live.frames) == 1
    assert hub.connection_count() == 1
    assert stalled.close_codes == [1008]
