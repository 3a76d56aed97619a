"""Real-time hub — connection lifecycle plus one ingress hook per domain event.

Learn: The hub is an explicitly constructed service object. create_app()
builds it with initialize_hub(app), route handlers receive it through the
get_hub dependency, and the lifespan tears it down with shutdown_hub(hub).
There is no module-level hub instance.

Ingress hooks (notify_*) run right after the store write they report.
They are not transactional with that write: if building or sending the
envelope fails, the failure is logged here and the HTTP request still
succeeds.
"""

from typing import Any, Mapping, Optional, Union

import structlog
from fastapi import FastAPI, Request, WebSocket
from pydantic import BaseModel

from careboard.config import settings
from careboard.events.types import (
    AI_INSIGHT,
    ALERT,
    LAB_RESULT,
    PATIENT_UPDATE,
    SYSTEM_STATUS,
    VITALS_UPDATE,
)
from careboard.realtime.connection import WebSocketConnection
from careboard.realtime.envelope import build_envelope
from careboard.realtime.registry import ConnectionRegistry
from careboard.realtime.router import BroadcastRouter
from careboard.realtime.websocket import hub_websocket

logger = structlog.get_logger()

Record = Union[BaseModel, Mapping[str, Any]]

CONNECTED_STATUS = {
    "status": "connected",
    "message": "Real-time connection established",
}


def _record_to_wire(record: Record) -> dict[str, Any]:
    """Camel-cased, JSON-ready copy of a record."""
    if isinstance(record, BaseModel):
        return record.model_dump(mode="json", by_alias=True)
    return dict(record)


class RealtimeHub:
    """Registry + router, exposed to the REST layer as notify_* hooks."""

    def __init__(
        self,
        registry: Optional[ConnectionRegistry] = None,
        router: Optional[BroadcastRouter] = None,
    ):
        self.registry = registry or ConnectionRegistry()
        self.router = router or BroadcastRouter(self.registry)

    # ─── Connection lifecycle ────────────────────────────

    async def serve(self, websocket: WebSocket) -> None:
        """Own one WebSocket from accept to close.

        The connection is registered before the greeting is sent and is
        unregistered on every exit path: clean close, transport error or
        task cancellation.
        """
        await websocket.accept()
        connection = WebSocketConnection(websocket)
        self.registry.register(connection)
        logger.info(
            "careboard.hub.client_connected",
            connection_id=connection.id,
            active=self.connection_count(),
        )
        try:
            await self.router.send_to(
                connection, build_envelope(SYSTEM_STATUS, CONNECTED_STATUS)
            )
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
                # Upstream frames have no protocol yet; read and drop
                logger.debug(
                    "careboard.hub.upstream_ignored",
                    connection_id=connection.id,
                    size=len(message.get("text") or message.get("bytes") or ""),
                )
        except Exception as e:
            logger.warning(
                "careboard.hub.connection_error",
                connection_id=connection.id,
                error=str(e),
            )
        finally:
            self.registry.unregister(connection)
            logger.info(
                "careboard.hub.client_disconnected",
                connection_id=connection.id,
                active=self.connection_count(),
            )

    def connection_count(self) -> int:
        return self.registry.size()

    async def shutdown(self) -> None:
        """Close every open connection. No drain period."""
        for connection in self.registry.snapshot():
            try:
                await connection.close(code=1001)
            except Exception as e:
                logger.warning(
                    "careboard.hub.close_failed",
                    connection_id=connection.id,
                    error=str(e),
                )
            self.registry.unregister(connection)

    # ─── Ingress hooks ───────────────────────────────────

    async def notify_vitals(self, record: Record) -> None:
        await self._publish(VITALS_UPDATE, record)

    async def notify_lab_result(self, record: Record) -> None:
        await self._publish(LAB_RESULT, record)

    async def notify_alert(self, record: Record) -> None:
        await self._publish(ALERT, record)

    async def notify_insight(self, record: Record) -> None:
        await self._publish(AI_INSIGHT, record)

    async def notify_patient_change(self, record: Record) -> None:
        await self._publish(PATIENT_UPDATE, record, subject_key="id")

    async def notify_system_status(self, status: Record) -> None:
        await self._publish(SYSTEM_STATUS, status, subject_key=None)

    async def _publish(
        self,
        kind: str,
        record: Record,
        subject_key: Optional[str] = "patientId",
    ) -> None:
        """Wrap a record in an envelope and broadcast it. Never raises."""
        try:
            data = _record_to_wire(record)
            patient_id = data.get(subject_key) if subject_key else None
            envelope = build_envelope(kind, data, patient_id=patient_id)
            await self.router.broadcast(envelope)
        except Exception as e:
            logger.error("careboard.hub.notify_failed", type=kind, error=str(e))


# ═══════════════════════════════════════════════════════════
# Lifecycle + dependency
# ═══════════════════════════════════════════════════════════


def initialize_hub(app: FastAPI) -> RealtimeHub:
    """Create the hub, attach it to the app, and mount its WebSocket route."""
    hub = RealtimeHub()
    app.state.hub = hub
    app.add_api_websocket_route(settings.ws_path, hub_websocket)
    logger.info("careboard.hub.initialized", path=settings.ws_path)
    return hub


async def shutdown_hub(hub: RealtimeHub) -> None:
    await hub.shutdown()
    logger.info("careboard.hub.shutdown")


def get_hub(request: Request) -> RealtimeHub:
    """FastAPI dependency: the hub attached by initialize_hub()."""
    return request.app.state.hub
