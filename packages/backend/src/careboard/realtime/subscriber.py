"""Client subscriber — one reconnecting connection to the hub, republished locally.

Learn: A single supervising task owns the channel and walks an explicit
state machine:

    DISCONNECTED → CONNECTING → CONNECTED → DISCONNECTED → CONNECTING → ...

Reconnection uses two fixed delays and never gives up:
- an established connection that drops is retried after reconnect_delay
- a handshake that fails is retried after handshake_retry_delay (longer),
  so an unreachable hub is not hammered

Every well-formed envelope is published to all LocalEventBus listeners.
Critical alerts and critical lab results additionally raise a
Notification. Malformed frames are logged and dropped; they never close
the connection. Neither does a failing state listener or notifier.
"""

import asyncio
import enum
import json
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Protocol

import structlog
import websockets
from pydantic import ValidationError
from websockets.exceptions import ConnectionClosed

from careboard.config import settings
from careboard.events.types import (
    AI_INSIGHT,
    ALERT,
    ALL_KINDS,
    LAB_RESULT,
    PATIENT_UPDATE,
    SYSTEM_STATUS,
    VITALS_UPDATE,
)
from careboard.realtime.envelope import BaseEnvelope, decode_envelope

logger = structlog.get_logger()


class ConnectionState(str, enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


# ═══════════════════════════════════════════════════════════
# Notifications
# ═══════════════════════════════════════════════════════════


@dataclass(frozen=True)
class Notification:
    title: str
    description: str
    variant: str = "default"  # default, destructive


class Notifier(Protocol):
    def notify(self, notification: Notification) -> None: ...


class LoggingNotifier:
    """Default notifier: destructive notifications log at warning."""

    def notify(self, notification: Notification) -> None:
        log = logger.warning if notification.variant == "destructive" else logger.info
        log(
            "careboard.subscriber.notification",
            title=notification.title,
            description=notification.description,
            variant=notification.variant,
        )


# ═══════════════════════════════════════════════════════════
# Local event bus
# ═══════════════════════════════════════════════════════════

Listener = Callable[[BaseEnvelope], None]


class LocalEventBus:
    """In-process fan-out: every listener sees every envelope.

    A listener that raises is logged and skipped; it never stops delivery
    to the others or the subscriber's receive loop.
    """

    def __init__(self):
        self._listeners: list[Listener] = []
        self.last_message: Optional[BaseEnvelope] = None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener. Returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, envelope: BaseEnvelope) -> None:
        self.last_message = envelope
        for listener in list(self._listeners):
            try:
                listener(envelope)
            except Exception as e:
                logger.warning(
                    "careboard.bus.listener_failed",
                    type=envelope.type,
                    error=str(e),
                )

    def __len__(self) -> int:
        return len(self._listeners)


# ═══════════════════════════════════════════════════════════
# Subscriber
# ═══════════════════════════════════════════════════════════


class Channel(Protocol):
    async def recv(self) -> str | bytes: ...

    async def send(self, message: str) -> None: ...

    async def close(self) -> None: ...


Connector = Callable[[str], Awaitable[Channel]]
Sleep = Callable[[float], Awaitable[Any]]

# Side-effect handler per envelope kind; checked for completeness at import
_SIDE_EFFECTS: dict[str, str] = {
    VITALS_UPDATE: "_no_side_effect",
    LAB_RESULT: "_on_lab_result",
    ALERT: "_on_alert",
    AI_INSIGHT: "_no_side_effect",
    PATIENT_UPDATE: "_no_side_effect",
    SYSTEM_STATUS: "_no_side_effect",
}

_unhandled = set(ALL_KINDS) ^ set(_SIDE_EFFECTS)
if _unhandled:
    raise RuntimeError(f"Envelope kinds without a subscriber handler: {sorted(_unhandled)}")


async def _websocket_connector(url: str) -> Channel:
    return await websockets.connect(url)


class RealtimeSubscriber:
    """Reconnecting consumer of the hub's envelope stream."""

    def __init__(
        self,
        url: Optional[str] = None,
        bus: Optional[LocalEventBus] = None,
        notifier: Optional[Notifier] = None,
        reconnect_delay: Optional[float] = None,
        handshake_retry_delay: Optional[float] = None,
        connector: Connector = _websocket_connector,
        sleep: Sleep = asyncio.sleep,
    ):
        self.url = url or settings.hub_url
        self.bus = bus or LocalEventBus()
        self.notifier = notifier or LoggingNotifier()
        self.reconnect_delay = (
            settings.reconnect_delay_seconds if reconnect_delay is None else reconnect_delay
        )
        self.handshake_retry_delay = (
            settings.handshake_retry_delay_seconds
            if handshake_retry_delay is None
            else handshake_retry_delay
        )
        self._connector = connector
        self._sleep = sleep

        self.state = ConnectionState.DISCONNECTED
        self.connect_attempts = 0
        self._state_listeners: list[Callable[[ConnectionState], None]] = []
        self._channel: Optional[Channel] = None
        self._task: Optional[asyncio.Task] = None

    # ─── State ───────────────────────────────────────────

    @property
    def is_connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    def add_state_listener(self, listener: Callable[[ConnectionState], None]) -> None:
        self._state_listeners.append(listener)

    def _set_state(self, state: ConnectionState) -> None:
        if state is self.state:
            return
        logger.debug("careboard.subscriber.state", previous=self.state.value, state=state.value)
        self.state = state
        for listener in list(self._state_listeners):
            try:
                listener(state)
            except Exception as e:
                logger.warning(
                    "careboard.subscriber.state_listener_failed",
                    state=state.value,
                    error=str(e),
                )

    # ─── Supervisor ──────────────────────────────────────

    def start(self) -> asyncio.Task:
        """Run the supervisor in the background. Idempotent while running."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self) -> None:
        """Cancel the supervisor and close the channel."""
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._set_state(ConnectionState.DISCONNECTED)

    async def run(self) -> None:
        """Connect, consume, reconnect — forever, until cancelled."""
        while True:
            self._set_state(ConnectionState.CONNECTING)
            self.connect_attempts += 1
            try:
                channel = await self._connector(self.url)
            except Exception as e:
                logger.warning(
                    "careboard.subscriber.handshake_failed",
                    url=self.url,
                    attempt=self.connect_attempts,
                    error=str(e),
                )
                self._set_state(ConnectionState.DISCONNECTED)
                await self._sleep(self.handshake_retry_delay)
                continue

            self._channel = channel
            self._set_state(ConnectionState.CONNECTED)
            logger.info("careboard.subscriber.connected", url=self.url)
            self._notify(Notification(
                title="Real-time Connection",
                description="Successfully connected to live data feed",
            ))
            try:
                await self._consume(channel)
            except ConnectionClosed as e:
                logger.info("careboard.subscriber.disconnected", url=self.url, reason=str(e))
            except Exception as e:
                logger.warning("careboard.subscriber.transport_error", url=self.url, error=str(e))
            finally:
                self._channel = None
                await self._close_quietly(channel)

            self._set_state(ConnectionState.DISCONNECTED)
            await self._sleep(self.reconnect_delay)

    async def _consume(self, channel: Channel) -> None:
        while True:
            raw = await channel.recv()
            self.handle_frame(raw)

    async def _close_quietly(self, channel: Channel) -> None:
        try:
            await channel.close()
        except Exception as e:
            logger.debug("careboard.subscriber.close_failed", error=str(e))

    # ─── Inbound ─────────────────────────────────────────

    def handle_frame(self, raw: str | bytes) -> Optional[BaseEnvelope]:
        """Decode one frame, republish it, and apply its side effect.

        Returns the envelope, or None when the frame was malformed and dropped.
        """
        try:
            envelope = decode_envelope(raw)
        except ValidationError as e:
            logger.warning(
                "careboard.subscriber.decode_failed",
                errors=e.error_count(),
                frame=(raw[:200] if isinstance(raw, str) else repr(raw[:200])),
            )
            return None

        self.bus.publish(envelope)
        getattr(self, _SIDE_EFFECTS[envelope.type])(envelope)
        return envelope

    def _notify(self, notification: Notification) -> None:
        """Hand a notification to the notifier. A notifier failure is logged only."""
        try:
            self.notifier.notify(notification)
        except Exception as e:
            logger.warning(
                "careboard.subscriber.notify_failed",
                title=notification.title,
                error=str(e),
            )

    def _no_side_effect(self, envelope: BaseEnvelope) -> None:
        pass

    def _on_alert(self, envelope: BaseEnvelope) -> None:
        if envelope.data.severity == "critical":
            self._notify(Notification(
                title="Critical Alert",
                description=envelope.data.title,
                variant="destructive",
            ))

    def _on_lab_result(self, envelope: BaseEnvelope) -> None:
        if envelope.data.status == "critical":
            self._notify(Notification(
                title="Critical Lab Result",
                description=f"{envelope.data.test_name}: {envelope.data.result}",
                variant="destructive",
            ))

    # ─── Outbound (reserved) ─────────────────────────────

    async def send(self, message: dict[str, Any]) -> bool:
        """Send a JSON message upstream if connected. The hub does not act on it yet."""
        channel = self._channel
        if channel is None or not self.is_connected:
            return False
        try:
            await channel.send(json.dumps(message))
        except Exception as e:
            logger.warning("careboard.subscriber.send_failed", error=str(e))
            return False
        return True
