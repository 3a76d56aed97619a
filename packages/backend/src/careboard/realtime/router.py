"""Broadcast router — best-effort fan-out of one envelope to every connection.

Delivery contract:
- at-most-once: a connection that is closed or fails its write misses the
  envelope for good; there is no retry or replay
- no acknowledgment and no ordering across connections; per connection,
  frames arrive in send order
- broadcast() never raises and returns nothing; callers cannot tell how
  many recipients got the frame
- each write gets send_timeout seconds; a connection that does not drain
  in time is unregistered and closed

Clients recover anything they missed through the REST API. The hub is a
liveness optimization, not a source of truth.
"""

import asyncio
from typing import Optional

import structlog

from careboard.config import settings
from careboard.realtime.connection import Connection
from careboard.realtime.envelope import encode_envelope
from careboard.realtime.registry import ConnectionRegistry

logger = structlog.get_logger()


class BroadcastRouter:
    """Serializes envelopes once and writes them to registered connections."""

    def __init__(self, registry: ConnectionRegistry, send_timeout: Optional[float] = None):
        self.registry = registry
        self.send_timeout = (
            settings.send_timeout_seconds if send_timeout is None else send_timeout
        )

    async def broadcast(self, envelope) -> None:
        """Send the envelope to every connection in the registry (best effort)."""
        frame = encode_envelope(envelope)
        targets = self.registry.snapshot()
        if not targets:
            logger.debug("careboard.router.no_recipients", type=envelope.type)
            return

        results = await asyncio.gather(
            *(self._deliver(connection, frame) for connection in targets)
        )
        logger.debug(
            "careboard.router.broadcast",
            type=envelope.type,
            recipients=len(targets),
            delivered=sum(results),
        )

    async def send_to(self, connection: Connection, envelope) -> None:
        """Send one envelope to a single connection, same contract as broadcast()."""
        await self._deliver(connection, encode_envelope(envelope))

    async def _deliver(self, connection: Connection, frame: str) -> bool:
        if not connection.is_open:
            self.registry.unregister(connection)
            return False
        try:
            await asyncio.wait_for(connection.send_text(frame), self.send_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "careboard.router.send_timeout",
                connection_id=connection.id,
                timeout=self.send_timeout,
            )
            self.registry.unregister(connection)
            await self._close_stalled(connection)
            return False
        except Exception as e:
            logger.warning(
                "careboard.router.send_failed",
                connection_id=connection.id,
                error=str(e),
            )
            self.registry.unregister(connection)
            return False
        return True

    async def _close_stalled(self, connection: Connection) -> None:
        try:
            await asyncio.wait_for(connection.close(code=1008), self.send_timeout)
        except Exception as e:
            logger.debug(
                "careboard.router.close_failed",
                connection_id=connection.id,
                error=str(e),
            )
