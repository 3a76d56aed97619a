"""Connection registry — the exact set of currently open connections.

Learn: The registry is the only shared mutable state in the hub. It is
touched only from coroutines on the server's event loop, so no lock is
needed: register/unregister never await, which makes each mutation
atomic with respect to other tasks.
"""

import structlog

from careboard.realtime.connection import Connection

logger = structlog.get_logger()


class ConnectionRegistry:
    """Set of live connections, unique by connection id."""

    def __init__(self):
        self._connections: dict[str, Connection] = {}

    def register(self, connection: Connection) -> None:
        """Add a freshly accepted connection. It is a broadcast target immediately."""
        self._connections[connection.id] = connection

    def unregister(self, connection: Connection) -> None:
        """Remove a connection. Removing an absent connection is a no-op."""
        if self._connections.pop(connection.id, None) is not None:
            logger.debug("careboard.registry.unregistered", connection_id=connection.id)

    def size(self) -> int:
        return len(self._connections)

    def snapshot(self) -> tuple[Connection, ...]:
        """Point-in-time view; safe to iterate while the registry changes."""
        return tuple(self._connections.values())

    def __contains__(self, connection: Connection) -> bool:
        return connection.id in self._connections

    def __len__(self) -> int:
        return self.size()
