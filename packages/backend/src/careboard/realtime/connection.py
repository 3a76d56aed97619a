"""Connection handles owned by the registry.

Learn: The hub never talks to Starlette's WebSocket directly. It talks to
a Connection: an identity, an open flag, and a text send. That keeps the
registry and router testable with plain fakes, and keeps the transport
detail (client_state vs application_state) in one place.
"""

import uuid
from typing import Protocol, runtime_checkable

from starlette.websockets import WebSocket, WebSocketState


@runtime_checkable
class Connection(Protocol):
    """An open-or-closed bidirectional channel with a stable identity."""

    id: str

    @property
    def is_open(self) -> bool: ...

    async def send_text(self, frame: str) -> None: ...

    async def close(self, code: int = 1000) -> None: ...


class WebSocketConnection:
    """Connection backed by an accepted Starlette WebSocket."""

    def __init__(self, websocket: WebSocket):
        self.id = str(uuid.uuid4())
        self.websocket = websocket

    @property
    def is_open(self) -> bool:
        return (
            self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )

    async def send_text(self, frame: str) -> None:
        await self.websocket.send_text(frame)

    async def close(self, code: int = 1000) -> None:
        if self.is_open:
            await self.websocket.close(code=code)

    def __repr__(self) -> str:
        return f"<WebSocketConnection {self.id}>"
