"""WebSocket endpoint — one long-lived connection per dashboard tab.

Learn: The endpoint is mounted by initialize_hub() at settings.ws_path
(default /ws). It does nothing but hand the socket to the hub attached to
the app, which owns the connection until it closes.

Frames from the server are JSON envelopes. The first frame on every
connection is a system_status greeting.
"""

from fastapi import WebSocket


async def hub_websocket(websocket: WebSocket):
    """Serve one dashboard connection through the app's RealtimeHub."""
    hub = websocket.app.state.hub
    await hub.serve(websocket)
