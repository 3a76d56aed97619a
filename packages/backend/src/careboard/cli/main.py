"""careboard CLI — watch the live feed and query hub status from a terminal.

Usage:
    careboard listen                         # Stream envelopes from the hub
    careboard listen --url ws://host/ws      # Explicit hub URL
    careboard listen --type alert            # Only print one envelope kind
    careboard status                         # Active connection count
"""

from __future__ import annotations

import asyncio
import os
from typing import Optional

import click
import httpx

from careboard.events.types import ALL_KINDS
from careboard.realtime.envelope import BaseEnvelope, encode_envelope
from careboard.realtime.subscriber import (
    ConnectionState,
    Notification,
    RealtimeSubscriber,
)

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:8000"


def _api_url() -> str:
    return os.environ.get("CAREBOARD_API_URL", DEFAULT_API_URL).rstrip("/")


def _client() -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the careboard backend."""
    return httpx.AsyncClient(base_url=_api_url(), timeout=10.0)


# ---------------------------------------------------------------------------
# Terminal sinks
# ---------------------------------------------------------------------------

_STATE_COLORS = {
    ConnectionState.DISCONNECTED: "red",
    ConnectionState.CONNECTING: "yellow",
    ConnectionState.CONNECTED: "green",
}


class TerminalNotifier:
    """Print notifications; destructive ones in bold red."""

    def notify(self, notification: Notification) -> None:
        destructive = notification.variant == "destructive"
        click.secho(
            f"[{notification.title}] {notification.description}",
            fg="red" if destructive else "cyan",
            bold=destructive,
        )


def _print_state(state: ConnectionState) -> None:
    label = "Connecting…" if state is ConnectionState.CONNECTING else state.value
    click.secho(f"● {label}", fg=_STATE_COLORS[state], err=True)


def _envelope_printer(kind: Optional[str]):
    def _print(envelope: BaseEnvelope) -> None:
        if kind and envelope.type != kind:
            return
        click.echo(encode_envelope(envelope))

    return _print


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version="0.1.0", prog_name="careboard")
def main():
    """careboard — hospital dashboard real-time hub."""


@main.command()
@click.option("--url", "-u", help="Hub WebSocket URL (default: CAREBOARD_HUB_URL)")
@click.option(
    "--type", "-t", "kind",
    type=click.Choice(ALL_KINDS),
    help="Only print envelopes of this kind",
)
def listen(url: Optional[str], kind: Optional[str]):
    """Stream envelopes from the hub, reconnecting forever. Ctrl-C to stop."""
    subscriber = RealtimeSubscriber(url=url, notifier=TerminalNotifier())
    subscriber.add_state_listener(_print_state)
    subscriber.bus.subscribe(_envelope_printer(kind))
    click.secho(f"Listening on {subscriber.url}", bold=True, err=True)
    try:
        asyncio.run(subscriber.run())
    except KeyboardInterrupt:
        click.echo("", err=True)


@main.command()
def status():
    """Show how many dashboards are connected to the hub."""
    asyncio.run(_status_impl())


async def _status_impl():
    async with _client() as client:
        try:
            resp = await client.get("/api/realtime/status")
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise click.ClickException(f"Could not reach {_api_url()}: {e}")
    data = resp.json()
    click.secho(f"Hub status: {data.get('status', '—')}", bold=True)
    click.echo(f"Active connections: {data.get('activeConnections', 0)}")


if __name__ == "__main__":
    main()
