"""Application configuration via environment variables.

Uses pydantic-settings to load config from env vars with CAREBOARD_ prefix.

Learn: The server and the client subscriber read the same Settings object.
The two reconnect delays live here so an operator can tune them without
touching the subscriber's state machine.
"""

from pydantic import model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """All app configuration. Set via CAREBOARD_* env vars."""

    # Server
    environment: str = "development"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000

    # CORS
    cors_origins: list[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
    ]

    # Real-time hub
    ws_path: str = "/ws"
    hub_url: str = "ws://localhost:8000/ws"  # default target for `careboard listen`
    send_timeout_seconds: float = 5.0  # per-connection write budget for one broadcast

    # Subscriber reconnect policy (fixed delays, no backoff, no cap)
    reconnect_delay_seconds: float = 3.0  # after an established connection drops
    handshake_retry_delay_seconds: float = 5.0  # after a failed handshake

    # Listing endpoints
    recent_limit: int = 50

    model_config = {"env_prefix": "CAREBOARD_"}

    @model_validator(mode="after")
    def validate_timings(self):
        """Positive send timeout; a failed handshake never retries faster than a drop."""
        if self.send_timeout_seconds <= 0:
            raise ValueError("CAREBOARD_SEND_TIMEOUT_SECONDS must be > 0")
        if self.reconnect_delay_seconds < 0:
            raise ValueError("CAREBOARD_RECONNECT_DELAY_SECONDS must be >= 0")
        if self.handshake_retry_delay_seconds < self.reconnect_delay_seconds:
            raise ValueError(
                "CAREBOARD_HANDSHAKE_RETRY_DELAY_SECONDS must be >= "
                "CAREBOARD_RECONNECT_DELAY_SECONDS"
            )
        return self


# Singleton — import this everywhere
settings = Settings()
