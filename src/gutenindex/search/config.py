"""Runtime configuration for the Typesense connection."""

from __future__ import annotations

from dataclasses import dataclass
import os
from typing import Mapping


DEFAULT_TYPESENSE_HOST = "localhost"
DEFAULT_TYPESENSE_PORT = 8108
DEFAULT_TYPESENSE_PROTOCOL = "http"
DEFAULT_CONNECTION_TIMEOUT_SECONDS = 10.0


@dataclass(frozen=True, slots=True)
class TypesenseSettings:
    """Validated Typesense node and credentials."""

    api_key: str
    host: str = DEFAULT_TYPESENSE_HOST
    port: int = DEFAULT_TYPESENSE_PORT
    protocol: str = DEFAULT_TYPESENSE_PROTOCOL
    connection_timeout_seconds: float = DEFAULT_CONNECTION_TIMEOUT_SECONDS

    @property
    def base_url(self) -> str:
        return f"{self.protocol}://{self.host}:{self.port}"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "TypesenseSettings":
        source: Mapping[str, str] = os.environ if environ is None else environ

        api_key = source.get("TYPESENSE_API_KEY", "").strip()
        if not api_key:
            raise ValueError("Missing required environment variable: TYPESENSE_API_KEY")

        host = source.get("TYPESENSE_HOST", DEFAULT_TYPESENSE_HOST).strip()
        if not host:
            raise ValueError("TYPESENSE_HOST cannot be empty")

        protocol = source.get("TYPESENSE_PROTOCOL", DEFAULT_TYPESENSE_PROTOCOL).strip().lower()
        if protocol not in {"http", "https"}:
            raise ValueError("TYPESENSE_PROTOCOL must be http or https")

        port_raw = source.get("TYPESENSE_PORT", str(DEFAULT_TYPESENSE_PORT)).strip()
        try:
            port = int(port_raw)
        except ValueError as exc:
            raise ValueError(f"TYPESENSE_PORT must be an integer, got {port_raw!r}") from exc
        if not 0 < port < 65536:
            raise ValueError("TYPESENSE_PORT must be between 1 and 65535")

        timeout_raw = source.get(
            "TYPESENSE_CONNECTION_TIMEOUT_SECONDS",
            str(DEFAULT_CONNECTION_TIMEOUT_SECONDS),
        ).strip()
        try:
            timeout = float(timeout_raw)
        except ValueError as exc:
            raise ValueError(f"TYPESENSE_CONNECTION_TIMEOUT_SECONDS must be a number, got {timeout_raw!r}") from exc
        if timeout <= 0:
            raise ValueError("TYPESENSE_CONNECTION_TIMEOUT_SECONDS must be > 0")

        return cls(
            api_key=api_key,
            host=host,
            port=port,
            protocol=protocol,
            connection_timeout_seconds=timeout,
        )
