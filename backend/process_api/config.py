"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - Every setting has a default; the service starts with an empty environment
    - http_addr is non-empty before the server starts (FatalStartupError otherwise)
    - Durations are seconds (float); negative durations are rejected
    - get_settings() is cached (lru_cache): single instance per process

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Duration env values accept Go-style strings ("500ms", "10s", "1m30s") so existing
      deployment manifests keep working; an unparsable string falls back to the default
    - Empty env values are ignored (treated as unset)
"""

import re
from functools import lru_cache

from pydantic import Field, ValidationError, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from process_api.core.errors import FatalStartupError

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")
_UNIT_SECONDS = {
    "ns": 1e-9, "us": 1e-6, "µs": 1e-6, "ms": 1e-3,
    "s": 1.0, "m": 60.0, "h": 3600.0,
}


def parse_duration(value: str) -> float:
    """Parse "1.5s", "-250ms", "1h2m" or a bare number of seconds into seconds."""
    text = value.strip()
    if not text:
        raise ValueError("empty duration")
    try:
        return float(text)
    except ValueError:
        pass
    sign = -1.0 if text[0] == "-" else 1.0
    pos, total = (1 if text[0] in "+-" else 0), 0.0
    if pos == len(text):
        raise ValueError(f"invalid duration {value!r}")
    while pos < len(text):
        match = _DURATION_PART.match(text, pos)
        if not match:
            raise ValueError(f"invalid duration {value!r}")
        total += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        pos = match.end()
    return sign * total


def split_listen_address(addr: str) -> tuple[str, int]:
    """Split ":8080", "127.0.0.1:8080" or "[::1]:8080" into (host, port)."""
    host, sep, port = addr.rpartition(":")
    if not sep:
        raise ValueError(f"listen address {addr!r} has no port")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    if not port.isdigit() or int(port) > 65535:
        raise ValueError(f"listen address {addr!r} has an invalid port")
    return host or "0.0.0.0", int(port)


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=False, env_ignore_empty=True, extra="ignore",
    )

    # HTTP server
    http_addr: str = ":8080"
    http_read_timeout: float = Field(10.0, ge=0)
    http_write_timeout: float = Field(10.0, ge=0)

    # Lifecycle
    shutdown_timeout: float = Field(15.0, ge=0)
    request_timeout: float = Field(30.0, ge=0)

    # Observability
    log_level: str = "info"
    log_format: str = "json"

    @field_validator("http_addr")
    @classmethod
    def require_listen_address(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("HTTP_ADDR must be non-empty")
        split_listen_address(v)
        return v

    @field_validator(
        "http_read_timeout", "http_write_timeout",
        "shutdown_timeout", "request_timeout",
        mode="before",
    )
    @classmethod
    def parse_go_duration(cls, v, info: ValidationInfo):
        if not isinstance(v, str):
            return v
        try:
            return parse_duration(v)
        except ValueError:
            return cls.model_fields[info.field_name].default

    @property
    def listen_host(self) -> str:
        return split_listen_address(self.http_addr)[0]

    @property
    def listen_port(self) -> int:
        return split_listen_address(self.http_addr)[1]


@lru_cache
def get_settings() -> Settings:
    return Settings()


def load_settings() -> Settings:
    """Load settings, mapping validation failures to FatalStartupError."""
    try:
        return get_settings()
    except ValidationError as e:
        raise FatalStartupError(f"invalid config: {e}") from e
