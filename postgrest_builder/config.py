"""Client configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import Mapping

import httpx

from .exceptions import ConfigError
from .types import JSON_MEDIA_TYPE

DEFAULT_URL = "http://localhost:3000"
DEFAULT_TIMEOUT = 30.0


def _default_headers() -> httpx.Headers:
    return httpx.Headers({"Accept": JSON_MEDIA_TYPE})


@dataclass(frozen=True)
class ClientConfig:
    """Connection settings shared by every builder a client creates.

    Builders take a snapshot of the config when they are created, so
    changing the client's config afterwards never affects them. Headers
    are kept as ``httpx.Headers``, so names are matched case-insensitively.
    """

    base_url: str = DEFAULT_URL
    schema: str | None = None
    headers: httpx.Headers = field(default_factory=_default_headers)
    timeout: float = DEFAULT_TIMEOUT

    def __post_init__(self) -> None:
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))
        object.__setattr__(self, "headers", httpx.Headers(self.headers))

    def with_schema(self, schema: str | None) -> ClientConfig:
        return replace(self, schema=schema)

    def with_header(self, name: str, value: str) -> ClientConfig:
        headers = httpx.Headers(self.headers)
        headers[name] = value
        return replace(self, headers=headers)

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> ClientConfig:
        """Load settings from ``POSTGREST_*`` environment variables.

        Reads ``POSTGREST_URL`` (required), ``POSTGREST_SCHEMA``,
        ``POSTGREST_TIMEOUT`` and ``POSTGREST_TOKEN``.
        """
        env = os.environ if env is None else env

        url = env.get("POSTGREST_URL", "").strip()
        if not url:
            raise ConfigError("Environment variable POSTGREST_URL is required but not set")

        raw_timeout = env.get("POSTGREST_TIMEOUT")
        timeout = DEFAULT_TIMEOUT
        if raw_timeout:
            try:
                timeout = float(raw_timeout)
            except ValueError as exc:
                raise ConfigError(f"POSTGREST_TIMEOUT must be a number, got {raw_timeout!r}") from exc

        headers = _default_headers()
        token = env.get("POSTGREST_TOKEN")
        if token:
            headers["Authorization"] = f"Bearer {token}"

        return cls(
            base_url=url,
            schema=env.get("POSTGREST_SCHEMA") or None,
            headers=headers,
            timeout=timeout,
        )
