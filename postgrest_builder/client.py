"""PostgREST HTTP client."""

from __future__ import annotations

from typing import Any, Mapping, TypeVar

import httpx

from .builder import AsyncRequestBuilder, RequestBuilder
from .config import DEFAULT_TIMEOUT, DEFAULT_URL, ClientConfig

_ClientT = TypeVar("_ClientT", bound="_BaseClient")


class _BaseClient:
    """Configuration handling shared by the sync and async clients."""

    def __init__(
        self,
        base_url: str = DEFAULT_URL,
        *,
        schema: str | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        config = ClientConfig(base_url=base_url, schema=schema, timeout=timeout)
        for name, value in (headers or {}).items():
            config = config.with_header(name, value)
        self.config = config

    @property
    def base_url(self) -> str:
        return self.config.base_url

    def schema(self: _ClientT, name: str | None) -> _ClientT:
        """Use schema ``name`` for builders created from now on.

        Builders created earlier keep the schema they were created with.
        """
        self.config = self.config.with_schema(name)
        return self

    def header(self: _ClientT, name: str, value: str) -> _ClientT:
        """Send header ``name`` with every request created from now on."""
        self.config = self.config.with_header(name, value)
        return self

    def auth(self: _ClientT, token: str) -> _ClientT:
        """Send ``Authorization: Bearer <token>`` with future requests."""
        return self.header("Authorization", f"Bearer {token}")


class PostgrestClient(_BaseClient):
    """HTTP client for a PostgREST server.

    The client only creates request builders; each query gets its own
    builder, which is sent through the client's ``httpx.Client``.

    Args:
        base_url: Base URL of the PostgREST server (e.g., "http://localhost:3000").
        schema: Schema to target instead of the server's default one.
        headers: Headers sent with every request.
        timeout: Request timeout in seconds.
        http_client: An existing ``httpx.Client`` to send requests with.
            It is not closed by ``close()``.

    Example:
        >>> client = PostgrestClient("http://localhost:3000")
        >>> response = client.from_("todos").select("*").eq("done", "false").execute()
        >>> print(response.json())
    """

    def __init__(
        self,
        base_url: str = DEFAULT_URL,
        *,
        schema: str | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        http_client: httpx.Client | None = None,
    ):
        super().__init__(base_url, schema=schema, headers=headers, timeout=timeout)
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(timeout=timeout)

    @classmethod
    def from_config(cls, config: ClientConfig, **kwargs: Any) -> PostgrestClient:
        return cls(
            config.base_url,
            schema=config.schema,
            headers=config.headers,
            timeout=config.timeout,
            **kwargs,
        )

    @classmethod
    def from_env(cls, **kwargs: Any) -> PostgrestClient:
        """Create a client from ``POSTGREST_*`` environment variables."""
        return cls.from_config(ClientConfig.from_env(), **kwargs)

    def close(self) -> None:
        """Close the HTTP client."""
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> PostgrestClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def from_(self, table: str) -> RequestBuilder:
        """Start a query on a table or view.

        Args:
            table: Table or view name.

        Returns:
            A new RequestBuilder for ``/table``.

        Example:
            >>> client.from_("users").eq("username", "soedirgo").update({"status": "OFFLINE"})
        """
        return RequestBuilder(self.config, f"/{table}", self._client)

    table = from_

    def rpc(self, function: str, args: Any = None) -> RequestBuilder:
        """Call a stored procedure.

        Args:
            function: Procedure name.
            args: Arguments as a raw JSON string or a dict.

        Returns:
            A RequestBuilder for ``POST /rpc/function`` with ``args`` as body.
        """
        return RequestBuilder(self.config, f"/rpc/{function}", self._client).rpc(args)


class AsyncPostgrestClient(_BaseClient):
    """Async HTTP client for a PostgREST server.

    Same interface as PostgrestClient but builders are executed with
    ``await builder.execute()``.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_URL,
        *,
        schema: str | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        http_client: httpx.AsyncClient | None = None,
    ):
        super().__init__(base_url, schema=schema, headers=headers, timeout=timeout)
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_config(cls, config: ClientConfig, **kwargs: Any) -> AsyncPostgrestClient:
        return cls(
            config.base_url,
            schema=config.schema,
            headers=config.headers,
            timeout=config.timeout,
            **kwargs,
        )

    @classmethod
    def from_env(cls, **kwargs: Any) -> AsyncPostgrestClient:
        return cls.from_config(ClientConfig.from_env(), **kwargs)

    async def aclose(self) -> None:
        """Close the HTTP client."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> AsyncPostgrestClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    def from_(self, table: str) -> AsyncRequestBuilder:
        return AsyncRequestBuilder(self.config, f"/{table}", self._client)

    table = from_

    def rpc(self, function: str, args: Any = None) -> AsyncRequestBuilder:
        builder = AsyncRequestBuilder(self.config, f"/rpc/{function}", self._client)
        builder.rpc(args)
        return builder
