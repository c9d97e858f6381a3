"""Chainable request builder for PostgREST."""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable, Sequence
from urllib.parse import urlencode

import httpx

from .config import ClientConfig
from .exceptions import ConnectionError, InvalidStateError
from .operators import Operator, encode
from .types import CSV_MEDIA_TYPE, JSON_MEDIA_TYPE, SINGLE_OBJECT_MEDIA_TYPE, CountMethod, Method

logger = logging.getLogger(__name__)

RETURN_REPRESENTATION = "return=representation"
MERGE_DUPLICATES = "resolution=merge-duplicates"


def _serialize_body(body: Any) -> str:
    if body is None:
        return ""
    if isinstance(body, str):
        return body
    return json.dumps(body)


def _merge_prefer(explicit: str | None, tokens: list[str]) -> str:
    """Combine a caller's ``Prefer`` header with the builder's tokens.

    A preference the caller set explicitly (``return=minimal``) wins over
    the builder's token for the same preference.
    """
    merged = [t.strip() for t in (explicit or "").split(",") if t.strip()]
    names = {t.split("=", 1)[0] for t in merged}
    for token in tokens:
        if token.split("=", 1)[0] not in names:
            merged.append(token)
    return ",".join(merged)


class RequestBuilder:
    """Accumulates one PostgREST request.

    Every method mutates the builder and returns it, so calls can be
    chained. The builder is single-use: once ``build()`` or ``execute()``
    has run, any further call raises ``InvalidStateError``.

    Args:
        config: Snapshot of the client configuration.
        path: Resource path relative to the base URL (``/table`` or ``/rpc/name``).
        session: HTTP client used by ``execute()``.

    Example:
        >>> builder = RequestBuilder(ClientConfig("http://localhost:3000"), "/users")
        >>> request = builder.select("id,name").eq("status", "active").build()
        >>> request.method
        'GET'
    """

    def __init__(
        self,
        config: ClientConfig,
        path: str,
        session: httpx.Client | httpx.AsyncClient | None = None,
    ):
        self.config = config
        self.path = "/" + path.lstrip("/")
        self.method = Method.GET
        self.params: list[tuple[str, str]] = []
        self.headers = httpx.Headers()
        self.body: str | None = None
        self._schema = config.schema
        self._prefer: list[str] = []
        self._verb: str | None = None
        self._consumed = False
        self._session = session

    def _check_usable(self) -> None:
        if self._consumed:
            raise InvalidStateError("Request builder has already been used; create a new one")

    def _require_read(self, operation: str) -> None:
        self._check_usable()
        if self._verb is not None:
            raise InvalidStateError(f"{operation}() cannot be used after {self._verb}()")

    def _fix_verb(self, verb: str, method: Method) -> None:
        self._check_usable()
        if self._verb is not None:
            raise InvalidStateError(f"{verb}() cannot be used after {self._verb}()")
        self._verb = verb
        self.method = method

    def _add_prefer(self, *tokens: str) -> None:
        for token in tokens:
            if token not in self._prefer:
                self._prefer.append(token)

    # Selection and modifiers

    def select(self, columns: str | Sequence[str] = "*") -> RequestBuilder:
        """Set the columns to return.

        Args:
            columns: A comma separated string or a sequence of column names.
                Names are not validated.
        """
        self._require_read("select")
        if not isinstance(columns, str):
            columns = ",".join(columns)
        self.params = [(k, v) for k, v in self.params if k != "select"]
        self.params.append(("select", columns))
        return self

    def order(
        self,
        columns: str | Sequence[str],
        *,
        descending: bool = False,
        nulls: str | None = None,
    ) -> RequestBuilder:
        """Order the result by one or more columns.

        Args:
            columns: Column name or sequence of names, all ordered the same way.
            descending: Order descending instead of ascending.
            nulls: ``"first"`` or ``"last"`` to place NULLs explicitly.

        Example:
            >>> builder.order("created_at", descending=True, nulls="last")
            # order=created_at.desc.nullslast
        """
        self._require_read("order")
        if isinstance(columns, str):
            columns = [columns]
        suffix = ".desc" if descending else ".asc"
        if nulls:
            suffix += f".nulls{nulls}"
        self.params.append(("order", ",".join(f"{column}{suffix}" for column in columns)))
        return self

    def limit(self, count: int) -> RequestBuilder:
        self._check_usable()
        self.params.append(("limit", str(count)))
        return self

    def offset(self, count: int) -> RequestBuilder:
        self._check_usable()
        self.params.append(("offset", str(count)))
        return self

    def range(self, start: int, end: int) -> RequestBuilder:
        """Paginate with the ``Range`` header; both bounds are inclusive."""
        self._check_usable()
        self.headers["Range-Unit"] = "items"
        self.headers["Range"] = f"{start}-{end}"
        return self

    def single(self) -> RequestBuilder:
        """Ask for a single object instead of an array."""
        self._check_usable()
        self.headers["Accept"] = SINGLE_OBJECT_MEDIA_TYPE
        return self

    def count(self, method: CountMethod | str = CountMethod.EXACT, *, head: bool = False) -> RequestBuilder:
        """Ask the server to count matching rows.

        Args:
            method: ``exact``, ``planned`` or ``estimated``.
            head: Send a HEAD request so only the count comes back.
        """
        if head:
            self._require_read("count")
            self.method = Method.HEAD
        else:
            self._check_usable()
        self._add_prefer(f"count={CountMethod(method).value}")
        return self

    def schema(self, name: str) -> RequestBuilder:
        """Target ``name`` instead of the client's schema for this request."""
        self._check_usable()
        self._schema = name
        return self

    def header(self, name: str, value: str) -> RequestBuilder:
        self._check_usable()
        self.headers[name] = value
        return self

    def auth(self, token: str) -> RequestBuilder:
        return self.header("Authorization", f"Bearer {token}")

    # Filters

    def filter(
        self,
        column: str,
        operator: Operator | str,
        value: Any,
        *,
        config: str | None = None,
    ) -> RequestBuilder:
        """Add ``column=<operator>.<value>``.

        All filters are combined with AND by PostgREST. The value is not
        escaped.
        """
        self._check_usable()
        self.params.append((column, encode(operator, value, config=config)))
        return self

    def not_(self, column: str, operator: Operator | str, value: Any) -> RequestBuilder:
        """Add a negated filter, ``column=not.<operator>.<value>``."""
        self._check_usable()
        self.params.append((column, encode(operator, value, negate=True)))
        return self

    def eq(self, column: str, value: Any) -> RequestBuilder:
        return self.filter(column, Operator.EQ, value)

    def neq(self, column: str, value: Any) -> RequestBuilder:
        return self.filter(column, Operator.NEQ, value)

    def gt(self, column: str, value: Any) -> RequestBuilder:
        return self.filter(column, Operator.GT, value)

    def gte(self, column: str, value: Any) -> RequestBuilder:
        return self.filter(column, Operator.GTE, value)

    def lt(self, column: str, value: Any) -> RequestBuilder:
        return self.filter(column, Operator.LT, value)

    def lte(self, column: str, value: Any) -> RequestBuilder:
        return self.filter(column, Operator.LTE, value)

    def like(self, column: str, pattern: str) -> RequestBuilder:
        """Case sensitive pattern match; wildcards are passed through."""
        return self.filter(column, Operator.LIKE, pattern)

    def ilike(self, column: str, pattern: str) -> RequestBuilder:
        """Case insensitive pattern match; wildcards are passed through."""
        return self.filter(column, Operator.ILIKE, pattern)

    def is_(self, column: str, value: Any) -> RequestBuilder:
        """Test for ``null``, ``true``, ``false`` or ``unknown``."""
        return self.filter(column, Operator.IS, value)

    def in_(self, column: str, values: Iterable[Any]) -> RequestBuilder:
        """Match any of ``values``.

        Example:
            >>> builder.in_("name", ["China", "France"])
            # name=in.(China,France)
        """
        return self.filter(column, Operator.IN, values)

    def fts(self, column: str, query: str, config: str | None = None) -> RequestBuilder:
        return self.filter(column, Operator.FTS, query, config=config)

    def plfts(self, column: str, query: str, config: str | None = None) -> RequestBuilder:
        return self.filter(column, Operator.PLFTS, query, config=config)

    def phfts(self, column: str, query: str, config: str | None = None) -> RequestBuilder:
        return self.filter(column, Operator.PHFTS, query, config=config)

    def wfts(self, column: str, query: str, config: str | None = None) -> RequestBuilder:
        return self.filter(column, Operator.WFTS, query, config=config)

    def cs(self, column: str, value: Any) -> RequestBuilder:
        """Column contains ``value`` (json, array or range)."""
        return self.filter(column, Operator.CS, value)

    def cd(self, column: str, value: Any) -> RequestBuilder:
        """Column is contained by ``value`` (json, array or range)."""
        return self.filter(column, Operator.CD, value)

    def ov(self, column: str, value: Any) -> RequestBuilder:
        return self.filter(column, Operator.OV, value)

    def sl(self, column: str, value: Any) -> RequestBuilder:
        return self.filter(column, Operator.SL, value)

    def sr(self, column: str, value: Any) -> RequestBuilder:
        return self.filter(column, Operator.SR, value)

    def nxl(self, column: str, value: Any) -> RequestBuilder:
        return self.filter(column, Operator.NXL, value)

    def nxr(self, column: str, value: Any) -> RequestBuilder:
        return self.filter(column, Operator.NXR, value)

    def adj(self, column: str, value: Any) -> RequestBuilder:
        return self.filter(column, Operator.ADJ, value)

    # Mutations

    def insert(self, body: Any = None) -> RequestBuilder:
        """Insert one or more rows.

        Args:
            body: Raw JSON string, or a dict/list serialized to JSON.
                An empty body is sent as is.
        """
        self._fix_verb("insert", Method.POST)
        self._add_prefer(RETURN_REPRESENTATION)
        self.body = _serialize_body(body)
        return self

    def insert_csv(self, body: str) -> RequestBuilder:
        """Insert rows from CSV text."""
        self.insert(body)
        self.headers["Content-Type"] = CSV_MEDIA_TYPE
        return self

    def upsert(self, body: Any = None) -> RequestBuilder:
        """Insert rows, merging those that collide on the primary key."""
        self._fix_verb("upsert", Method.POST)
        self._add_prefer(RETURN_REPRESENTATION, MERGE_DUPLICATES)
        self.body = _serialize_body(body)
        return self

    def update(self, body: Any = None) -> RequestBuilder:
        """Update the rows matched by the filters."""
        self._fix_verb("update", Method.PATCH)
        self._add_prefer(RETURN_REPRESENTATION)
        self.body = _serialize_body(body)
        return self

    def delete(self) -> RequestBuilder:
        """Delete the rows matched by the filters."""
        self._fix_verb("delete", Method.DELETE)
        self._add_prefer(RETURN_REPRESENTATION)
        return self

    def rpc(self, args: Any = None) -> RequestBuilder:
        """Call the stored procedure at this builder's path with ``args``.

        ``args`` defaults to an empty JSON object.
        """
        self._fix_verb("rpc", Method.POST)
        self.body = _serialize_body({} if args is None else args)
        return self

    # Finalization

    def build(self) -> httpx.Request:
        """Serialize the accumulated state into an ``httpx.Request``.

        The schema is sent as ``Accept-Profile`` for reads and
        ``Content-Profile`` for writes. Query parameters keep the order in
        which they were added. The builder cannot be used afterwards.

        Returns:
            The request, ready to be sent by any ``httpx`` client.

        Raises:
            InvalidStateError: If the builder was already used.
        """
        self._check_usable()
        self._consumed = True

        headers = httpx.Headers(self.config.headers)
        headers.update(self.headers)
        prefer = _merge_prefer(headers.get("Prefer"), self._prefer)
        if prefer:
            headers["Prefer"] = prefer
        if self._schema:
            profile = "Accept-Profile" if self.method.is_read else "Content-Profile"
            headers[profile] = self._schema

        content = None
        if self.body is not None:
            content = self.body.encode("utf-8")
            if "Content-Type" not in headers:
                headers["Content-Type"] = JSON_MEDIA_TYPE

        url = f"{self.config.base_url}{self.path}"
        if self.params:
            url = f"{url}?{urlencode(self.params)}"

        logger.debug("Built PostgREST request: %s %s", self.method.value, url)
        return httpx.Request(
            self.method.value,
            url,
            headers=headers,
            content=content,
            extensions={"timeout": httpx.Timeout(self.config.timeout).as_dict()},
        )

    def execute(self) -> httpx.Response:
        """Build the request and send it through the bound HTTP client.

        Returns:
            The raw ``httpx.Response``. Non-2xx statuses are not raised.

        Raises:
            InvalidStateError: If the builder was already used or has no
                HTTP client.
            ConnectionError: If the request could not be sent.
        """
        if not isinstance(self._session, httpx.Client):
            raise InvalidStateError("execute() needs a synchronous httpx.Client")
        request = self.build()
        try:
            return self._session.send(request)
        except httpx.HTTPError as e:
            logger.warning("PostgREST request failed: %s %s: %s", request.method, request.url, e)
            raise ConnectionError(f"Request failed: {e}") from e


class AsyncRequestBuilder(RequestBuilder):
    """Same interface as RequestBuilder, with a coroutine ``execute()``."""

    async def execute(self) -> httpx.Response:  # type: ignore[override]
        if not isinstance(self._session, httpx.AsyncClient):
            raise InvalidStateError("execute() needs an httpx.AsyncClient")
        request = self.build()
        try:
            return await self._session.send(request)
        except httpx.HTTPError as e:
            logger.warning("PostgREST request failed: %s %s: %s", request.method, request.url, e)
            raise ConnectionError(f"Request failed: {e}") from e
