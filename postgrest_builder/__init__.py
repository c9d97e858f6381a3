"""PostgREST Python Client.

A chainable query builder that turns Python calls into PostgREST HTTP
requests.

Usage:
    from postgrest_builder import PostgrestClient

    client = PostgrestClient("http://localhost:3000")

    # Query rows
    resp = client.from_("your_table").select("*").eq("country", "Germany").execute()

    # Update rows
    client.from_("your_table").eq("username", "soedirgo").update(
        '{"organization": "supabase"}'
    ).execute()

    # Call a stored procedure
    client.rpc("add", '{"a": 1, "b": 2}').execute()

    # Use another schema
    client.schema("personal").from_("users").select("username").execute()
"""

from .builder import AsyncRequestBuilder, RequestBuilder
from .client import AsyncPostgrestClient, PostgrestClient
from .config import ClientConfig
from .exceptions import ConfigError, ConnectionError, InvalidStateError, PostgrestError
from .operators import Operator, encode
from .types import CountMethod, Method

__version__ = "0.1.0"
__all__ = [
    "PostgrestClient",
    "AsyncPostgrestClient",
    "RequestBuilder",
    "AsyncRequestBuilder",
    "ClientConfig",
    "PostgrestError",
    "InvalidStateError",
    "ConfigError",
    "ConnectionError",
    "Operator",
    "encode",
    "CountMethod",
    "Method",
]
