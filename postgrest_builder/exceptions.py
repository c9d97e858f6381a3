"""PostgREST client exceptions."""


class PostgrestError(Exception):
    """Base exception for postgrest_builder errors."""

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.code = code


class InvalidStateError(PostgrestError):
    """Builder used in a way that cannot produce a valid request."""

    pass


class ConfigError(PostgrestError):
    """Client configuration is missing or invalid."""

    pass


class ConnectionError(PostgrestError):
    """Failed to reach the PostgREST server."""

    pass
