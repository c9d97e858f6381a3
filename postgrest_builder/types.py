"""Type definitions for the PostgREST client."""

from enum import Enum


class Method(str, Enum):
    """HTTP verbs a request builder can finalize with."""

    GET = "GET"
    HEAD = "HEAD"
    POST = "POST"
    PATCH = "PATCH"
    DELETE = "DELETE"

    @property
    def is_read(self) -> bool:
        return self in (Method.GET, Method.HEAD)


class CountMethod(str, Enum):
    """Row counting strategies understood by the ``Prefer: count=`` header."""

    EXACT = "exact"
    PLANNED = "planned"
    ESTIMATED = "estimated"


JSON_MEDIA_TYPE = "application/json"
SINGLE_OBJECT_MEDIA_TYPE = "application/vnd.pgrst.object+json"
CSV_MEDIA_TYPE = "text/csv"
