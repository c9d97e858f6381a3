from urllib.parse import parse_qsl

import httpx
import pytest

from postgrest_builder import PostgrestClient

REST_URL = "http://localhost:3000"


def query_pairs(request: httpx.Request) -> list[tuple[str, str]]:
    return parse_qsl(request.url.query.decode(), keep_blank_values=True)


@pytest.fixture
def client() -> PostgrestClient:
    return PostgrestClient(REST_URL)


@pytest.fixture
def sent() -> list[httpx.Request]:
    return []


@pytest.fixture
def mock_http(sent: list[httpx.Request]) -> httpx.Client:
    def handler(request: httpx.Request) -> httpx.Response:
        sent.append(request)
        return httpx.Response(200, json=[{"id": 1}])

    return httpx.Client(transport=httpx.MockTransport(handler))
