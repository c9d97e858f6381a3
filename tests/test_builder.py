import json

import httpx
import pytest

from conftest import REST_URL, query_pairs
from postgrest_builder import ClientConfig, InvalidStateError, PostgrestClient, RequestBuilder


def test_select_all(client: PostgrestClient) -> None:
    request = client.from_("your_table").select("*").build()

    assert request.method == "GET"
    assert request.url.path == "/your_table"
    assert query_pairs(request) == [("select", "*")]
    assert request.content == b""


def test_default_accept_header(client: PostgrestClient) -> None:
    request = client.from_("users").build()
    assert request.headers["Accept"] == "application/json"


def test_select_sequence_and_replacement(client: PostgrestClient) -> None:
    request = client.from_("users").select("id").select(["id", "name"]).build()
    assert query_pairs(request) == [("select", "id,name")]


def test_filters_keep_call_order(client: PostgrestClient) -> None:
    request = (
        client.from_("countries")
        .eq("country", "Germany")
        .gte("id", "20")
        .in_("name", ["China", "France"])
        .select("*")
        .build()
    )

    assert query_pairs(request) == [
        ("country", "eq.Germany"),
        ("id", "gte.20"),
        ("name", "in.(China,France)"),
        ("select", "*"),
    ]


def test_same_column_filtered_twice(client: PostgrestClient) -> None:
    request = client.from_("t").gt("id", 1).lt("id", 10).build()
    assert query_pairs(request) == [("id", "gt.1"), ("id", "lt.10")]


def test_every_filter_method(client: PostgrestClient) -> None:
    request = (
        client.from_("t")
        .eq("a", "1")
        .neq("b", "2")
        .gt("c", "3")
        .gte("d", "4")
        .lt("e", "5")
        .lte("f", "6")
        .like("g", "%x%")
        .ilike("h", "%y%")
        .is_("i", None)
        .fts("j", "cat", "english")
        .plfts("k", "cat")
        .phfts("l", "cat")
        .wfts("m", "cat")
        .cs("n", "{1,2}")
        .cd("o", (1, 2))
        .ov("p", (1, 2))
        .sl("q", (1, 2))
        .sr("r", (1, 2))
        .nxl("s", (1, 2))
        .nxr("u", (1, 2))
        .adj("v", (1, 2))
        .not_("w", "eq", "1")
        .filter("x", "ilike", "z*")
        .build()
    )

    assert query_pairs(request) == [
        ("a", "eq.1"),
        ("b", "neq.2"),
        ("c", "gt.3"),
        ("d", "gte.4"),
        ("e", "lt.5"),
        ("f", "lte.6"),
        ("g", "like.%x%"),
        ("h", "ilike.%y%"),
        ("i", "is.null"),
        ("j", "fts(english).cat"),
        ("k", "plfts.cat"),
        ("l", "phfts.cat"),
        ("m", "wfts.cat"),
        ("n", "cs.{1,2}"),
        ("o", "cd.(1,2)"),
        ("p", "ov.(1,2)"),
        ("q", "sl.(1,2)"),
        ("r", "sr.(1,2)"),
        ("s", "nxl.(1,2)"),
        ("u", "nxr.(1,2)"),
        ("v", "adj.(1,2)"),
        ("w", "not.eq.1"),
        ("x", "ilike.z*"),
    ]


def test_order(client: PostgrestClient) -> None:
    request = (
        client.from_("t")
        .order("id")
        .order(["created_at", "name"], descending=True, nulls="last")
        .build()
    )
    assert query_pairs(request) == [
        ("order", "id.asc"),
        ("order", "created_at.desc.nullslast,name.desc.nullslast"),
    ]


def test_limit_and_offset(client: PostgrestClient) -> None:
    request = client.from_("t").select("*").limit(10).offset(20).build()
    assert query_pairs(request) == [("select", "*"), ("limit", "10"), ("offset", "20")]


def test_range_and_single_headers(client: PostgrestClient) -> None:
    request = client.from_("t").range(10, 20).single().build()
    assert request.headers["Range-Unit"] == "items"
    assert request.headers["Range"] == "10-20"
    assert request.headers["Accept"] == "application/vnd.pgrst.object+json"


def test_count_head(client: PostgrestClient) -> None:
    request = client.from_("t").count("planned", head=True).select("id").build()
    assert request.method == "HEAD"
    assert request.headers["Prefer"] == "count=planned"


def test_update_after_filter(client: PostgrestClient) -> None:
    body = '{"organization":"supabase"}'
    request = client.from_("your_table").eq("username", "soedirgo").update(body).build()

    assert request.method == "PATCH"
    assert request.url.path == "/your_table"
    assert query_pairs(request) == [("username", "eq.soedirgo")]
    assert request.content == body.encode()
    assert request.headers["Prefer"] == "return=representation"


def test_filter_after_update(client: PostgrestClient) -> None:
    request = client.from_("users").update('{"status": "OFFLINE"}').eq("username", "supabot").build()
    assert query_pairs(request) == [("username", "eq.supabot")]


def test_insert_sets_prefer_and_content_type(client: PostgrestClient) -> None:
    request = client.from_("users").insert('[{"username": "dragarcia"}]').build()

    assert request.method == "POST"
    assert request.headers["Prefer"] == "return=representation"
    assert request.headers["Content-Type"] == "application/json"
    assert request.content == b'[{"username": "dragarcia"}]'


def test_insert_serializes_python_objects(client: PostgrestClient) -> None:
    request = client.from_("users").insert({"username": "dragarcia"}).build()
    assert json.loads(request.content) == {"username": "dragarcia"}


def test_insert_without_body_sends_empty_string(client: PostgrestClient) -> None:
    request = client.from_("users").insert().build()
    assert request.method == "POST"
    assert request.content == b""


def test_insert_csv(client: PostgrestClient) -> None:
    request = client.from_("users").insert_csv("username\nsoedirgo").build()
    assert request.headers["Content-Type"] == "text/csv"


def test_upsert_prefer_header(client: PostgrestClient) -> None:
    request = client.from_("users").upsert('{"username": "soedirgo"}').build()
    assert request.method == "POST"
    assert request.headers["Prefer"] == "return=representation,resolution=merge-duplicates"


def test_delete(client: PostgrestClient) -> None:
    request = client.from_("users").eq("id", "1").delete().build()
    assert request.method == "DELETE"
    assert query_pairs(request) == [("id", "eq.1")]
    assert request.content == b""


def test_builder_schema_override(client: PostgrestClient) -> None:
    read = client.from_("users").schema("personal").select("*").build()
    write = client.from_("users").schema("personal").update("{}").build()

    assert read.headers["Accept-Profile"] == "personal"
    assert "Content-Profile" not in read.headers
    assert write.headers["Content-Profile"] == "personal"
    assert "Accept-Profile" not in write.headers


def test_no_profile_header_without_schema(client: PostgrestClient) -> None:
    request = client.from_("users").build()
    assert "Accept-Profile" not in request.headers


def test_auth_header(client: PostgrestClient) -> None:
    request = client.from_("users").auth("$Up3rS3crET").build()
    assert request.headers["Authorization"] == "Bearer $Up3rS3crET"


@pytest.mark.parametrize("mutation", ["insert", "upsert", "update", "delete"])
def test_select_after_mutation_is_invalid(client: PostgrestClient, mutation: str) -> None:
    builder = client.from_("users")
    getattr(builder, mutation)()

    with pytest.raises(InvalidStateError):
        builder.select("*")


def test_order_after_mutation_is_invalid(client: PostgrestClient) -> None:
    with pytest.raises(InvalidStateError):
        client.from_("users").update("{}").order("id")


def test_head_count_after_mutation_is_invalid(client: PostgrestClient) -> None:
    with pytest.raises(InvalidStateError):
        client.from_("users").delete().count(head=True)


def test_second_mutation_is_invalid(client: PostgrestClient) -> None:
    with pytest.raises(InvalidStateError):
        client.from_("users").insert("{}").update("{}")


def test_builder_is_single_use(client: PostgrestClient) -> None:
    builder = client.from_("users").select("*")
    builder.build()

    with pytest.raises(InvalidStateError):
        builder.build()
    with pytest.raises(InvalidStateError):
        builder.eq("id", "1")


def test_values_are_not_escaped(client: PostgrestClient) -> None:
    request = client.from_("t").eq("name", "a,b.c").build()
    assert query_pairs(request) == [("name", "eq.a,b.c")]


def test_standalone_builder_cannot_execute() -> None:
    builder = RequestBuilder(ClientConfig(REST_URL), "users")
    assert builder.path == "/users"
    with pytest.raises(InvalidStateError):
        builder.execute()


def test_execute_sends_built_request(mock_http: httpx.Client, sent: list[httpx.Request]) -> None:
    client = PostgrestClient(REST_URL, http_client=mock_http)

    response = client.from_("users").select("id").eq("id", "1").execute()

    assert response.status_code == 200
    assert response.json() == [{"id": 1}]
    assert len(sent) == 1
    assert sent[0].url.path == "/users"
    assert query_pairs(sent[0]) == [("select", "id"), ("id", "eq.1")]


def test_header_names_are_case_insensitive(client: PostgrestClient) -> None:
    request = client.header("accept", "text/csv").from_("t").single().build()
    assert request.headers.get_list("Accept") == ["application/vnd.pgrst.object+json"]


def test_explicit_prefer_wins_over_builder_token(client: PostgrestClient) -> None:
    request = client.from_("t").header("prefer", "return=minimal").insert("{}").build()
    assert request.headers.get_list("Prefer") == ["return=minimal"]


def test_explicit_prefer_is_merged_with_other_tokens(client: PostgrestClient) -> None:
    request = client.from_("t").header("prefer", "return=minimal").upsert("{}").build()
    assert request.headers.get_list("Prefer") == ["return=minimal,resolution=merge-duplicates"]


def test_lowercase_content_type_is_not_duplicated(client: PostgrestClient) -> None:
    request = client.header("content-type", "application/json; charset=utf-8").from_("t").insert("{}").build()
    assert request.headers.get_list("Content-Type") == ["application/json; charset=utf-8"]


def test_in_with_single_string(client: PostgrestClient) -> None:
    request = client.from_("countries").in_("name", "China").build()
    assert query_pairs(request) == [("name", "in.(China)")]


def test_invalid_chain_sends_nothing(mock_http: httpx.Client, sent: list[httpx.Request]) -> None:
    client = PostgrestClient(REST_URL, http_client=mock_http)

    with pytest.raises(InvalidStateError):
        client.from_("users").eq("id", "1").update("{}").select("*").execute()
    with pytest.raises(InvalidStateError):
        client.rpc("add", "{}").order("id").execute()

    assert sent == []
