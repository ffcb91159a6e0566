import json
from datetime import datetime

import yaml

from webdoc.core.models import CapturedCall, DocMetadata
from webdoc.utils.docs import build_frontmatter, host_slug, write_documentation
from webdoc.utils.openapi_builder import OpenAPIBuilder, export_calls_to_openapi


def metadata(**overrides) -> DocMetadata:
    values = dict(
        captured_at=datetime(2024, 5, 1, 12, 0, 0),
        source_url="https://app.example.com/",
        total_calls=2,
        unique_endpoints=2,
        session_duration="1m 5s",
    )
    values.update(overrides)
    return DocMetadata(**values)


CALLS = [
    CapturedCall(
        method="GET",
        url="https://api.example.com/v1/items?page=1&sort=name",
        status=200,
        response_body='{"items": [{"id": 1, "name": "Pen"}], "total": 1}',
    ),
    CapturedCall(
        method="POST",
        url="https://api.example.com/v1/items",
        status=201,
        request_body='{"name": "Pencil"}',
        response_body='{"id": 2}',
    ),
]


# ==============================================================================
# OpenAPI
# ==============================================================================

def test_openapi_paths_parameters_and_schemas() -> None:
    builder = OpenAPIBuilder(title="Items API")
    for call in CALLS:
        builder.add_call(call)

    spec = builder.build()

    assert spec["openapi"] == "3.0.3"
    operations = spec["paths"]["/v1/items"]
    assert set(operations) == {"get", "post"}

    params = operations["get"]["parameters"]
    assert [(p["name"], p["in"], p["example"]) for p in params] == [
        ("page", "query", "1"),
        ("sort", "query", "name"),
    ]

    get_schema = operations["get"]["responses"]["200"]["content"]["application/json"]["schema"]
    assert get_schema["type"] == "object"
    assert "$schema" not in get_schema
    assert get_schema["properties"]["items"]["type"] == "array"

    body_schema = operations["post"]["requestBody"]["content"]["application/json"]["schema"]
    assert body_schema["properties"]["name"]["type"] == "string"
    assert "201" in operations["post"]["responses"]


def test_openapi_merges_observations_of_one_operation() -> None:
    builder = OpenAPIBuilder()
    builder.add_call(CapturedCall(method="GET", url="https://a.example.com/me?x=1", status=200,
                                  response_body='{"id": 1}'))
    builder.add_call(CapturedCall(method="GET", url="https://a.example.com/me?y=2", status=401,
                                  response_body="not json"))

    operation = builder.build()["paths"]["/me"]["get"]

    assert [p["name"] for p in operation["parameters"]] == ["x", "y"]
    assert set(operation["responses"]) == {"200", "401"}
    assert "content" not in operation["responses"]["401"]


def test_get_request_body_is_ignored() -> None:
    builder = OpenAPIBuilder()
    builder.add_call(CapturedCall(method="GET", url="https://a.example.com/q", status=200,
                                  request_body='{"q": 1}'))

    assert "requestBody" not in builder.build()["paths"]["/q"]["get"]


def test_export_records_session_metadata() -> None:
    spec = export_calls_to_openapi(CALLS, "https://api.example.com", metadata(pages_explored=["Items"]))

    assert spec["info"]["title"] == "api.example.com API"
    assert spec["servers"] == [{"url": "https://api.example.com", "description": "Observed origin"}]
    assert spec["info"]["x-webdoc"]["unique_endpoints"] == 2
    assert spec["info"]["x-webdoc"]["pages_explored"] == ["Items"]
    json.dumps(spec)


# ==============================================================================
# Markdown files
# ==============================================================================

def test_host_slug() -> None:
    assert host_slug("api.example.com") == "api-example-com"
    assert host_slug("Localhost:3000") == "localhost-3000"
    assert host_slug("...") == "api"


def parse_frontmatter(text: str) -> dict:
    assert text.startswith("---\n")
    block, _, _ = text[4:].partition("---\n")
    return yaml.safe_load(block)


def test_frontmatter() -> None:
    text = build_frontmatter("api.example.com", metadata(pages_explored=["Items", "Users"]))

    assert text.endswith("---\n")
    assert parse_frontmatter(text) == {
        "title": "api.example.com API Documentation",
        "source": "https://app.example.com/",
        "generated": "2024-05-01T12:00:00",
        "total_calls": 2,
        "unique_endpoints": 2,
        "session_duration": "1m 5s",
        "pages_explored": ["Items", "Users"],
        "generator": "WebDoc Agent",
    }
    assert list(parse_frontmatter(text))[0] == "title"


def test_frontmatter_escapes_labels() -> None:
    pages = ['Say "hi"', "C:\\new", "Tags: a, b", "- dash"]
    text = build_frontmatter("api.example.com", metadata(pages_explored=pages))

    assert parse_frontmatter(text)["pages_explored"] == pages


def test_frontmatter_omits_empty_pages() -> None:
    assert "pages_explored" not in parse_frontmatter(build_frontmatter("a", metadata()))


def test_write_documentation(tmp_path) -> None:
    docs_dir = tmp_path / "out" / "docs"

    written = write_documentation(
        docs_dir, "api.example.com", "https://api.example.com",
        "# API Documentation\n", CALLS, metadata(),
    )

    assert written.markdown_path == (docs_dir / "api-example-com-api.md").resolve()
    assert written.openapi_path == (docs_dir / "api-example-com-openapi.json").resolve()

    markdown = written.markdown_path.read_text(encoding="utf-8")
    assert markdown.startswith("---\n")
    assert markdown.endswith("# API Documentation\n")

    spec = json.loads(written.openapi_path.read_text(encoding="utf-8"))
    assert "/v1/items" in spec["paths"]
