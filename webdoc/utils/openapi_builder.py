"""
OpenAPI Builder - Generates OpenAPI specifications from captured traffic.
"""

import json
from typing import Any
from urllib.parse import parse_qsl, urlparse

from genson import SchemaBuilder

from ..core.models import CapturedCall, DocMetadata


BODY_METHODS = ("post", "put", "patch", "delete")


def _parse_json(body: str | None) -> Any | None:
    if not body:
        return None
    try:
        return json.loads(body)
    except (json.JSONDecodeError, TypeError):
        return None


class OpenAPIBuilder:
    """
    Builds OpenAPI 3.0 specifications from captured request/response pairs.

    Calls sharing a method and path are merged into one operation: query
    parameters are unioned, status codes collected, and JSON bodies folded
    into a single schema with genson.
    """

    def __init__(
        self,
        title: str = "Discovered API",
        version: str = "1.0.0",
        description: str = ""
    ):
        """
        Initialize OpenAPI builder.

        Args:
            title: API title
            version: API version
            description: API description
        """
        self.spec: dict[str, Any] = {
            "openapi": "3.0.3",
            "info": {
                "title": title,
                "version": version,
                "description": description or "API specification generated from observed browser traffic.",
            },
            "servers": [],
            "paths": {},
        }

        self._request_schemas: dict[tuple[str, str], SchemaBuilder] = {}
        self._response_schemas: dict[tuple[str, str, str], SchemaBuilder] = {}

    def add_server(self, url: str, description: str = "") -> None:
        """
        Add a server to the spec.

        Args:
            url: Server URL
            description: Server description
        """
        self.spec["servers"].append({
            "url": url,
            "description": description
        })

    def add_call(self, call: CapturedCall) -> None:
        """
        Fold a captured call into the spec.

        Args:
            call: Captured request/response pair
        """
        try:
            parsed = urlparse(call.url)
        except ValueError:
            return

        path = parsed.path or "/"
        method = call.method.lower()
        status = str(call.status)

        operations = self.spec["paths"].setdefault(path, {})
        operation = operations.setdefault(method, {
            "summary": f"{call.method.upper()} {path}",
            "responses": {},
        })

        # Query parameters
        query_params = parse_qsl(parsed.query, keep_blank_values=True)
        if query_params:
            parameters = operation.setdefault("parameters", [])
            known = {p["name"] for p in parameters}
            for name, value in query_params:
                if name in known:
                    continue
                known.add(name)
                parameters.append({
                    "name": name,
                    "in": "query",
                    "required": False,
                    "schema": {"type": "string"},
                    "example": value,
                })

        # Request body
        request_data = _parse_json(call.request_body)
        if method in BODY_METHODS and request_data is not None:
            builder = self._request_schemas.setdefault((path, method), SchemaBuilder())
            builder.add_object(request_data)
            operation["requestBody"] = {
                "content": {
                    "application/json": {"schema": self._schema(builder)}
                }
            }

        # Response
        response = operation["responses"].setdefault(status, {
            "description": f"Observed status {status}",
        })
        response_data = _parse_json(call.response_body)
        if response_data is not None:
            builder = self._response_schemas.setdefault((path, method, status), SchemaBuilder())
            builder.add_object(response_data)
            response["content"] = {
                "application/json": {"schema": self._schema(builder)}
            }

    @staticmethod
    def _schema(builder: SchemaBuilder) -> dict[str, Any]:
        schema = builder.to_schema()
        # OpenAPI schema objects don't take a $schema keyword
        schema.pop("$schema", None)
        return schema

    def build(self) -> dict[str, Any]:
        """
        Build and return the complete OpenAPI spec.

        Returns:
            OpenAPI specification dictionary
        """
        # Sort paths alphabetically
        self.spec["paths"] = dict(sorted(self.spec["paths"].items()))

        return self.spec


def export_calls_to_openapi(
    calls: list[CapturedCall],
    origin: str,
    metadata: DocMetadata,
) -> dict[str, Any]:
    """
    Build an OpenAPI document for a capture session.

    Args:
        calls: Unique captured calls
        origin: Primary API origin, used as the server URL
        metadata: Session metadata recorded under ``x-webdoc``

    Returns:
        OpenAPI specification dictionary
    """
    host = urlparse(origin).hostname or origin
    builder = OpenAPIBuilder(
        title=f"{host} API",
        description=f"Generated by WebDoc Agent from browser traffic observed on {metadata.source_url}",
    )
    builder.add_server(origin, "Observed origin")
    for call in calls:
        builder.add_call(call)

    spec = builder.build()
    spec["info"]["x-webdoc"] = {
        "captured_at": metadata.captured_at.isoformat(),
        "source_url": metadata.source_url,
        "total_calls": metadata.total_calls,
        "unique_endpoints": metadata.unique_endpoints,
        "session_duration": metadata.session_duration,
        **({"pages_explored": metadata.pages_explored} if metadata.pages_explored else {}),
    }
    return spec
