"""
Documentation files - Markdown with YAML frontmatter plus an OpenAPI document.
"""

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from ..core.models import CapturedCall, DocMetadata
from .openapi_builder import export_calls_to_openapi


GENERATOR_NAME = "WebDoc Agent"


@dataclass
class WrittenDocs:
    """Paths of a documentation pair."""
    markdown_path: Path
    openapi_path: Path


def host_slug(host: str) -> str:
    """
    File-name slug for a host, e.g. "api.example.com" -> "api-example-com".
    """
    slug = re.sub(r"[^a-z0-9]+", "-", host, flags=re.IGNORECASE)
    return slug.strip("-").lower() or "api"


def build_frontmatter(host: str, metadata: DocMetadata) -> str:
    """
    YAML frontmatter block describing a capture session.

    Args:
        host: Primary API host
        metadata: Session metadata

    Returns:
        Frontmatter text including both ``---`` fences and a trailing newline
    """
    meta: dict[str, Any] = {
        "title": f"{host} API Documentation",
        "source": metadata.source_url,
        "generated": metadata.captured_at.isoformat(),
        "total_calls": metadata.total_calls,
        "unique_endpoints": metadata.unique_endpoints,
        "session_duration": metadata.session_duration,
    }
    if metadata.pages_explored:
        meta["pages_explored"] = list(metadata.pages_explored)
    meta["generator"] = GENERATOR_NAME

    body = yaml.safe_dump(meta, default_flow_style=False, sort_keys=False, allow_unicode=True)
    return f"---\n{body}---\n"


def write_documentation(
    docs_path: str | Path,
    host: str,
    origin: str,
    markdown: str,
    calls: list[CapturedCall],
    metadata: DocMetadata,
) -> WrittenDocs:
    """
    Write ``<slug>-api.md`` and ``<slug>-openapi.json`` into ``docs_path``.

    Existing files for the same host are overwritten.

    Args:
        docs_path: Output directory (created if missing)
        host: Primary API host, used for the slug and title
        origin: Primary API origin, used as the OpenAPI server
        markdown: Documentation body
        calls: Unique captured calls
        metadata: Session metadata

    Returns:
        Paths of the written files
    """
    directory = Path(docs_path).resolve()
    directory.mkdir(parents=True, exist_ok=True)

    slug = host_slug(host)
    markdown_path = directory / f"{slug}-api.md"
    openapi_path = directory / f"{slug}-openapi.json"

    markdown_path.write_text(build_frontmatter(host, metadata) + markdown, encoding="utf-8")

    spec = export_calls_to_openapi(calls, origin, metadata)
    openapi_path.write_text(json.dumps(spec, indent=2, ensure_ascii=False), encoding="utf-8")

    return WrittenDocs(markdown_path=markdown_path, openapi_path=openapi_path)
