"""Utilities module - URL helpers, OpenAPI builder and documentation files."""

from .openapi_builder import OpenAPIBuilder, export_calls_to_openapi
from .docs import WrittenDocs, build_frontmatter, host_slug, write_documentation

__all__ = [
    "OpenAPIBuilder",
    "export_calls_to_openapi",
    "WrittenDocs",
    "build_frontmatter",
    "host_slug",
    "write_documentation",
]
