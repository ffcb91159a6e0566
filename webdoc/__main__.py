"""
WebDoc Agent CLI.

Usage:
    python -m webdoc open <url> [-d DOCS_PATH] [--host HOST] [--port PORT] [--headless]
    python -m webdoc help
    python -m webdoc version
"""

import argparse
import sys

import uvicorn

from . import __version__
from .core.config import settings
from .core.guardrails import Guardrails, GuardrailViolation
from .utils.urls import normalize_url


EPILOG = """
Examples:
  python -m webdoc open https://example.com
  python -m webdoc open example.com --docs-path ./api-docs
  python -m webdoc open https://example.com -d /absolute/path/to/docs

While running, the session is driven over HTTP and WebSocket:
  POST /api/control/prompt      Send a command ("explore", "/capture off", ...)
  POST /api/control/approval    Answer an approval request (yes | no | doc)
  WS   /ws/events               Stream agent events

Environment variables:
  OPENAI_API_KEY / ANTHROPIC_API_KEY   LLM credentials (optional)
  LLM_PROVIDER                         openai | anthropic
  WEBDOC_DOCS_PATH                     Documentation directory (default: docs)
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="webdoc",
        description="WebDoc Agent - human-in-the-loop API documentation agent",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=EPILOG,
    )
    sub = parser.add_subparsers(dest="command")

    # open
    open_p = sub.add_parser("open", help="Open a URL and start documenting")
    open_p.add_argument("url", help="Target URL (https:// is assumed if missing)")
    open_p.add_argument(
        "-d", "--docs-path",
        dest="docs_path",
        help="Directory for documentation files (default: WEBDOC_DOCS_PATH or ./docs)",
    )
    open_p.add_argument("--host", default=settings.api_host, help="API host")
    open_p.add_argument("--port", type=int, default=settings.api_port, help="API port")
    open_p.add_argument("--headless", action="store_true", help="Run the browser headless")

    sub.add_parser("help", help="Show this help message")
    sub.add_parser("version", help="Show version number")

    return parser


def cmd_version(args: argparse.Namespace) -> int:
    print(f"webdoc-agent v{__version__}")
    return 0


def cmd_open(args: argparse.Namespace) -> int:
    """Serve the API and open the target once the server is up."""
    from .api.main import create_app

    url = normalize_url(args.url)
    try:
        Guardrails(url).validate_target_url(url)
    except GuardrailViolation as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    if args.headless:
        settings.headless = True

    app = create_app(initial_url=url, docs_path=args.docs_path)
    print(f"WebDoc Agent v{__version__} - http://{args.host}:{args.port}")
    uvicorn.run(app, host=args.host, port=args.port)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "open":
        try:
            return cmd_open(args)
        except KeyboardInterrupt:
            print("\nInterrupted.")
            return 130
    if args.command == "version":
        return cmd_version(args)

    parser.print_help()
    return 0 if args.command == "help" else 1


if __name__ == "__main__":
    sys.exit(main())
