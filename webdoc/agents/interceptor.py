"""
Interceptor - The Observer.
Joins browser request/response events into documentation-ready records.

This agent is deterministic (not LLM-driven). It keeps two scopes apart:
the accumulator's own per-capture list retains every call that passes the
inclusion filter, while ``CaptureSession`` deduplicates across the whole
documentation session.
"""

from datetime import datetime
from typing import Any, Callable

from ..core.agent import Agent
from ..core.config import settings
from ..core.models import CapturedCall, RequestInfo
from ..utils.urls import api_key, get_base_domain, get_hostname, is_same_site


CaptureListener = Callable[[CapturedCall], None]

CAPTURED_RESOURCE_TYPES = ("xhr", "fetch")
TEXT_CONTENT_TYPES = ("application/json", "text/plain")
TRUNCATION_MARKER = "…"


def truncate(value: str | None, limit: int) -> str | None:
    """
    Trim a body and cap its length.

    Args:
        value: Body text
        limit: Maximum characters kept

    Returns:
        None for empty input, otherwise the trimmed text with a trailing
        marker when it was cut
    """
    if not value:
        return None
    trimmed = value.strip()
    if len(trimmed) <= limit:
        return trimmed
    return f"{trimmed[:limit]}{TRUNCATION_MARKER}"


class CaptureAccumulator:
    """
    Records requests as they are issued and turns matching responses into
    ``CapturedCall`` records while a capture is active.

    Request and response objects are Playwright's (``method``, ``url``,
    ``headers``, ``post_data``, ``resource_type``; ``status``, ``request``,
    ``text()``), or anything shaped like them.
    """

    def __init__(self, agent: Agent, body_limit: int | None = None):
        """
        Initialize the accumulator.

        Args:
            agent: Agent core whose risk gate sees every response
            body_limit: Max body characters (defaults to config)
        """
        self.agent = agent
        self.body_limit = body_limit or settings.capture_body_limit

        self._requests: dict[Any, RequestInfo] = {}
        self._captured: list[CapturedCall] = []
        self._capture_active = False
        self._base_domain: str | None = None
        self._include_third_party = False
        self._listener: CaptureListener | None = None

    # =========================================================================
    # Capture Control
    # =========================================================================

    @property
    def capture_active(self) -> bool:
        return self._capture_active

    def start_capture(self, base_url: str, include_third_party: bool = False) -> None:
        """
        Begin a capture. Clears calls kept by the previous capture.

        Args:
            base_url: URL whose base domain defines "same site"
            include_third_party: Keep calls to other domains too
        """
        self._capture_active = True
        self._captured = []
        self._include_third_party = include_third_party
        self._base_domain = get_base_domain(base_url)

    def stop_capture(self) -> None:
        self._capture_active = False

    def captured_calls(self) -> list[CapturedCall]:
        """Copy of the calls kept by the current capture."""
        return list(self._captured)

    def set_capture_listener(self, listener: CaptureListener | None) -> None:
        self._listener = listener

    def requests(self) -> list[RequestInfo]:
        """Requests still waiting for a response."""
        return list(self._requests.values())

    # =========================================================================
    # Browser Event Handlers
    # =========================================================================

    def on_request(self, request) -> None:
        """Record a request at the moment it is issued."""
        self._requests[request] = RequestInfo(
            method=request.method,
            url=request.url,
            headers=dict(request.headers or {}),
            post_data=request.post_data,
            resource_type=request.resource_type,
        )

    def on_request_failed(self, request) -> None:
        """Forget a request that will never get a response."""
        self._requests.pop(request, None)

    async def on_response(self, response) -> CapturedCall | None:
        """
        Handle a completed response.

        Args:
            response: Browser response

        Returns:
            The captured call, or None if it was not retained
        """
        request = response.request
        info = self._requests.pop(request, None)
        url = response.url
        status = response.status
        method = (info.method if info else None) or getattr(request, "method", None) or "GET"

        # Every response passes the risk gate, captured or not
        await self.agent.handle_network_call(method, url, status)

        if not self._capture_active or info is None:
            return None

        if not self.should_capture(info):
            return None

        call = CapturedCall(
            method=method,
            url=url,
            status=status,
            request_headers=info.headers,
            response_headers=dict(response.headers or {}),
            request_body=truncate(info.post_data, self.body_limit),
            response_body=await self._safe_response_body(response),
            timestamp=datetime.now(),
        )

        self._captured.append(call)
        if self._listener:
            self._listener(call)
        return call

    # =========================================================================
    # Filtering
    # =========================================================================

    def should_capture(self, info: RequestInfo) -> bool:
        """
        Inclusion filter: XHR/fetch only, and same site unless third-party
        capture is enabled.
        """
        if info.resource_type not in CAPTURED_RESOURCE_TYPES:
            return False

        if not self._include_third_party and self._base_domain:
            host = get_hostname(info.url)
            if host is None or not is_same_site(host, self._base_domain):
                return False

        return True

    async def _safe_response_body(self, response) -> str | None:
        """Read a textual response body; any failure means no body."""
        try:
            headers = response.headers or {}
            content_type = headers.get("content-type", "")
            if not any(t in content_type for t in TEXT_CONTENT_TYPES):
                return None
            text = await response.text()
            return truncate(text, self.body_limit)
        except Exception:
            return None


class CaptureSession:
    """
    Session-level accumulator: the ordered set of unique calls written to
    documentation. The first call per ``method + hostname + pathname`` wins.
    """

    def __init__(self, source_url: str):
        self.source_url = source_url
        self.started_at = datetime.now()
        self.calls: list[CapturedCall] = []
        self.keys: set[str] = set()
        self.pages_explored: list[str] = []

    def add(self, call: CapturedCall) -> bool:
        """
        Keep ``call`` if its key is new.

        Returns:
            True if the call was kept
        """
        key = api_key(call.method, call.url)
        if key in self.keys:
            return False
        self.keys.add(key)
        self.calls.append(call)
        return True

    @property
    def unique_count(self) -> int:
        return len(self.keys)

    def duration(self) -> str:
        """Elapsed session time as "Xm Ys"."""
        elapsed = int((datetime.now() - self.started_at).total_seconds())
        return f"{elapsed // 60}m {elapsed % 60}s"

    def get_summary(self) -> dict[str, Any]:
        """
        Get summary of the session's unique calls.

        Returns:
            Summary dictionary
        """
        method_counts: dict[str, int] = {}
        status_counts: dict[int, int] = {}
        for call in self.calls:
            method_counts[call.method] = method_counts.get(call.method, 0) + 1
            status_counts[call.status] = status_counts.get(call.status, 0) + 1

        return {
            "source_url": self.source_url,
            "unique_endpoints": self.unique_count,
            "by_method": method_counts,
            "by_status": status_counts,
            "pages_explored": list(self.pages_explored),
            "duration": self.duration(),
        }
