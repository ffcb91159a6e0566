"""Shared fakes for the browser, the LLM provider and Playwright network objects."""

from __future__ import annotations

from typing import Any, Callable

import pytest

from webdoc.core.agent import Agent
from webdoc.core.models import (
    ActionPlan,
    ActionResult,
    CapturedCall,
    ExecutionMode,
    ExplorationCandidate,
    PageContext,
)
from webdoc.llm import prompts
from webdoc.llm.provider import LLMMessage, LLMProvider, LLMResponse


BASE_URL = "https://app.example.com/"


# ==============================================================================
# Browser
# ==============================================================================

class FakeBrowser:
    """
    In-memory stand-in for ``BrowserManager``.

    Navigating to a URL "fires" the calls listed for it in ``calls_by_url``;
    returning to the base page fires ``back_calls``. Calls are only recorded
    while a capture is active, like the real accumulator.
    """

    def __init__(
        self,
        candidates: list[ExplorationCandidate] | None = None,
        calls_by_url: dict[str, list[CapturedCall]] | None = None,
        fail_urls: tuple[str, ...] = (),
        current_url: str = BASE_URL,
    ):
        self.candidates = list(candidates or [])
        self.calls_by_url = calls_by_url or {}
        self.fail_urls = set(fail_urls)
        self.back_calls: list[CapturedCall] = []
        self.context = PageContext(
            title="Example Shop",
            headings=["Dashboard"],
            buttons=["Save"],
            links=["Orders"],
        )
        self.screenshot_error: Exception | None = None
        self.back_error: Exception | None = None
        self.action_result = ActionResult(ok=True, message="done")

        self.navigations: list[str] = []
        self.clicks: list[str] = []
        self.planned: list[ActionPlan] = []
        self.backs = 0
        self.launched = 0
        self.closed = 0

        self._running = False
        self._url = current_url
        self._captured: list[CapturedCall] = []
        self._capture_active = False
        self._listener: Callable[[CapturedCall], None] | None = None

    # Lifecycle

    @property
    def is_running(self) -> bool:
        return self._running

    async def launch(self) -> None:
        self._running = True
        self.launched += 1

    async def close(self) -> None:
        self._running = False
        self.closed += 1

    # Navigation

    @property
    def current_url(self) -> str:
        return self._url

    async def navigate(self, url: str) -> None:
        self._url = url
        self.navigations.append(url)
        self.fire(self.calls_by_url.get(url, []))

    async def navigate_soft(self, url: str) -> None:
        if url in self.fail_urls:
            raise RuntimeError(f"Timeout navigating to {url}")
        self._url = url
        self.navigations.append(url)
        self.fire(self.calls_by_url.get(url, []))

    async def go_back_or_navigate(self, fallback_url: str) -> None:
        if self.back_error:
            raise self.back_error
        self._url = fallback_url
        self.backs += 1
        self.fire(self.back_calls)

    # Inspection

    async def take_screenshot(self) -> bytes:
        if self.screenshot_error:
            raise self.screenshot_error
        return b"\x89PNG"

    async def get_page_context(self) -> PageContext:
        return self.context

    async def get_navigation_candidates(self) -> list[ExplorationCandidate]:
        return list(self.candidates)

    # Actions

    async def perform_suggested_action(self, action: str) -> ActionResult:
        self.clicks.append(action)
        return ActionResult(ok=True, message=f'Clicked "{action}"')

    async def perform_planned_action(self, plan: ActionPlan) -> ActionResult:
        self.planned.append(plan)
        return self.action_result

    # Capture

    def fire(self, calls: list[CapturedCall]) -> None:
        if not self._capture_active:
            return
        for call in calls:
            self._captured.append(call)
            if self._listener:
                self._listener(call)

    def start_capture(self, base_url: str, include_third_party: bool = False) -> None:
        self._capture_active = True
        self._captured = []

    def stop_capture(self) -> None:
        self._capture_active = False

    def captured_calls(self) -> list[CapturedCall]:
        return list(self._captured)

    def set_capture_listener(self, listener: Callable[[CapturedCall], None] | None) -> None:
        self._listener = listener

    @property
    def capture_active(self) -> bool:
        return self._capture_active


# ==============================================================================
# LLM
# ==============================================================================

SCHEMA_NAMES = {
    id(prompts.PAGE_SUMMARY_SCHEMA): "page_summary",
    id(prompts.INSTRUCTION_SCHEMA): "instruction",
    id(prompts.CANNOT_ACT_SCHEMA): "cannot_act",
    id(prompts.EXPLORATION_PLAN_SCHEMA): "plan",
    id(prompts.PAGE_INSIGHT_SCHEMA): "insight",
    id(prompts.EXPLORATION_SUMMARY_SCHEMA): "summary",
}


class FakeLLM(LLMProvider):
    """
    Provider returning canned payloads.

    ``structured`` maps a call name ("plan", "insight", ...) to a dict, or to
    an exception to raise. ``text`` is returned by plain ``invoke``.
    """

    def __init__(
        self,
        structured: dict[str, Any] | None = None,
        text: str | Exception = "",
    ):
        self.structured = structured or {}
        self.text = text
        self.calls: list[tuple[str, str]] = []

    async def invoke(
        self,
        messages: list[LLMMessage] | str,
        system_prompt: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 4096,
        images: list[bytes] | None = None,
    ) -> LLMResponse:
        self.calls.append(("text", messages if isinstance(messages, str) else ""))
        if isinstance(self.text, Exception):
            raise self.text
        return LLMResponse(content=self.text, model=self.model_name)

    async def invoke_with_structured_output(
        self,
        messages: list[LLMMessage] | str,
        output_schema: dict[str, Any],
        system_prompt: str | None = None,
        temperature: float = 0.7,
        images: list[bytes] | None = None,
    ) -> dict[str, Any]:
        name = SCHEMA_NAMES.get(id(output_schema), "unknown")
        self.calls.append((name, messages if isinstance(messages, str) else ""))
        if name not in self.structured:
            raise RuntimeError(f"No canned response for {name}")
        response = self.structured[name]
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def model_name(self) -> str:
        return "fake-model"


# ==============================================================================
# Playwright network objects
# ==============================================================================

class FakeRequest:
    def __init__(
        self,
        method: str,
        url: str,
        resource_type: str = "xhr",
        headers: dict[str, str] | None = None,
        post_data: str | None = None,
    ):
        self.method = method
        self.url = url
        self.resource_type = resource_type
        self.headers = headers or {"accept": "application/json"}
        self.post_data = post_data


class FakeResponse:
    def __init__(
        self,
        request: FakeRequest,
        status: int = 200,
        body: str | Exception = '{"ok": true}',
        content_type: str = "application/json",
    ):
        self.request = request
        self.url = request.url
        self.status = status
        self.headers = {"content-type": content_type}
        self._body = body

    async def text(self) -> str:
        if isinstance(self._body, Exception):
            raise self._body
        return self._body


# ==============================================================================
# Fixtures and helpers
# ==============================================================================

def make_call(method: str, url: str, status: int = 200, body: str | None = None) -> CapturedCall:
    return CapturedCall(method=method, url=url, status=status, response_body=body)


def candidate(label: str, href: str | None = None, type: str = "link") -> ExplorationCandidate:
    return ExplorationCandidate(label=label, href=href, type=type)


@pytest.fixture
def agent() -> Agent:
    return Agent(mode=ExecutionMode.OBSERVE_ONLY)


@pytest.fixture
def events(agent: Agent) -> list:
    """Every event the agent emits, in order."""
    recorded: list = []
    agent.on_event(recorded.append)
    return recorded


def info_messages(events: list) -> list[str]:
    return [e.message for e in events if e.type == "info"]
