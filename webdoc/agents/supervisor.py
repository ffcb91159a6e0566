"""
Supervisor - session orchestrator.
Routes user commands, owns the capture lifecycle and writes documentation.
"""

import asyncio
import re
from pathlib import Path
from typing import Any, Literal

from .base import BaseAgent
from .explorer import ExplorationOrchestrator
from .interceptor import CaptureSession
from .navigator import Navigator
from ..browser.manager import BrowserManager
from ..core.agent import Agent
from ..core.config import settings
from ..core.events import DocumentationEvent
from ..core.guardrails import Guardrails
from ..core.models import CapturedCall, DecisionKind, DocMetadata, ExplorationReport
from ..llm.reasoning import ReasoningService
from ..utils.docs import WrittenDocs, write_documentation
from ..utils.urls import get_hostname, get_primary_host, get_primary_origin


Command = Literal["capture", "login", "finalize", "explore", "describe", "instruction"]

LOGIN_PATTERN = re.compile(
    r"(i'?m logged in|i am logged in|logged in|login complete|signed in)", re.IGNORECASE
)
FINALIZE_PATTERN = re.compile(
    r"(stop capture|generate docs|document api|create docs)", re.IGNORECASE
)
EXPLORE_PATTERN = re.compile(
    r"(explore|crawl|surf pages|discover pages|find pages|explore site)", re.IGNORECASE
)
DESCRIBE_PATTERN = re.compile(
    r"(what can you see|what do you see|describe|summarize|summary|what is on|what's on)",
    re.IGNORECASE,
)


def route_command(prompt: str) -> Command:
    """
    Decide which handler a user prompt goes to.

    Args:
        prompt: Raw user input

    Returns:
        Route name; checked in order, first match wins
    """
    lower = prompt.strip().lower()

    if lower.startswith("/capture"):
        return "capture"
    if LOGIN_PATTERN.search(lower):
        return "login"
    if FINALIZE_PATTERN.search(lower):
        return "finalize"
    if EXPLORE_PATTERN.search(lower):
        return "explore"
    if DESCRIBE_PATTERN.search(lower):
        return "describe"
    return "instruction"


class Supervisor(BaseAgent):
    """
    One browser session: opening the target, capturing traffic, exploring,
    following instructions and writing documentation when a capture ends.

    Args:
        agent: Agent core (a fresh one by default)
        browser: Browser driver (a fresh one by default)
        reasoning: Reasoning service (fallback-only by default)
        docs_path: Documentation directory (defaults to config)
        idle_seconds: Idle delay before auto-finalizing after login
        include_third_party: Capture calls to other domains too
    """

    def __init__(
        self,
        agent: Agent | None = None,
        browser: BrowserManager | None = None,
        reasoning: ReasoningService | None = None,
        docs_path: str | Path | None = None,
        idle_seconds: float | None = None,
        include_third_party: bool | None = None,
        explorer: ExplorationOrchestrator | None = None,
    ):
        agent = agent or Agent()
        super().__init__("supervisor", agent, reasoning)

        self.browser = browser or BrowserManager(agent)
        self.docs_path = Path(docs_path or settings.webdoc_docs_path)
        self.idle_seconds = idle_seconds if idle_seconds is not None else settings.capture_idle_seconds
        self.include_third_party = (
            include_third_party if include_third_party is not None else settings.include_third_party
        )

        self.navigator = Navigator(agent, self.browser, self.reasoning)
        self.explorer = explorer or ExplorationOrchestrator(agent, self.browser, self.reasoning)

        self.url: str | None = None
        self.session: CaptureSession | None = None
        self.last_docs: WrittenDocs | None = None
        self.last_report: ExplorationReport | None = None

        self._capture_active = False
        self._idle_finalize = False
        self._finalize_task: asyncio.Task | None = None
        self._exploring = False
        self._explore_cancel: asyncio.Event | None = None

    # =========================================================================
    # Session Lifecycle
    # =========================================================================

    async def open(self, url: str) -> None:
        """
        Launch the browser (if needed) and open the target.

        Raises:
            GuardrailViolation: If the URL may not be opened
        """
        Guardrails(url).validate_target_url(url)

        if not self.browser.is_running:
            self.notify("Launching browser...")
            await self.browser.launch()

        self.url = url
        self.session = CaptureSession(url)
        self.explorer.session = self.session

        self.notify(f"Navigating to {url}...")
        await self.browser.navigate(url)

    async def welcome(self) -> str:
        message = await self.reasoning.get_welcome_message()
        self.notify(f"LLM welcome: {message}")
        return message

    async def initial_guidance(self) -> None:
        await self.navigator.initial_guidance()

    async def shutdown(self) -> None:
        """Finish any capture, release waiters and close the browser."""
        self.cancel_exploration()
        if self._capture_active:
            await self.finalize("Stopped by user.")
        self.notify("Shutting down...")
        cancelled = self.agent.cancel_pending()
        if cancelled:
            self.log(f"Cancelled {cancelled} pending decision(s)")
        await self.browser.close()

    # =========================================================================
    # Capture Lifecycle
    # =========================================================================

    @property
    def capture_active(self) -> bool:
        return self._capture_active

    @property
    def exploring(self) -> bool:
        return self._exploring

    def start_capture(self) -> bool:
        """
        Start capturing for the current target.

        Returns:
            False if a capture was already running
        """
        if self._capture_active or self.url is None:
            return False
        self._capture_active = True
        self.browser.start_capture(self.url, self.include_third_party)
        self.browser.set_capture_listener(self._on_captured_call)
        return True

    def _on_captured_call(self, call: CapturedCall) -> None:
        if self.session is not None:
            self.session.add(call)
        if self._idle_finalize:
            self.schedule_idle_finalize()

    def schedule_idle_finalize(self) -> None:
        """(Re)arm finalization after ``idle_seconds`` without API activity."""
        if self._exploring:
            return
        self._idle_finalize = True
        if self._finalize_task and not self._finalize_task.done():
            self._finalize_task.cancel()
        self._finalize_task = asyncio.create_task(self._finalize_after_idle())

    async def _finalize_after_idle(self) -> None:
        await asyncio.sleep(self.idle_seconds)
        if self._exploring:
            return
        await self.finalize("No new API activity detected.")

    async def finalize(self, reason: str) -> WrittenDocs | None:
        """
        Stop the capture and write documentation for the session.

        Args:
            reason: Why the capture ended (logged)

        Returns:
            Written paths, or None if nothing was written
        """
        if not self._capture_active:
            return None

        self._capture_active = False
        self._idle_finalize = False
        task = self._finalize_task
        self._finalize_task = None
        if task and task is not asyncio.current_task() and not task.done():
            task.cancel()

        self.browser.stop_capture()
        self.browser.set_capture_listener(None)
        self.log(f"Capture finalized: {reason}")

        return await self.write_docs()

    async def write_docs(self) -> WrittenDocs | None:
        """Write Markdown and OpenAPI documentation for the session's calls."""
        if self.session is None or not self.session.calls:
            self.notify("No API calls captured yet.")
            return None

        calls = list(self.session.calls)
        source_url = self.url or self.session.source_url

        async with self.thinking("Generating API documentation..."):
            markdown = await self.reasoning.generate_api_documentation(calls, source_url)

        host = get_primary_host(calls) or get_hostname(source_url) or "api"
        origin = get_primary_origin(calls) or source_url
        metadata = DocMetadata(
            source_url=source_url,
            total_calls=len(calls),
            unique_endpoints=self.session.unique_count,
            pages_explored=list(self.session.pages_explored) or None,
            session_duration=self.session.duration(),
        )

        docs = write_documentation(self.docs_path, host, origin, markdown, calls, metadata)
        self.last_docs = docs

        self.agent.emit(DocumentationEvent(format="markdown", path=str(docs.markdown_path)))
        self.agent.emit(DocumentationEvent(format="openapi", path=str(docs.openapi_path)))
        self.notify(
            f"Documentation written ({len(calls)} calls, {self.session.unique_count} unique endpoints) "
            f"→ {docs.markdown_path} + {docs.openapi_path}"
        )
        return docs

    # =========================================================================
    # Exploration
    # =========================================================================

    async def explore(self) -> ExplorationReport | None:
        """
        Explore visible navigation with capture on, then write documentation.

        Returns:
            The exploration report, or None if one was already running
        """
        if self._exploring:
            self.notify("Exploration is already running.")
            return None

        if not self._capture_active:
            self.start_capture()

        self._exploring = True
        self._explore_cancel = asyncio.Event()
        report = None
        try:
            report = await self.explorer.explore(self._explore_cancel)
            self.last_report = report
        finally:
            self._exploring = False
            self._explore_cancel = None
            await self.finalize("Exploration complete." if report else "Exploration failed.")
        return report

    def cancel_exploration(self) -> bool:
        """Ask a running exploration to stop before its next candidate."""
        if self._explore_cancel is None:
            return False
        self._explore_cancel.set()
        return True

    # =========================================================================
    # Command Routing
    # =========================================================================

    async def handle_user_prompt(self, prompt: str) -> None:
        """
        Handle one line of user input.

        Args:
            prompt: Raw user input
        """
        if not self.browser.is_running:
            self.notify("Open a URL first.")
            return

        route = route_command(prompt)
        self.log(f"Prompt routed to '{route}': {prompt}")

        if route == "capture":
            await self._handle_capture_command(prompt)
        elif route == "login":
            if self.start_capture():
                self.schedule_idle_finalize()
                self.notify(
                    "Login confirmed. Capturing API calls. Docs will generate after "
                    "activity settles, or type /capture off."
                )
            else:
                self.notify("Capture is already running.")
        elif route == "finalize":
            await self.finalize("Requested by user.")
        elif route == "explore":
            await self.explore()
        elif route == "describe":
            await self.navigator.describe_page()
        else:
            await self.navigator.handle_instruction(prompt)

    async def _handle_capture_command(self, prompt: str) -> None:
        parts = prompt.strip().lower().split()
        arg = parts[1] if len(parts) > 1 else None

        if arg in (None, "on", "start"):
            if self.start_capture():
                existing = len(self.session.calls) if self.session else 0
                already = f"{existing} calls already in session. " if existing else ""
                self.notify(f"Capture enabled. {already}Type /capture off to generate docs.")
            else:
                self.notify("Capture is already running.")
        elif arg in ("off", "stop"):
            if self._capture_active:
                await self.finalize("Capture stopped by user.")
            else:
                self.notify("Capture is not running.")
        else:
            self.notify("Usage: /capture on|off")

    # =========================================================================
    # Status
    # =========================================================================

    def get_status(self) -> dict[str, Any]:
        """Snapshot of the session for status endpoints."""
        return {
            "url": self.url,
            "current_url": self.browser.current_url,
            "browser_running": self.browser.is_running,
            "mode": self.agent.mode.value,
            "capture_active": self._capture_active,
            "exploring": self._exploring,
            "session": self.session.get_summary() if self.session else None,
            "pending": {kind.value: self.agent.pending(kind) for kind in DecisionKind},
            "docs": (
                {
                    "markdown": str(self.last_docs.markdown_path),
                    "openapi": str(self.last_docs.openapi_path),
                }
                if self.last_docs
                else None
            ),
        }
