"""
Playwright Browser Manager.
Manages browser lifecycle, page inspection, UI actions and network capture.
"""

import re
from typing import TYPE_CHECKING, Callable

from playwright.async_api import (
    async_playwright,
    Browser,
    BrowserContext,
    Locator,
    Page,
    Playwright,
)

from ..core.agent import Agent
from ..core.config import settings
from ..core.models import (
    ActionPlan,
    ActionResult,
    CapturedCall,
    ExplorationCandidate,
    PageContext,
)
from ..utils.urls import normalize_url
from .actions import FIRST_RESULT_SELECTORS, build_action_candidates, wants_first_result
from .observer import UIObserver

if TYPE_CHECKING:
    from ..agents.interceptor import CaptureAccumulator


CLICK_TIMEOUT = 5000
IDLE_TIMEOUT = 8000

PAGE_CONTEXT_SCRIPT = """
() => {
  const clean = (text) => (text || "").replace(/\\s+/g, " ").trim().slice(0, 120);
  const takeUnique = (items, max) => {
    const seen = new Set();
    const result = [];
    for (const item of items) {
      if (!item || seen.has(item)) continue;
      seen.add(item);
      result.push(item);
      if (result.length >= max) break;
    }
    return result;
  };
  const headings = Array.from(document.querySelectorAll("h1,h2"))
    .map((el) => clean(el.textContent)).filter(Boolean);
  const buttons = Array.from(document.querySelectorAll("button,[role='button'],input[type='submit']"))
    .map((el) => clean(el.textContent || el.value)).filter(Boolean);
  const links = Array.from(document.querySelectorAll("a"))
    .map((el) => clean(el.textContent)).filter(Boolean);
  return {
    headings: takeUnique(headings, 6),
    buttons: takeUnique(buttons, 6),
    links: takeUnique(links, 6),
  };
}
"""

NAVIGATION_CANDIDATES_SCRIPT = """
(maxCandidates) => {
  const isVisible = (el) => {
    const rect = el.getBoundingClientRect();
    const style = window.getComputedStyle(el);
    return rect.width > 0 && rect.height > 0 &&
      style.visibility !== "hidden" && style.display !== "none";
  };
  const clean = (text) => (text || "").replace(/\\s+/g, " ").trim().slice(0, 80);
  const candidates = [];
  for (const link of Array.from(document.querySelectorAll("a"))) {
    if (!isVisible(link)) continue;
    const label = clean(link.textContent) || clean(link.getAttribute("aria-label"));
    if (!label) continue;
    candidates.push({ label, href: link.href || null, type: "link" });
  }
  const buttonSelector = "button,[role='button'],input[type='button'],input[type='submit']";
  for (const button of Array.from(document.querySelectorAll(buttonSelector))) {
    if (!isVisible(button)) continue;
    const label = clean(button.textContent) || clean(button.value) ||
      clean(button.getAttribute("aria-label"));
    if (!label) continue;
    candidates.push({ label, href: null, type: "button" });
  }
  const seen = new Set();
  const unique = [];
  for (const item of candidates) {
    const key = `${item.type}:${item.label}:${item.href || ""}`;
    if (seen.has(key)) continue;
    seen.add(key);
    unique.push(item);
    if (unique.length >= maxCandidates) break;
  }
  return unique;
}
"""


class BrowserNotStarted(RuntimeError):
    """Raised when a page operation is attempted before ``launch``."""

    def __init__(self):
        super().__init__("Browser not started")


class BrowserManager:
    """
    Manages a Playwright browser for observed, human-in-the-loop sessions.
    Wires network capture and the UI observer to the agent core.
    """

    def __init__(
        self,
        agent: Agent,
        headless: bool | None = None,
        accumulator: "CaptureAccumulator | None" = None,
    ):
        """
        Initialize browser manager.

        Args:
            agent: Agent core receiving network and UI events
            headless: Run in headless mode (defaults to config)
            accumulator: Capture accumulator (a fresh one by default)
        """
        if accumulator is None:
            from ..agents.interceptor import CaptureAccumulator
            accumulator = CaptureAccumulator(agent)

        self.agent = agent
        self.headless = headless if headless is not None else settings.headless
        self.accumulator = accumulator

        self.playwright: Playwright | None = None
        self.browser: Browser | None = None
        self.context: BrowserContext | None = None
        self.page: Page | None = None
        self.observer: UIObserver | None = None

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def launch(self) -> Page:
        """
        Start browser and return page.

        Returns:
            Playwright Page object
        """
        self.playwright = await async_playwright().start()
        self.browser = await self.playwright.chromium.launch(
            headless=self.headless,
            slow_mo=settings.slow_mo,
        )
        self.context = await self.browser.new_context(
            viewport={"width": settings.viewport_width, "height": settings.viewport_height},
        )
        self.page = await self.context.new_page()

        self.page.on("request", self.accumulator.on_request)
        self.page.on("response", self.accumulator.on_response)
        self.page.on("requestfailed", self.accumulator.on_request_failed)

        self.observer = UIObserver(self.agent, self.page)
        await self.observer.start()

        print(f"[browser] Launched chromium (headless={self.headless})")
        return self.page

    async def close(self) -> None:
        """Stop browser and cleanup."""
        if self.context:
            await self.context.close()
            self.context = None
        if self.browser:
            await self.browser.close()
            self.browser = None
        if self.playwright:
            await self.playwright.stop()
            self.playwright = None
        self.page = None
        self.observer = None

    @property
    def is_running(self) -> bool:
        return self.page is not None

    def _require_page(self) -> Page:
        if not self.page:
            raise BrowserNotStarted()
        return self.page

    # =========================================================================
    # Navigation
    # =========================================================================

    @property
    def current_url(self) -> str:
        return self.page.url if self.page else ""

    async def navigate(self, url: str) -> None:
        """Navigate and wait for the network to go idle."""
        page = self._require_page()
        await page.goto(url, wait_until="networkidle", timeout=settings.browser_timeout)

    async def navigate_soft(self, url: str) -> None:
        """Navigate and wait only for DOM ready."""
        page = self._require_page()
        await page.goto(
            url,
            wait_until="domcontentloaded",
            timeout=settings.soft_navigation_timeout,
        )

    async def go_back_or_navigate(self, fallback_url: str) -> None:
        """
        Go back in history, or soft-navigate to ``fallback_url`` if that fails.
        """
        if not self.page:
            return
        try:
            await self.page.go_back(
                wait_until="domcontentloaded",
                timeout=settings.soft_navigation_timeout,
            )
        except Exception as e:
            print(f"[browser] Back navigation failed ({e}), reloading {fallback_url}")
            await self.navigate_soft(fallback_url)

    async def wait_for_idle(self) -> None:
        if not self.page:
            return
        try:
            await self.page.wait_for_load_state("networkidle", timeout=IDLE_TIMEOUT)
        except Exception:
            # Not every page reaches network idle
            pass

    # =========================================================================
    # Page Inspection
    # =========================================================================

    async def take_screenshot(self) -> bytes:
        """
        Take a full-page screenshot.

        Returns:
            PNG bytes
        """
        page = self._require_page()
        return await page.screenshot(full_page=True)

    async def get_page_context(self) -> PageContext:
        """Title plus up to six unique headings, buttons and links."""
        page = self._require_page()
        title = await page.title()
        landmarks = await page.evaluate(PAGE_CONTEXT_SCRIPT)
        return PageContext(
            title=title,
            headings=landmarks.get("headings", []),
            buttons=landmarks.get("buttons", []),
            links=landmarks.get("links", []),
        )

    async def get_navigation_candidates(self) -> list[ExplorationCandidate]:
        """
        Visible links and buttons in document order, deduplicated.

        Returns:
            At most ``max_navigation_candidates`` candidates
        """
        if not self.page:
            return []
        raw = await self.page.evaluate(
            NAVIGATION_CANDIDATES_SCRIPT, settings.max_navigation_candidates
        )
        return [ExplorationCandidate(**item) for item in raw]

    # =========================================================================
    # UI Actions
    # =========================================================================

    async def perform_suggested_action(self, action: str) -> ActionResult:
        """
        Click whatever best matches a free-text action.

        Tries the first search result (for "first video" style actions),
        then buttons, links and finally any matching text.
        """
        if not self.page:
            return ActionResult(ok=False, message="Browser not launched")

        candidates = build_action_candidates(action)

        if wants_first_result(action) and await self._try_click_first_result():
            await self.wait_for_idle()
            return ActionResult(ok=True, message="Clicked the first result")

        for pattern in candidates.button_names:
            if await self._try_click_by_role("button", pattern):
                await self.wait_for_idle()
                return ActionResult(ok=True, message=f"Clicked button: {pattern.pattern}")

        for pattern in candidates.link_names:
            if await self._try_click_by_role("link", pattern):
                await self.wait_for_idle()
                return ActionResult(ok=True, message=f"Clicked link: {pattern.pattern}")

        for pattern in candidates.texts:
            if await self._try_click_by_text(pattern):
                await self.wait_for_idle()
                return ActionResult(ok=True, message=f"Clicked element with text: {pattern.pattern}")

        return ActionResult(ok=False, message="No matching UI element found for the suggested action")

    async def perform_planned_action(self, plan: ActionPlan) -> ActionResult:
        """
        Execute an interpreted instruction.

        Args:
            plan: Action plan from the reasoning service

        Returns:
            Outcome with a user-facing message
        """
        if not self.page:
            return ActionResult(ok=False, message="Browser not launched")

        if plan.type == "navigate" and plan.url:
            target = normalize_url(plan.url)
            try:
                await self.navigate(target)
                return ActionResult(ok=True, message=f"Navigated to {target}")
            except Exception:
                return ActionResult(ok=False, message="Failed to navigate to the requested URL")

        if plan.type == "click" and plan.action:
            return await self.perform_suggested_action(plan.action)

        if plan.type == "press" and plan.key:
            try:
                await self.page.keyboard.press(plan.key)
                return ActionResult(ok=True, message=f"Pressed {plan.key}")
            except Exception:
                return ActionResult(ok=False, message=f"Failed to press {plan.key}")

        if plan.type == "type" and plan.value:
            if not await self._try_fill_input(plan.target, plan.value):
                return ActionResult(ok=False, message="No suitable input found to type into")
            if plan.submit:
                try:
                    await self.page.keyboard.press("Enter")
                    return ActionResult(ok=True, message=f'Typed "{plan.value}" and pressed Enter')
                except Exception:
                    pass
            return ActionResult(ok=True, message=f'Typed "{plan.value}"')

        return ActionResult(ok=False, message="No actionable plan was provided")

    async def _click_first_visible(self, locator: Locator) -> bool:
        count = await locator.count()
        for i in range(count):
            item = locator.nth(i)
            if await item.is_visible():
                await item.click(timeout=CLICK_TIMEOUT)
                return True
        return False

    async def _try_click_by_role(self, role: str, name: re.Pattern) -> bool:
        try:
            return await self._click_first_visible(self._require_page().get_by_role(role, name=name))
        except Exception:
            return False

    async def _try_click_by_text(self, text: re.Pattern) -> bool:
        try:
            return await self._click_first_visible(self._require_page().get_by_text(text, exact=False))
        except Exception:
            return False

    async def _try_click_first_result(self) -> bool:
        page = self._require_page()
        for selector in FIRST_RESULT_SELECTORS:
            try:
                if await self._click_first_visible(page.locator(selector)):
                    return True
            except Exception:
                continue
        return False

    async def _try_fill_input(self, target: str | None, value: str) -> bool:
        page = self._require_page()
        locators: list[Locator] = []

        if target:
            name = re.compile(re.escape(target), re.IGNORECASE)
            attr = target.replace('"', '\\"')
            locators.extend([
                page.get_by_role("textbox", name=name),
                page.get_by_role("searchbox", name=name),
                page.get_by_placeholder(name),
                page.get_by_label(name),
                page.locator(f'input[name*="{attr}" i], input[id*="{attr}" i]'),
            ])

        locators.extend([
            page.get_by_role("searchbox"),
            page.locator('input[type="search"]'),
            page.locator('input[placeholder*="Search" i]'),
            page.locator('input[aria-label*="Search" i]'),
            page.locator('input[type="text"]'),
            page.locator("textarea"),
        ])

        for locator in locators:
            try:
                count = await locator.count()
                for i in range(count):
                    item = locator.nth(i)
                    if await item.is_visible():
                        await item.fill(value, timeout=CLICK_TIMEOUT)
                        return True
            except Exception:
                continue
        return False

    # =========================================================================
    # Capture Delegation
    # =========================================================================

    def start_capture(self, base_url: str, include_third_party: bool = False) -> None:
        self.accumulator.start_capture(base_url, include_third_party)

    def stop_capture(self) -> None:
        self.accumulator.stop_capture()

    def captured_calls(self) -> list[CapturedCall]:
        return self.accumulator.captured_calls()

    def set_capture_listener(self, listener: Callable[[CapturedCall], None] | None) -> None:
        self.accumulator.set_capture_listener(listener)

    @property
    def capture_active(self) -> bool:
        return self.accumulator.capture_active
