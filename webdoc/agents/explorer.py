"""
Explorer Agent - autonomous, budgeted exploration of visible navigation.

Plans a visit order with the reasoning service, visits candidates one at a
time, attributes newly captured API calls to each page, and finishes with
a synthesis of everything found. Destructive controls are never clicked
and off-site navigation waits for a human decision.
"""

import asyncio
from urllib.parse import urlparse

from .base import BaseAgent
from .interceptor import CaptureSession
from ..browser.manager import BrowserManager
from ..core.agent import Agent
from ..core.config import settings
from ..core.events import (
    ExplorationInsightEvent,
    ExplorationSummaryEvent,
    FlowEvent,
)
from ..core.guardrails import Guardrails
from ..core.models import (
    ActionDecision,
    ApiRef,
    ExplorationCandidate,
    ExplorationPlan,
    ExplorationReport,
    ExplorationSummary,
    NetworkCall,
    PageContext,
    PageVisit,
)
from ..llm.reasoning import ReasoningService
from ..utils.urls import api_key


def order_candidates(
    candidates: list[ExplorationCandidate],
    plan: ExplorationPlan,
) -> list[ExplorationCandidate]:
    """
    Order candidates by plan priority.

    High, then medium, then low plan entries (each in plan order) are matched
    to candidates by case-insensitive label; remaining candidates follow in
    discovery order. Every label is used at most once.

    Args:
        candidates: Candidates in discovery order
        plan: Exploration plan

    Returns:
        Visit order
    """
    ordered: list[ExplorationCandidate] = []
    used: set[str] = set()

    for priority in ("high", "medium", "low"):
        for page in plan.prioritized_pages:
            if page.priority != priority:
                continue
            wanted = page.label.lower()
            for candidate in candidates:
                key = candidate.label.lower()
                if key == wanted and key not in used:
                    ordered.append(candidate)
                    used.add(key)
                    break

    for candidate in candidates:
        key = candidate.label.lower()
        if key not in used:
            ordered.append(candidate)
            used.add(key)

    return ordered


def describe_api(method: str, url: str) -> str:
    """``METHOD /path`` for insight events."""
    try:
        path = urlparse(url).path
    except ValueError:
        path = ""
    return f"{method} {path or url}"


class ExplorationOrchestrator(BaseAgent):
    """
    Runs one exploration pass over the current page's navigation.

    Args:
        agent: Agent core (events, decisions, flow tracker)
        browser: Browser driver
        reasoning: Reasoning service for plan, insight and summary
        session: Session accumulator used for the unique endpoint count
        budget: Maximum successful visits (defaults to config)
        settle_seconds: Wait after navigating (defaults to config)
        return_settle_seconds: Wait after returning (defaults to config)
    """

    def __init__(
        self,
        agent: Agent,
        browser: BrowserManager,
        reasoning: ReasoningService | None = None,
        session: CaptureSession | None = None,
        budget: int | None = None,
        settle_seconds: float | None = None,
        return_settle_seconds: float | None = None,
    ):
        super().__init__("explorer", agent, reasoning)
        self.browser = browser
        self.session = session
        self.budget = budget if budget is not None else settings.max_exploration_pages
        self.settle_seconds = (
            settle_seconds if settle_seconds is not None else settings.explore_settle_seconds
        )
        self.return_settle_seconds = (
            return_settle_seconds
            if return_settle_seconds is not None
            else settings.explore_return_settle_seconds
        )

    async def explore(self, cancel: asyncio.Event | None = None) -> ExplorationReport:
        """
        Explore visible navigation from the current page.

        Args:
            cancel: Set to stop before the next candidate

        Returns:
            What was planned, visited and concluded
        """
        report = ExplorationReport()
        base_url = self.browser.current_url
        candidates = await self.browser.get_navigation_candidates()

        if not candidates:
            self.notify("No visible navigation items found.")
            return report

        # Phase 1: plan
        plan = await self._plan(base_url, candidates)
        report.plan = plan

        guardrails = Guardrails(base_url, authorized_domains=[])
        skip_labels = {s.label.lower() for s in plan.skip_reasons}
        ordered = order_candidates(candidates, plan)

        flow = self.agent.flow_tracker.start_flow(f"Exploration of {urlparse(base_url).hostname or base_url}")

        # Phase 2: visit
        visited_hrefs: set[str] = set()
        entities: list[str] = []

        for candidate in ordered:
            if len(report.visits) >= self.budget:
                break
            if cancel is not None and cancel.is_set():
                report.cancelled = True
                self.notify("Exploration cancelled.")
                break

            if guardrails.is_unsafe_label(candidate.label):
                self.log(f"Never visiting unsafe control \"{candidate.label}\"")
                continue

            risky = guardrails.is_risky_navigation(candidate)
            if candidate.label.lower() in skip_labels and not risky:
                self.notify(f'Skipping "{candidate.label}" (low API value).')
                continue

            if candidate.href and candidate.href in visited_hrefs:
                continue

            if risky:
                decision = await self.agent.request_action_decision(
                    action=f'Open "{candidate.label}"',
                    reason=candidate.href or "Visible button",
                )
                if decision != ActionDecision.YES:
                    continue

            visited = await self._visit(candidate, base_url, visited_hrefs)
            if visited is None:
                continue

            visit, discovered = visited
            report.visits.append(visit)
            for entity in discovered:
                if entity not in entities:
                    entities.append(entity)

            try:
                await self.browser.go_back_or_navigate(base_url)
            except Exception as e:
                self.log(f"Return navigation error after \"{candidate.label}\": {e}")
                self.notify(f'Could not return from "{candidate.label}". Continuing.')
            await asyncio.sleep(self.return_settle_seconds)

        report.entities = entities
        self.agent.flow_tracker.end_flow()
        self.log(f"Flow '{flow.name}' finished with {len(flow.steps)} step(s)")

        # Phase 3: summarize
        if report.visits:
            report.summary = await self._summarize(base_url, report.visits)

        return report

    # =========================================================================
    # Phases
    # =========================================================================

    async def _plan(self, base_url: str, candidates: list[ExplorationCandidate]) -> ExplorationPlan:
        async with self.thinking("Analyzing navigation candidates and planning exploration..."):
            screenshot, context = await self._inspect()
            plan = await self.reasoning.get_exploration_plan(
                screenshot, base_url, context, candidates
            )

        self.notify(f"Application: {plan.app_overview} ({plan.domain})")
        if plan.expected_entities:
            self.notify(f"Expected entities: {', '.join(plan.expected_entities)}")

        high = [p for p in plan.prioritized_pages if p.priority == "high"]
        if high:
            labels = ", ".join(f'"{p.label}"' for p in high)
            self.notify(f"High-priority pages: {labels}")

        return plan

    async def _visit(
        self,
        candidate: ExplorationCandidate,
        base_url: str,
        visited_hrefs: set[str],
    ) -> tuple[PageVisit, list[str]] | None:
        """
        Navigate to one candidate and analyze what it triggered.

        Returns:
            The visit and the entities it revealed, or None if navigation failed
        """
        watermark = len(self.browser.captured_calls())

        self.notify(f'Exploring "{candidate.label}"...')

        page_url = base_url
        try:
            if candidate.href:
                await self.browser.navigate_soft(candidate.href)
                visited_hrefs.add(candidate.href)
                page_url = candidate.href
            else:
                await self.browser.perform_suggested_action(candidate.label)
                page_url = self.browser.current_url or base_url
        except Exception as e:
            self.log(f"Navigation error for \"{candidate.label}\": {e}")
            self.notify(f'Navigation failed for "{candidate.label}". Skipping.')
            return None

        await asyncio.sleep(self.settle_seconds)

        new_calls = self.browser.captured_calls()[watermark:]
        apis = [ApiRef(method=c.method, url=c.url, status=c.status) for c in new_calls]

        async with self.thinking(f'Analyzing "{candidate.label}"...'):
            screenshot, context = await self._inspect()
            insight = await self.reasoning.get_page_insight(
                screenshot, candidate.label, page_url, context, apis
            )

        if self.session is not None:
            self.session.pages_explored.append(candidate.label)

        step = f'Visited "{candidate.label}"'
        self.agent.flow_tracker.add_step(
            step,
            network_calls=[
                NetworkCall(method=c.method, url=c.url, status=c.status, timestamp=c.timestamp)
                for c in new_calls
            ],
            ui_actions=[candidate.label],
        )
        current = self.agent.flow_tracker.current_flow
        self.agent.emit(FlowEvent(name=current.name if current else "", step=step))

        self.agent.emit(ExplorationInsightEvent(
            page=candidate.label,
            apis_found=len(apis),
            insight=insight.insight,
            apis=tuple(describe_api(a.method, a.url) for a in apis) if apis else None,
        ))

        visit = PageVisit(name=candidate.label, url=page_url, apis=apis)
        return visit, list(insight.entities_discovered)

    async def _summarize(self, base_url: str, visits: list[PageVisit]) -> ExplorationSummary:
        if self.session is not None:
            total_unique = self.session.unique_count
        else:
            total_unique = len({api_key(a.method, a.url) for v in visits for a in v.apis})

        async with self.thinking("Synthesizing exploration findings..."):
            summary = await self.reasoning.get_exploration_summary(base_url, visits, total_unique)

        self.agent.emit(ExplorationSummaryEvent(
            total_pages=len(visits),
            total_apis=total_unique,
            summary=summary.summary,
            top_findings=tuple(summary.top_findings),
        ))

        if summary.recommendations:
            self.notify(f"Recommendations: {' | '.join(summary.recommendations)}")
        if summary.unexplored_areas:
            self.notify(f"Unexplored areas: {', '.join(summary.unexplored_areas)}")

        return summary

    async def _inspect(self) -> tuple[bytes | None, PageContext]:
        """Screenshot and page context; failures degrade to empty values."""
        try:
            screenshot = await self.browser.take_screenshot()
            context = await self.browser.get_page_context()
            return screenshot, context
        except Exception as e:
            self.notify(f"Could not inspect the current page: {e}")
            return None, PageContext()
