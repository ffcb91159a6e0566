"""
Reasoning Service - LLM-backed analysis of screens, instructions and traffic.

Every method returns a usable result: when no provider is configured, the
provider raises, or the response can't be interpreted, the matching
deterministic fallback from ``heuristics`` is returned instead.
"""

from typing import Any

from ..core.models import (
    ActionPlan,
    ApiAnalysis,
    ApiRef,
    CapturedCall,
    ExplorationCandidate,
    ExplorationPlan,
    ExplorationSummary,
    PageContext,
    PageInsight,
    PageSummary,
    PageVisit,
    PrioritizedPage,
    SkipReason,
)
from . import heuristics
from .prompts import (
    ANALYST_SYSTEM_PROMPT,
    WELCOME_PROMPT,
    CANNOT_ACT_SCHEMA,
    EXPLORATION_PLAN_SCHEMA,
    EXPLORATION_SUMMARY_SCHEMA,
    INSTRUCTION_SCHEMA,
    PAGE_INSIGHT_SCHEMA,
    PAGE_SUMMARY_SCHEMA,
    api_documentation_prompt,
    cannot_act_prompt,
    exploration_plan_prompt,
    exploration_summary_prompt,
    instruction_prompt,
    page_insight_prompt,
    page_summary_prompt,
)
from .provider import LLMProvider


MAX_DOC_CALLS = 60
PRIORITIES = ("high", "medium", "low")


def _str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value if v is not None]


def _priority(value: Any) -> str:
    priority = str(value or "medium").lower()
    return priority if priority in PRIORITIES else "medium"


def _dict_list(value: Any) -> list[dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, dict)]


class ReasoningService:
    """
    Wraps an ``LLMProvider`` with the prompts and JSON shapes used by the
    exploration orchestrator and the supervisor.

    Args:
        llm: Provider to call, or None to always use fallbacks
        temperature: Sampling temperature for structured calls
    """

    def __init__(self, llm: LLMProvider | None = None, temperature: float = 0.2):
        self.llm = llm
        self.temperature = temperature

    @property
    def available(self) -> bool:
        return self.llm is not None

    async def _structured(
        self,
        prompt: str,
        schema: dict[str, Any],
        screenshot: bytes | None = None,
    ) -> dict[str, Any]:
        if self.llm is None:
            raise RuntimeError("No LLM provider configured")
        return await self.llm.invoke_with_structured_output(
            prompt,
            output_schema=schema,
            system_prompt=ANALYST_SYSTEM_PROMPT,
            temperature=self.temperature,
            images=[screenshot] if screenshot else None,
        )

    # =========================================================================
    # Conversation
    # =========================================================================

    async def get_welcome_message(self) -> str:
        try:
            if self.llm is None:
                return heuristics.WELCOME_MESSAGE
            response = await self.llm.invoke(WELCOME_PROMPT, temperature=0.7, max_tokens=200)
            message = response.content.strip()
            return message or heuristics.WELCOME_MESSAGE
        except Exception:
            return heuristics.WELCOME_MESSAGE

    async def get_page_summary(
        self,
        screenshot: bytes | None,
        url: str,
        context: PageContext,
    ) -> PageSummary:
        """
        Describe the current screen and ask what to focus on next.

        Generic or empty answers fall back to a landmark-based summary.
        """
        try:
            parsed = await self._structured(
                page_summary_prompt(url, context), PAGE_SUMMARY_SCHEMA, screenshot
            )
            summary = str(parsed.get("summary") or "").strip()
            question = str(parsed.get("question") or "").strip()
            if not summary or not question or heuristics.is_generic_summary(summary):
                return heuristics.fallback_page_summary(context)
            return PageSummary(summary=summary, question=question)
        except Exception:
            return heuristics.fallback_page_summary(context)

    async def interpret_instruction(
        self,
        screenshot: bytes | None,
        url: str,
        context: PageContext,
        instruction: str,
    ) -> ActionPlan:
        """
        Turn a free-text instruction into one browser action.

        Args:
            screenshot: Current page PNG
            url: Current page URL
            context: Visible page landmarks
            instruction: What the user typed

        Returns:
            Action plan; regex heuristics are used when the model gives
            nothing actionable
        """
        try:
            parsed = await self._structured(
                instruction_prompt(url, context, instruction), INSTRUCTION_SCHEMA, screenshot
            )
            plan_type = parsed.get("type") or ""
            if plan_type not in ("click", "type", "press", "navigate"):
                return heuristics.plan_from_instruction(instruction)
            plan = ActionPlan(
                type=plan_type,
                action=parsed.get("action") or None,
                target=parsed.get("target") or None,
                value=parsed.get("value") or None,
                key=parsed.get("key") or None,
                url=parsed.get("url") or None,
                submit=bool(parsed.get("submit")) if parsed.get("submit") is not None else None,
                reason=parsed.get("reason") or None,
            )
            if not plan.is_actionable:
                return heuristics.plan_from_instruction(instruction)
            return plan
        except Exception:
            return heuristics.plan_from_instruction(instruction)

    async def get_cannot_act_message(
        self,
        screenshot: bytes | None,
        url: str,
        context: PageContext,
        instruction: str,
    ) -> str:
        try:
            parsed = await self._structured(
                cannot_act_prompt(url, context, instruction), CANNOT_ACT_SCHEMA, screenshot
            )
            message = str(parsed.get("message") or "").strip()
            return message or heuristics.fallback_cannot_act(context, instruction)
        except Exception:
            return heuristics.fallback_cannot_act(context, instruction)

    # =========================================================================
    # Exploration
    # =========================================================================

    async def get_exploration_plan(
        self,
        screenshot: bytes | None,
        url: str,
        context: PageContext,
        candidates: list[ExplorationCandidate],
    ) -> ExplorationPlan:
        """
        Rank navigation candidates for API discovery.

        Returns:
            Plan; on failure every candidate is ranked medium
        """
        try:
            parsed = await self._structured(
                exploration_plan_prompt(url, context, candidates),
                EXPLORATION_PLAN_SCHEMA,
                screenshot,
            )
            pages = [
                PrioritizedPage(
                    label=str(p["label"]),
                    priority=_priority(p.get("priority")),
                    reason=str(p.get("reason") or ""),
                    expected_apis=str(p.get("expectedApis") or ""),
                )
                for p in _dict_list(parsed.get("prioritizedPages"))
                if p.get("label")
            ]
            skips = [
                SkipReason(label=str(s["label"]), reason=str(s.get("reason") or ""))
                for s in _dict_list(parsed.get("skipReasons"))
                if s.get("label")
            ]
            return ExplorationPlan(
                app_overview=parsed.get("appOverview") or "Unknown application",
                domain=parsed.get("domain") or "unknown",
                prioritized_pages=pages,
                skip_reasons=skips,
                expected_entities=_str_list(parsed.get("expectedEntities")),
            )
        except Exception:
            return heuristics.fallback_exploration_plan(candidates)

    async def get_page_insight(
        self,
        screenshot: bytes | None,
        page_name: str,
        page_url: str,
        context: PageContext,
        apis: list[ApiRef],
    ) -> PageInsight:
        try:
            parsed = await self._structured(
                page_insight_prompt(page_name, page_url, context, apis),
                PAGE_INSIGHT_SCHEMA,
                screenshot,
            )
            return PageInsight(
                page_type=parsed.get("pageType") or "unknown",
                insight=parsed.get("insight") or "No insight available.",
                apis_analyzed=[
                    ApiAnalysis(
                        endpoint=str(a.get("endpoint") or ""),
                        purpose=str(a.get("purpose") or ""),
                        data_type=str(a.get("dataType") or ""),
                        notable_patterns=str(a.get("notablePatterns") or ""),
                    )
                    for a in _dict_list(parsed.get("apisAnalyzed"))
                ],
                entities_discovered=_str_list(parsed.get("entitiesDiscovered")),
                exploration_value=parsed.get("explorationValue") or "medium",
                suggested_deep_dive=parsed.get("suggestedDeepDive") or None,
            )
        except Exception:
            return heuristics.fallback_page_insight(page_name, apis)

    async def get_exploration_summary(
        self,
        base_url: str,
        pages: list[PageVisit],
        total_unique_apis: int,
    ) -> ExplorationSummary:
        try:
            parsed = await self._structured(
                exploration_summary_prompt(base_url, pages, total_unique_apis),
                EXPLORATION_SUMMARY_SCHEMA,
            )
            return ExplorationSummary(
                app_name=parsed.get("appName") or "Unknown",
                app_domain=parsed.get("appDomain") or "unknown",
                summary=parsed.get("summary") or "Exploration complete.",
                top_findings=_str_list(parsed.get("topFindings")),
                coverage_percent=str(parsed.get("coveragePercent") or "unknown"),
                unexplored_areas=_str_list(parsed.get("unexploredAreas")),
                recommendations=_str_list(parsed.get("recommendations")),
            )
        except Exception:
            return heuristics.fallback_exploration_summary(pages, total_unique_apis)

    # =========================================================================
    # Documentation
    # =========================================================================

    async def generate_api_documentation(
        self,
        calls: list[CapturedCall],
        base_url: str,
    ) -> str:
        """
        Write Markdown API documentation for captured calls.

        At most ``MAX_DOC_CALLS`` calls are sent to the model, with header
        values redacted.

        Returns:
            Markdown text (header-level fallback on failure)
        """
        try:
            if self.llm is None:
                return heuristics.fallback_api_documentation(calls, base_url)
            trimmed = [
                {
                    "method": call.method,
                    "url": call.url,
                    "status": call.status,
                    "requestHeaders": heuristics.redact_headers(call.request_headers),
                    "responseHeaders": heuristics.redact_headers(call.response_headers),
                    "requestBody": call.request_body,
                    "responseBody": call.response_body,
                }
                for call in calls[:MAX_DOC_CALLS]
            ]
            response = await self.llm.invoke(
                api_documentation_prompt(base_url, trimmed),
                system_prompt=ANALYST_SYSTEM_PROMPT,
                temperature=self.temperature,
            )
            markdown = response.content.strip()
            return markdown or heuristics.fallback_api_documentation(calls, base_url)
        except Exception:
            return heuristics.fallback_api_documentation(calls, base_url)
