"""
Deterministic fallbacks for every reasoning call.

Used whenever no LLM is configured, the provider errors, or the model
returns something unusable. None of these functions raise.
"""

import re

from ..core.models import (
    ActionPlan,
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
)
from ..utils.urls import safe_path


WELCOME_MESSAGE = (
    "Hello! I'm ready to observe UI actions and network calls, "
    "with human approvals for anything sensitive."
)

NEXT_STEPS_QUESTION = "Should I suggest actions to perform, or focus on network logs only?"

GENERIC_SUMMARY_PATTERN = re.compile(r"viewing a web page|web page", re.IGNORECASE)

EMAIL_PATTERN = re.compile(r"([a-z0-9._%+-]+@[a-z0-9.-]+\.[a-z]{2,})", re.IGNORECASE)
PASSWORD_PATTERNS = (
    re.compile(r"password\s+is\s+([^\s]+)", re.IGNORECASE),
    re.compile(r"type\s+([^\s]+)\s+in\s+password", re.IGNORECASE),
)
URL_PATTERN = re.compile(r"((https?://)?([a-z0-9-]+\.)+[a-z]{2,}(/[^\s]*)?)", re.IGNORECASE)
NAVIGATE_VERB_PATTERN = re.compile(r"(go to|open|navigate)\s+", re.IGNORECASE)
TYPE_IN_FIELD_PATTERN = re.compile(r"type\s+(.+?)\s+in\s+(.+)", re.IGNORECASE)
SEARCH_PATTERNS = (
    re.compile(r"search(?:\s+for)?\s+(.+)", re.IGNORECASE),
    re.compile(r"type\s+(.+?)\s+in\s+the\s+search", re.IGNORECASE),
    re.compile(r"type\s+(.+?)$", re.IGNORECASE),
)
FIRST_RESULT_PATTERN = re.compile(
    r"(first\s+video|first\s+result|first\s+item|first\s+image|first\s+thumbnail|play\s+first)",
    re.IGNORECASE,
)
LOGIN_PATTERN = re.compile(r"(log\s*in|login|sign\s*in)", re.IGNORECASE)

DOC_HEADER_ALLOWLIST = (
    "content-type",
    "authorization",
    "x-api-key",
    "x-request-id",
    "set-cookie",
    "cookie",
)


# ==============================================================================
# Screen Descriptions
# ==============================================================================

def is_generic_summary(summary: str) -> bool:
    """True for summaries too vague to show the user."""
    return bool(GENERIC_SUMMARY_PATTERN.search(summary)) or len(summary) < 20


def fallback_page_summary(context: PageContext) -> PageSummary:
    """Describe the page from its visible landmarks."""
    title = context.title or "this page"
    heading = (
        f'Headings like "{context.headings[0]}"' if context.headings else "No visible headings"
    )
    button = f'Buttons like "{context.buttons[0]}"' if context.buttons else "no obvious buttons"
    link = f'links like "{context.links[0]}"' if context.links else "no obvious links"

    return PageSummary(
        summary=(
            f'You\'re on "{title}". {heading} are visible, with {button} and {link}. '
            "Likely next actions include signing in, exploring content, "
            "or navigating to a section."
        ),
        question=NEXT_STEPS_QUESTION,
    )


def fallback_cannot_act(context: PageContext, instruction: str) -> str:
    """Explain that nothing visible matches the instruction."""
    title = context.title or "this page"
    details: list[str] = []
    if context.headings:
        details.append(f'headings like "{context.headings[0]}"')
    if context.buttons:
        details.append(f'buttons like "{context.buttons[0]}"')
    if context.links:
        details.append(f'links like "{context.links[0]}"')
    if not details:
        details.append("no obvious headings, buttons, or links")

    return " ".join([
        f'Sorry, I couldn\'t find a visible control to "{instruction}".',
        f'I can see "{title}" with',
        ", ".join(details) + ".",
        "Try telling me exactly which button or link to click.",
    ])


# ==============================================================================
# Instruction Interpretation
# ==============================================================================

def plan_from_instruction(instruction: str) -> ActionPlan:
    """
    Map a free-text instruction onto a single browser action with regexes.

    Rules are tried in order; the first match wins. An instruction nothing
    matches yields a non-actionable plan (``type == ""``).
    """
    lower = instruction.lower()

    email = EMAIL_PATTERN.search(instruction)
    if email:
        return ActionPlan(
            type="type",
            target="email",
            value=email.group(1),
            submit=False,
            reason="Detected an email address in the instruction.",
        )

    for pattern in PASSWORD_PATTERNS:
        password = pattern.search(lower)
        if password and password.group(1):
            return ActionPlan(
                type="type",
                target="password",
                value=password.group(1),
                submit=False,
                reason="Detected a password instruction.",
            )

    url = URL_PATTERN.search(instruction)
    if url and NAVIGATE_VERB_PATTERN.search(lower):
        return ActionPlan(
            type="navigate",
            url=url.group(1),
            reason="Instruction appears to be navigation.",
        )
    if url and not re.search(r"\s", url.group(1)):
        return ActionPlan(
            type="navigate",
            url=url.group(1),
            reason="Detected a URL in the instruction.",
        )

    in_field = TYPE_IN_FIELD_PATTERN.search(instruction)
    if in_field:
        return ActionPlan(
            type="type",
            target=in_field.group(2).strip(),
            value=in_field.group(1).strip(),
            submit=False,
            reason="Instruction specifies a field to type into.",
        )

    for pattern in SEARCH_PATTERNS:
        search = pattern.search(lower)
        if search and search.group(1):
            return ActionPlan(
                type="type",
                target="search",
                value=search.group(1).strip(),
                submit=True,
                reason="Instruction appears to be a search.",
            )

    if FIRST_RESULT_PATTERN.search(lower):
        return ActionPlan(
            type="click",
            action="first video",
            reason="Instruction asks for the first result.",
        )

    if "press enter" in lower:
        return ActionPlan(type="press", key="Enter", reason="Instruction asks to press Enter.")

    if LOGIN_PATTERN.search(lower):
        return ActionPlan(type="click", action="Log in", reason="Instruction implies login/sign-in.")

    return ActionPlan(type="", action="", reason="LLM could not interpret the instruction.")


# ==============================================================================
# Exploration
# ==============================================================================

def fallback_exploration_plan(candidates: list[ExplorationCandidate]) -> ExplorationPlan:
    """Uniform plan: every candidate medium, nothing skipped."""
    return ExplorationPlan(
        app_overview="Could not analyze the application",
        domain="unknown",
        prioritized_pages=[
            PrioritizedPage(
                label=c.label,
                priority="medium",
                reason="Default priority (LLM analysis unavailable)",
                expected_apis="unknown",
            )
            for c in candidates
        ],
    )


def fallback_page_insight(page_name: str, apis: list[ApiRef]) -> PageInsight:
    return PageInsight(
        page_type="unknown",
        insight=f'Visited "{page_name}" — {len(apis)} API call(s) captured.',
    )


def fallback_exploration_summary(pages: list[PageVisit], total_unique_apis: int) -> ExplorationSummary:
    return ExplorationSummary(
        summary=f"Explored {len(pages)} pages, discovered {total_unique_apis} unique API endpoints.",
    )


# ==============================================================================
# API Documentation
# ==============================================================================

def redact_headers(headers: dict[str, str]) -> dict[str, str]:
    """Keep only allowlisted header names, with values redacted."""
    return {
        key.lower(): "<redacted>"
        for key in (headers or {})
        if key.lower() in DOC_HEADER_ALLOWLIST
    }


def fallback_api_documentation(calls: list[CapturedCall], base_url: str) -> str:
    """
    Header-level Markdown documentation grouped by ``METHOD path``.

    The first call of each group supplies its status; header names are
    merged across the group.
    """
    groups: dict[str, dict] = {}
    for call in calls:
        path = safe_path(call.url)
        key = f"{call.method} {path}"
        group = groups.setdefault(key, {
            "method": call.method,
            "path": path,
            "status": call.status,
            "request_headers": set(),
            "response_headers": set(),
        })
        group["request_headers"].update(h.lower() for h in call.request_headers)
        group["response_headers"].update(h.lower() for h in call.response_headers)

    lines = ["# API Documentation", "", f"Base URL: {base_url}", "", "## Endpoints"]
    for group in groups.values():
        request_headers = sorted(group["request_headers"])
        response_headers = sorted(group["response_headers"])
        lines.append(f"- `{group['method']} {group['path']}` (status {group['status']})")
        lines.append(
            f"  - Request headers: {', '.join(request_headers) if request_headers else 'Not observed'}"
        )
        lines.append(
            f"  - Response headers: {', '.join(response_headers) if response_headers else 'Not observed'}"
        )
    return "\n".join(lines)
