"""
Prompt templates and output schemas for the reasoning service.
"""

import json
from typing import Any

from ..core.models import ApiRef, ExplorationCandidate, PageContext, PageVisit


ANALYST_SYSTEM_PROMPT = """You are a senior web application analyst helping a developer reverse-engineer and document a web application's API by observing a live browser session.

RULES:
- Be specific and technical: name pages, entities and endpoint paths
- Base every claim on the screenshot, page context and observed traffic
- Never suggest destructive actions (delete, logout, payment, checkout)
- Respond in the exact JSON format requested"""


WELCOME_PROMPT = """You are the WebDoc Agent, a developer copilot that reverse-engineers web applications by observing real browser behavior.

Write a short, confident welcome message (2-3 sentences max).
- Mention you observe UI interactions and network calls in real time
- Emphasize you are human-in-the-loop and the developer stays in control
- Sound like a sharp senior engineer, not a chatbot

Return plain text only. No markdown, no quotes."""


# ==============================================================================
# Output Schemas
# ==============================================================================

PAGE_SUMMARY_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "summary": {"type": "string"},
        "question": {"type": "string"},
    },
    "required": ["summary", "question"],
}

INSTRUCTION_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "type": {"type": "string", "enum": ["click", "type", "press", "navigate", ""]},
        "action": {"type": "string"},
        "target": {"type": "string"},
        "value": {"type": "string"},
        "key": {"type": "string"},
        "url": {"type": "string"},
        "submit": {"type": "boolean"},
        "reason": {"type": "string"},
    },
    "required": ["type", "reason"],
}

CANNOT_ACT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {"message": {"type": "string"}},
    "required": ["message"],
}

EXPLORATION_PLAN_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "appOverview": {"type": "string"},
        "domain": {"type": "string"},
        "prioritizedPages": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "label": {"type": "string"},
                    "priority": {"type": "string", "enum": ["high", "medium", "low"]},
                    "reason": {"type": "string"},
                    "expectedApis": {"type": "string"},
                },
                "required": ["label", "priority"],
            },
        },
        "skipReasons": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "label": {"type": "string"},
                    "reason": {"type": "string"},
                },
                "required": ["label"],
            },
        },
        "expectedEntities": {"type": "array", "items": {"type": "string"}},
    },
    "required": ["appOverview", "prioritizedPages"],
}

PAGE_INSIGHT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "pageType": {"type": "string"},
        "insight": {"type": "string"},
        "apisAnalyzed": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "endpoint": {"type": "string"},
                    "purpose": {"type": "string"},
                    "dataType": {"type": "string"},
                    "notablePatterns": {"type": "string"},
                },
            },
        },
        "entitiesDiscovered": {"type": "array", "items": {"type": "string"}},
        "explorationValue": {"type": "string", "enum": ["high", "medium", "low"]},
        "suggestedDeepDive": {"type": ["string", "null"]},
    },
    "required": ["pageType", "insight"],
}

EXPLORATION_SUMMARY_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "appName": {"type": "string"},
        "appDomain": {"type": "string"},
        "summary": {"type": "string"},
        "topFindings": {"type": "array", "items": {"type": "string"}},
        "coveragePercent": {"type": "string"},
        "unexploredAreas": {"type": "array", "items": {"type": "string"}},
        "recommendations": {"type": "array", "items": {"type": "string"}},
    },
    "required": ["summary", "topFindings"],
}


# ==============================================================================
# Prompt Builders
# ==============================================================================

def _format_context(context: PageContext) -> str:
    return (
        f"Title: {context.title}\n"
        f"Headings: {' | '.join(context.headings) or '(none)'}\n"
        f"Buttons: {' | '.join(context.buttons) or '(none)'}\n"
        f"Links: {' | '.join(context.links) or '(none)'}"
    )


def page_summary_prompt(url: str, context: PageContext) -> str:
    return f"""Summarize the current screen for a developer who wants to document this application's API.

URL: {url}
{_format_context(context)}

- Identify the application type, brand and the user's state (anonymous, logged in, mid-transaction)
- Predict which visible elements are data-driven and what APIs sit behind them
- Point out a login wall prominently if there is one

"summary": 2-3 specific sentences.
"question": one smart, specific follow-up, e.g. "Should I document the authentication flow first?"."""


def instruction_prompt(url: str, context: PageContext, instruction: str) -> str:
    return f"""Convert the user's instruction into ONE concrete, executable UI action.

URL: {url}
User instruction: "{instruction}"
{_format_context(context)}

Decision order:
1. Instruction names a visible button/link -> click it
2. Instruction describes an intent ("log in") -> click the closest matching element
3. Instruction contains data (email, password, search query) -> type into the right field
4. Instruction asks to go somewhere -> navigate
5. Instruction asks to press a key -> press

For multi-step instructions output ONLY the first step.
- click: type="click", action="visible button/link text"
- type: type="type", target="field label or placeholder", value="text", submit=true/false
- press: type="press", key="Enter|Escape|Tab"
- navigate: type="navigate", url="full URL"
If no action is possible return type="" with a reason."""


def cannot_act_prompt(url: str, context: PageContext, instruction: str) -> str:
    return f"""The user's instruction couldn't be mapped to a visible UI action.

URL: {url}
User instruction: "{instruction}"
{_format_context(context)}

Acknowledge what they wanted, explain specifically why it can't be done right now,
and suggest a concrete alternative naming 2-3 visible controls. 2-3 sentences."""


def exploration_plan_prompt(
    url: str,
    context: PageContext,
    candidates: list[ExplorationCandidate],
) -> str:
    candidate_list = "\n".join(
        f'  {i}. [{c.type}] "{c.label}"' + (f" -> {c.href}" if c.href else "")
        for i, c in enumerate(candidates, start=1)
    )
    return f"""You are planning an automated exploration of a web application to discover its API surface.

Current URL: {url}
Page Context:
  Title: {context.title}
  Headings: {' | '.join(context.headings) or '(none)'}

Navigation Candidates:
{candidate_list}

Rank candidates for maximum API discovery:
- Data-heavy pages (lists, dashboards, analytics) are HIGH priority
- Settings/config pages are MEDIUM
- Static/marketing pages are LOW
List candidates to skip (logout, external links, destructive actions) with a reason,
and the data entities you expect to find. Use candidate labels exactly as given."""


def page_insight_prompt(
    page_name: str,
    page_url: str,
    context: PageContext,
    apis: list[ApiRef],
) -> str:
    api_list = "\n".join(
        f"  - {a.method} {a.url} -> {a.status}" for a in apis
    ) or "  (none captured)"
    return f"""Analyze a page visited during automated exploration.

Page: "{page_name}"
URL: {page_url}
{_format_context(context)}

API Calls Triggered By This Page:
{api_list}

Be fast and insight-dense:
1. What is this page, specifically?
2. For each API call: what data it fetches or modifies, and any notable patterns (pagination, filters, auth)
3. Which entities this page reveals
4. How valuable the page was for API discovery (high/medium/low)"""


def exploration_summary_prompt(
    base_url: str,
    pages: list[PageVisit],
    total_unique_apis: int,
) -> str:
    page_details = "\n\n".join(
        f'Page: "{p.name}" ({p.url})\n  APIs: '
        + (", ".join(f"{a.method} {a.url} -> {a.status}" for a in p.apis) or "none")
        for p in pages
    )
    return f"""You have just completed an automated exploration of a web application. Synthesize what was discovered.

Base URL: {base_url}
Pages Visited: {len(pages)}
Total Unique API Endpoints: {total_unique_apis}

Exploration Details:
{page_details}

Cover the application architecture, the API surface by resource area, the data model,
the authentication pattern, 3-5 key findings, a coverage estimate, areas left
unexplored and concrete recommendations for manual follow-up."""


def api_documentation_prompt(base_url: str, calls: list[dict[str, Any]]) -> str:
    return f"""Generate developer-facing Markdown API documentation from observed browser network traffic.

Base URL: {base_url}

Observed calls (headers redacted):
```json
{json.dumps(calls, indent=2)}
```

Structure:
# API Documentation
## Overview (what the API does, auth mechanism observed)
## Endpoints, grouped by resource; for each: method and path, purpose,
   query/body parameters, example response shape, status codes observed
## Data Model (entities and relationships)
## Notes (pagination, rate limiting, error format, anything unusual)

Only document what the traffic shows. Return Markdown only."""
