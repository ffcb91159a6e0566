"""
Pydantic models for the WebDoc agent.
Defines captured traffic, flows, exploration candidates and reasoning payloads.
"""

from datetime import datetime
from enum import Enum
from typing import Literal, Any
from pydantic import BaseModel, Field


# ==============================================================================
# Enumerations
# ==============================================================================

class ExecutionMode(str, Enum):
    """Process-wide risk gating policy."""
    EXECUTE = "EXECUTE"
    OBSERVE_ONLY = "OBSERVE_ONLY"
    DOCUMENT_ONLY = "DOCUMENT_ONLY"


class RiskLevel(str, Enum):
    """Sensitivity tier of a network call."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ApprovalDecision(str, Enum):
    """Human answer to an approval request."""
    YES = "yes"
    NO = "no"
    DOC = "doc"  # document only, don't continue


class ActionDecision(str, Enum):
    """Human answer to a suggested action."""
    YES = "yes"
    NO = "no"


class NextStepsDecision(str, Enum):
    """Human choice of what to focus on next."""
    ACTIONS = "actions"
    NETWORK = "network"


class DecisionKind(str, Enum):
    """Kinds of decisions the agent can wait on."""
    APPROVAL = "approval"
    ACTION = "action"
    NEXT_STEPS = "next_steps"


# ==============================================================================
# Network Capture
# ==============================================================================

class RequestInfo(BaseModel):
    """Request details recorded when the browser issues a request."""
    method: str
    url: str
    headers: dict[str, str] = Field(default_factory=dict)
    post_data: str | None = None
    resource_type: str = "other"
    timestamp: datetime = Field(default_factory=datetime.now)


class CapturedCall(BaseModel):
    """A request/response pair retained for documentation."""
    method: str
    url: str
    status: int
    request_headers: dict[str, str] = Field(default_factory=dict)
    response_headers: dict[str, str] = Field(default_factory=dict)
    request_body: str | None = None
    response_body: str | None = None
    timestamp: datetime = Field(default_factory=datetime.now)


class NetworkCall(BaseModel):
    """Minimal network call reference attached to flow steps."""
    method: str
    url: str
    status: int
    timestamp: datetime = Field(default_factory=datetime.now)


# ==============================================================================
# Flows
# ==============================================================================

class FlowStep(BaseModel):
    """One step of a user task."""
    name: str
    step: str
    timestamp: datetime = Field(default_factory=datetime.now)
    network_calls: list[NetworkCall] = Field(default_factory=list)
    ui_actions: list[str] = Field(default_factory=list)


class Flow(BaseModel):
    """A named, ordered grouping of steps."""
    name: str
    steps: list[FlowStep] = Field(default_factory=list)
    start_time: datetime = Field(default_factory=datetime.now)
    end_time: datetime | None = None


# ==============================================================================
# Browser Context
# ==============================================================================

class PageContext(BaseModel):
    """Visible text landmarks of the current page."""
    title: str = ""
    headings: list[str] = Field(default_factory=list)
    buttons: list[str] = Field(default_factory=list)
    links: list[str] = Field(default_factory=list)


class ExplorationCandidate(BaseModel):
    """A visible link or button that exploration may visit."""
    label: str
    href: str | None = None
    type: Literal["link", "button"] = "link"

    @property
    def dedup_key(self) -> str:
        return f"{self.type}:{self.label}:{self.href or ''}"


class ActionPlan(BaseModel):
    """A browser action derived from a user instruction."""
    type: Literal["click", "type", "press", "navigate", ""] = ""
    action: str | None = None
    target: str | None = None
    value: str | None = None
    key: str | None = None
    url: str | None = None
    submit: bool | None = None
    reason: str | None = None

    @property
    def is_actionable(self) -> bool:
        """True when the plan carries everything its type needs."""
        if self.type == "click":
            return bool(self.action)
        if self.type == "type":
            return bool(self.value)
        if self.type == "press":
            return bool(self.key)
        if self.type == "navigate":
            return bool(self.url)
        return False

    def describe(self) -> str:
        """One-line description for info events."""
        if self.type == "click":
            detail = f'"{self.action}"'
        elif self.type == "type":
            detail = f'"{self.value}"' + (f" into {self.target}" if self.target else "")
        elif self.type == "navigate":
            detail = self.url or ""
        else:
            detail = self.key or ""
        suffix = f" ({self.reason})" if self.reason else ""
        return f"{self.type} {detail}{suffix}"


class ActionResult(BaseModel):
    """Outcome of a browser action."""
    ok: bool
    message: str


# ==============================================================================
# Reasoning Payloads
# ==============================================================================

class PrioritizedPage(BaseModel):
    """A candidate ranked by the planner."""
    label: str
    priority: Literal["high", "medium", "low"] = "medium"
    reason: str = ""
    expected_apis: str = ""


class SkipReason(BaseModel):
    """A candidate the planner recommends skipping."""
    label: str
    reason: str = ""


class ExplorationPlan(BaseModel):
    """Prioritization plan for an exploration run."""
    app_overview: str = "Unknown application"
    domain: str = "unknown"
    prioritized_pages: list[PrioritizedPage] = Field(default_factory=list)
    skip_reasons: list[SkipReason] = Field(default_factory=list)
    expected_entities: list[str] = Field(default_factory=list)


class ApiAnalysis(BaseModel):
    """Reasoning-service notes about a single endpoint."""
    endpoint: str = ""
    purpose: str = ""
    data_type: str = ""
    notable_patterns: str = ""


class PageInsight(BaseModel):
    """Per-page analysis produced after visiting a candidate."""
    page_type: str = "unknown"
    insight: str = "No insight available."
    apis_analyzed: list[ApiAnalysis] = Field(default_factory=list)
    entities_discovered: list[str] = Field(default_factory=list)
    exploration_value: str = "medium"
    suggested_deep_dive: str | None = None


class ApiRef(BaseModel):
    """Method, URL and status of a call attributed to a page."""
    method: str
    url: str
    status: int


class PageVisit(BaseModel):
    """A page visited during exploration and the calls attributed to it."""
    name: str
    url: str
    apis: list[ApiRef] = Field(default_factory=list)


class ExplorationSummary(BaseModel):
    """Synthesis of a whole exploration run."""
    app_name: str = "Unknown"
    app_domain: str = "unknown"
    summary: str = "Exploration complete."
    top_findings: list[str] = Field(default_factory=list)
    coverage_percent: str = "unknown"
    unexplored_areas: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


class PageSummary(BaseModel):
    """Short description of the current screen plus a follow-up question."""
    summary: str
    question: str


class ExplorationReport(BaseModel):
    """What an exploration run did."""
    plan: ExplorationPlan | None = None
    visits: list[PageVisit] = Field(default_factory=list)
    entities: list[str] = Field(default_factory=list)
    summary: ExplorationSummary | None = None
    cancelled: bool = False


class DocMetadata(BaseModel):
    """Metadata written alongside generated documentation."""
    captured_at: datetime = Field(default_factory=datetime.now)
    source_url: str
    total_calls: int
    unique_endpoints: int
    pages_explored: list[str] | None = None
    session_duration: str = "0m 0s"
    extra: dict[str, Any] = Field(default_factory=dict)
