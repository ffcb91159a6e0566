"""
Agent event model.
Every event is an immutable pydantic model tagged by its ``type`` field.
"""

from datetime import datetime
from typing import Annotated, Callable, Literal, Union
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from .models import ExecutionMode, RiskLevel


class BaseEvent(BaseModel):
    """Common fields for all agent events."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(default_factory=datetime.now)


class InfoEvent(BaseEvent):
    type: Literal["info"] = "info"
    message: str


class UIActionEvent(BaseEvent):
    type: Literal["ui_action"] = "ui_action"
    label: str
    action: str | None = None


class NetworkEvent(BaseEvent):
    type: Literal["network"] = "network"
    method: str
    url: str
    status: int


class ApprovalApi(BaseModel):
    """The API call an approval request refers to."""

    model_config = ConfigDict(frozen=True)

    method: str
    endpoint: str
    preview: str | None = None


class ApprovalRequiredEvent(BaseEvent):
    type: Literal["approval_required"] = "approval_required"
    action: str
    api: ApprovalApi
    risk: RiskLevel


class ActionSuggestionEvent(BaseEvent):
    type: Literal["action_suggestion"] = "action_suggestion"
    action: str
    reason: str | None = None


class NextStepsEvent(BaseEvent):
    type: Literal["next_steps"] = "next_steps"
    summary: str
    question: str


class FlowEvent(BaseEvent):
    type: Literal["flow"] = "flow"
    name: str
    step: str


class ModeChangeEvent(BaseEvent):
    type: Literal["mode_change"] = "mode_change"
    mode: ExecutionMode


class ExplorationInsightEvent(BaseEvent):
    type: Literal["exploration_insight"] = "exploration_insight"
    page: str
    apis_found: int
    insight: str
    apis: tuple[str, ...] | None = None


class ExplorationSummaryEvent(BaseEvent):
    type: Literal["exploration_summary"] = "exploration_summary"
    total_pages: int
    total_apis: int
    summary: str
    top_findings: tuple[str, ...] = ()


class LLMStatusEvent(BaseEvent):
    type: Literal["llm_status"] = "llm_status"
    status: Literal["thinking", "idle"]
    message: str | None = None


class UserPromptEvent(BaseEvent):
    type: Literal["user_prompt"] = "user_prompt"
    prompt: str


class DocumentationEvent(BaseEvent):
    type: Literal["documentation"] = "documentation"
    format: Literal["markdown", "openapi"]
    path: str


AgentEvent = Annotated[
    Union[
        InfoEvent,
        UIActionEvent,
        NetworkEvent,
        ApprovalRequiredEvent,
        ActionSuggestionEvent,
        NextStepsEvent,
        FlowEvent,
        ModeChangeEvent,
        ExplorationInsightEvent,
        ExplorationSummaryEvent,
        LLMStatusEvent,
        UserPromptEvent,
        DocumentationEvent,
    ],
    Field(discriminator="type"),
]

EventListener = Callable[[AgentEvent], None]

# Parses wire payloads back into the matching event class
event_adapter: TypeAdapter[AgentEvent] = TypeAdapter(AgentEvent)
