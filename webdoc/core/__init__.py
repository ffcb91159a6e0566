"""Core module - configuration, models, events, risk and the agent core."""

from .config import settings
from .models import (
    ExecutionMode,
    RiskLevel,
    ApprovalDecision,
    ActionDecision,
    NextStepsDecision,
    DecisionKind,
    CapturedCall,
    Flow,
    FlowStep,
)
from .events import AgentEvent, EventListener, event_adapter
from .risk import assess_risk
from .flow_tracker import FlowTracker
from .agent import Agent
from .guardrails import Guardrails, GuardrailViolation

__all__ = [
    "settings",
    "ExecutionMode",
    "RiskLevel",
    "ApprovalDecision",
    "ActionDecision",
    "NextStepsDecision",
    "DecisionKind",
    "CapturedCall",
    "Flow",
    "FlowStep",
    "AgentEvent",
    "EventListener",
    "event_adapter",
    "assess_risk",
    "FlowTracker",
    "Agent",
    "Guardrails",
    "GuardrailViolation",
]
