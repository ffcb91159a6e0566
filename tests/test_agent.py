import asyncio

import pytest

from webdoc.core.agent import Agent
from webdoc.core.events import InfoEvent, event_adapter
from webdoc.core.models import (
    ActionDecision,
    ApprovalDecision,
    DecisionKind,
    ExecutionMode,
    NextStepsDecision,
    RiskLevel,
)


# ==============================================================================
# Event bus
# ==============================================================================

def test_listeners_run_in_registration_order(agent: Agent) -> None:
    seen: list[str] = []
    agent.on_event(lambda e: seen.append("first"))
    agent.on_event(lambda e: seen.append("second"))

    agent.emit(InfoEvent(message="hi"))

    assert seen == ["first", "second"]


def test_subscription_changes_during_emit_apply_from_next_emit(agent: Agent) -> None:
    seen: list[str] = []

    def late(event) -> None:
        seen.append("late")

    def registering(event) -> None:
        seen.append("registering")
        agent.on_event(late)

    agent.on_event(registering)
    agent.emit(InfoEvent(message="one"))
    assert seen == ["registering"]

    agent.emit(InfoEvent(message="two"))
    assert seen == ["registering", "registering", "late"]


def test_off_event_is_noop_for_unknown_listener(agent: Agent) -> None:
    agent.off_event(lambda e: None)
    agent.emit(InfoEvent(message="still fine"))


def test_events_serialize_with_type_tag() -> None:
    payload = InfoEvent(message="hello").model_dump(mode="json")
    assert payload["type"] == "info"

    restored = event_adapter.validate_python(payload)
    assert isinstance(restored, InfoEvent)
    assert restored.message == "hello"


def test_set_mode_emits_mode_change(agent: Agent, events: list) -> None:
    agent.set_mode("EXECUTE")

    assert agent.mode == ExecutionMode.EXECUTE
    assert events[-1].type == "mode_change"
    assert events[-1].mode == ExecutionMode.EXECUTE


def test_set_mode_rejects_unknown_mode(agent: Agent) -> None:
    with pytest.raises(ValueError):
        agent.set_mode("YOLO")


# ==============================================================================
# Decision rendezvous
# ==============================================================================

def test_resolving_with_nothing_pending_is_noop(agent: Agent) -> None:
    assert agent.resolve_approval("yes") is False
    assert agent.resolve_action_decision(ActionDecision.NO) is False
    assert agent.resolve_next_steps("network") is False


def test_invalid_decision_value_raises(agent: Agent) -> None:
    with pytest.raises(ValueError):
        agent.resolve_approval("maybe")


async def test_resolve_unblocks_exactly_one_waiter_in_fifo_order(agent: Agent) -> None:
    first = asyncio.create_task(agent.request_action_decision("Open A"))
    second = asyncio.create_task(agent.request_action_decision("Open B"))
    await asyncio.sleep(0)
    assert agent.pending(DecisionKind.ACTION) == 2

    assert agent.resolve_action_decision("yes") is True
    await asyncio.sleep(0)

    assert first.done() and first.result() == ActionDecision.YES
    assert not second.done()

    agent.resolve_action_decision("no")
    assert await second == ActionDecision.NO
    assert agent.pending(DecisionKind.ACTION) == 0


async def test_kinds_do_not_interfere(agent: Agent) -> None:
    approval = asyncio.create_task(agent.request_approval(
        action="POST /api/checkout",
        method="POST",
        endpoint="/api/checkout",
        risk=RiskLevel.HIGH,
    ))
    await asyncio.sleep(0)

    assert agent.resolve_next_steps("actions") is False
    assert not approval.done()

    agent.resolve_approval(ApprovalDecision.DOC)
    assert await approval == ApprovalDecision.DOC


async def test_listener_may_resolve_synchronously(agent: Agent) -> None:
    def answer(event) -> None:
        if event.type == "next_steps":
            agent.resolve_next_steps("network")

    agent.on_event(answer)

    decision = await agent.request_next_steps("Summary", "Actions or network?")

    assert decision == NextStepsDecision.NETWORK


async def test_cancelled_waiter_is_not_resolved(agent: Agent) -> None:
    waiter = asyncio.create_task(agent.request_action_decision("Open A"))
    await asyncio.sleep(0)
    waiter.cancel()
    with pytest.raises(asyncio.CancelledError):
        await waiter

    assert agent.pending(DecisionKind.ACTION) == 0
    assert agent.resolve_action_decision("yes") is False


async def test_cancel_pending_releases_every_waiter(agent: Agent) -> None:
    waiters = [
        asyncio.create_task(agent.request_action_decision("Open A")),
        asyncio.create_task(agent.request_next_steps("s", "q")),
    ]
    await asyncio.sleep(0)

    assert agent.cancel_pending() == 2
    for waiter in waiters:
        with pytest.raises(asyncio.CancelledError):
            await waiter


# ==============================================================================
# Network risk gate
# ==============================================================================

async def test_high_risk_call_requires_approval_in_observe_only(agent: Agent, events: list) -> None:
    agent.on_event(lambda e: agent.resolve_approval("yes") if e.type == "approval_required" else None)

    decision = await agent.handle_network_call("POST", "https://shop.example.com/api/checkout", 200)

    assert decision == ApprovalDecision.YES
    assert [e.type for e in events] == ["network", "approval_required"]
    assert events[1].risk == RiskLevel.HIGH
    assert events[1].api.method == "POST"


async def test_medium_risk_call_passes_in_observe_only(agent: Agent, events: list) -> None:
    decision = await agent.handle_network_call("PATCH", "https://app.example.com/api/profile", 200)

    assert decision is None
    assert [e.type for e in events] == ["network"]


async def test_medium_risk_call_requires_approval_in_execute() -> None:
    agent = Agent(mode=ExecutionMode.EXECUTE)
    agent.on_event(lambda e: agent.resolve_approval("no") if e.type == "approval_required" else None)

    decision = await agent.handle_network_call("PATCH", "https://app.example.com/api/profile", 200)

    assert decision == ApprovalDecision.NO


async def test_low_risk_call_only_emits_network(agent: Agent, events: list) -> None:
    assert await agent.handle_network_call("GET", "https://app.example.com/products", 200) is None
    assert len(events) == 1
    assert events[0].status == 200
