"""
Agent Core - event dispatch, human decision rendezvous and execution mode.

This is the single point of event dispatch and the only place that
suspends waiting on a human. Decisions are queued per kind: each request
gets its own future and ``resolve_*`` settles the oldest outstanding one,
so a second request never orphans the first.
"""

import asyncio
from collections import deque
from datetime import datetime

from .events import (
    AgentEvent,
    EventListener,
    ApprovalApi,
    ApprovalRequiredEvent,
    ActionSuggestionEvent,
    NextStepsEvent,
    ModeChangeEvent,
    NetworkEvent,
)
from .flow_tracker import FlowTracker
from .models import (
    ActionDecision,
    ApprovalDecision,
    DecisionKind,
    ExecutionMode,
    NextStepsDecision,
    RiskLevel,
)
from .risk import assess_risk


class Agent:
    """
    Event bus plus decision rendezvous.

    Listeners are plain callables invoked synchronously, in registration
    order, over a snapshot of the listener list taken when ``emit`` is called.
    """

    def __init__(
        self,
        mode: ExecutionMode = ExecutionMode.OBSERVE_ONLY,
        flow_tracker: FlowTracker | None = None,
    ):
        """
        Initialize the agent core.

        Args:
            mode: Initial execution mode
            flow_tracker: Flow tracker to own (a fresh one by default)
        """
        self._mode = mode
        self._listeners: list[EventListener] = []
        self._pending: dict[DecisionKind, deque[asyncio.Future]] = {
            kind: deque() for kind in DecisionKind
        }
        self.flow_tracker = flow_tracker or FlowTracker()

    # =========================================================================
    # Event Bus
    # =========================================================================

    def on_event(self, listener: EventListener) -> None:
        """Subscribe a listener."""
        self._listeners.append(listener)

    def off_event(self, listener: EventListener) -> None:
        """Unsubscribe a listener (no-op if not subscribed)."""
        self._listeners = [l for l in self._listeners if l is not listener]

    def emit(self, event: AgentEvent) -> None:
        """
        Dispatch an event to every listener registered at call time.
        Subscriptions changed during dispatch apply from the next emit.
        """
        for listener in list(self._listeners):
            listener(event)

    # =========================================================================
    # Decision Rendezvous
    # =========================================================================

    def _enqueue(self, kind: DecisionKind) -> asyncio.Future:
        future = asyncio.get_running_loop().create_future()
        self._pending[kind].append(future)
        return future

    def _resolve(self, kind: DecisionKind, decision) -> bool:
        queue = self._pending[kind]
        while queue:
            future = queue.popleft()
            if not future.done():
                future.set_result(decision)
                return True
        return False

    async def _wait(self, kind: DecisionKind, future: asyncio.Future):
        try:
            return await future
        finally:
            # Drop the future if the waiter was cancelled before resolution
            if future in self._pending[kind]:
                self._pending[kind].remove(future)

    async def request_approval(
        self,
        action: str,
        method: str,
        endpoint: str,
        risk: RiskLevel,
        preview: str | None = None,
    ) -> ApprovalDecision:
        """
        Ask the human to approve an API call.

        The request is queued before the event is emitted, so a listener
        may resolve it synchronously.

        Returns:
            The human's decision
        """
        future = self._enqueue(DecisionKind.APPROVAL)
        self.emit(ApprovalRequiredEvent(
            action=action,
            api=ApprovalApi(method=method, endpoint=endpoint, preview=preview),
            risk=risk,
        ))
        return await self._wait(DecisionKind.APPROVAL, future)

    def resolve_approval(self, decision: ApprovalDecision | str) -> bool:
        """
        Settle the oldest pending approval.

        Returns:
            True if a pending request was resolved, False if none was pending
        """
        return self._resolve(DecisionKind.APPROVAL, ApprovalDecision(decision))

    async def request_action_decision(
        self,
        action: str,
        reason: str | None = None,
    ) -> ActionDecision:
        """Ask the human whether to perform a suggested action."""
        future = self._enqueue(DecisionKind.ACTION)
        self.emit(ActionSuggestionEvent(action=action, reason=reason))
        return await self._wait(DecisionKind.ACTION, future)

    def resolve_action_decision(self, decision: ActionDecision | str) -> bool:
        """Settle the oldest pending action decision."""
        return self._resolve(DecisionKind.ACTION, ActionDecision(decision))

    async def request_next_steps(self, summary: str, question: str) -> NextStepsDecision:
        """Ask the human what to focus on next."""
        future = self._enqueue(DecisionKind.NEXT_STEPS)
        self.emit(NextStepsEvent(summary=summary, question=question))
        return await self._wait(DecisionKind.NEXT_STEPS, future)

    def resolve_next_steps(self, decision: NextStepsDecision | str) -> bool:
        """Settle the oldest pending next-steps decision."""
        return self._resolve(DecisionKind.NEXT_STEPS, NextStepsDecision(decision))

    def pending(self, kind: DecisionKind) -> int:
        """Number of unresolved requests of a kind."""
        return sum(1 for f in self._pending[kind] if not f.done())

    def cancel_pending(self) -> int:
        """
        Cancel every outstanding decision request (used on shutdown).

        Returns:
            Number of requests cancelled
        """
        cancelled = 0
        for queue in self._pending.values():
            while queue:
                future = queue.popleft()
                if not future.done():
                    future.cancel()
                    cancelled += 1
        return cancelled

    # =========================================================================
    # Execution Mode
    # =========================================================================

    @property
    def mode(self) -> ExecutionMode:
        return self._mode

    def set_mode(self, mode: ExecutionMode | str) -> None:
        """Switch execution mode. Any mode may follow any other."""
        self._mode = ExecutionMode(mode)
        self.emit(ModeChangeEvent(mode=self._mode))

    # =========================================================================
    # Network Risk Gate
    # =========================================================================

    async def handle_network_call(
        self,
        method: str,
        url: str,
        status: int,
    ) -> ApprovalDecision | None:
        """
        Gate an already-completed network call.

        The decision cannot undo the call; it only informs what happens
        next (documentation, continuation).

        Returns:
            The approval decision, or None when no approval was needed
        """
        risk = assess_risk(method, url)

        self.emit(NetworkEvent(method=method, url=url, status=status, timestamp=datetime.now()))

        needs_approval = risk == RiskLevel.HIGH or (
            risk == RiskLevel.MEDIUM and self._mode == ExecutionMode.EXECUTE
        )
        if not needs_approval:
            return None

        return await self.request_approval(
            action=f"{method} {url}",
            method=method,
            endpoint=url,
            risk=risk,
        )
