"""
Events API - Recent agent events.
"""

from collections import deque
from typing import Any

from fastapi import APIRouter, Query, Request

from ...core.events import AgentEvent


router = APIRouter()


class EventLog:
    """Bounded in-memory log of agent events, oldest first."""

    def __init__(self, maxlen: int = 500):
        self._events: deque[AgentEvent] = deque(maxlen=maxlen)

    def append(self, event: AgentEvent) -> None:
        self._events.append(event)

    def recent(
        self,
        limit: int | None = None,
        include_network: bool = True,
        event_type: str | None = None,
    ) -> list[AgentEvent]:
        events = [
            e for e in self._events
            if (include_network or e.type != "network")
            and (event_type is None or e.type == event_type)
        ]
        if limit is not None:
            events = events[-limit:] if limit else []
        return events

    def __len__(self) -> int:
        return len(self._events)


@router.get("")
async def list_events(
    req: Request,
    limit: int = Query(default=100, ge=0, le=500),
    include_network: bool = Query(default=True),
    type: str | None = Query(default=None, description="Only events of this type"),
) -> dict[str, Any]:
    """List recent events, oldest first."""
    event_log: EventLog = req.app.state.event_log
    events = event_log.recent(limit=limit, include_network=include_network, event_type=type)
    return {
        "events": [e.model_dump(mode="json") for e in events],
        "total": len(event_log),
    }
