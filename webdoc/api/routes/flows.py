"""
Flows API - Named task flows recorded by the flow tracker.
"""

from typing import Any

from fastapi import APIRouter, HTTPException, Request


router = APIRouter()


@router.get("")
async def list_flows(req: Request) -> dict[str, Any]:
    """All flows plus the name of the current one."""
    tracker = req.app.state.supervisor.agent.flow_tracker
    current = tracker.current_flow
    return {
        "flows": [flow.model_dump(mode="json") for flow in tracker.all_flows()],
        "current": current.name if current else None,
    }


@router.get("/{name}")
async def get_flow(name: str, req: Request) -> dict[str, Any]:
    """Get a single flow by name."""
    flow = req.app.state.supervisor.agent.flow_tracker.get_flow(name)
    if flow is None:
        raise HTTPException(status_code=404, detail="Flow not found")
    return flow.model_dump(mode="json")
