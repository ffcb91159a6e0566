"""
Control API - Open a target, send prompts, answer decisions and steer capture.
"""

from typing import Any, Literal
import asyncio

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from ...agents.supervisor import Supervisor
from ...core.events import InfoEvent, UserPromptEvent
from ...core.guardrails import Guardrails, GuardrailViolation
from ...core.models import (
    ActionDecision,
    ApprovalDecision,
    ExecutionMode,
    NextStepsDecision,
)


router = APIRouter()

# Track background work started from this router
running_tasks: set[asyncio.Task] = set()


class OpenRequest(BaseModel):
    """Request to open a target URL."""
    url: str


class PromptRequest(BaseModel):
    """One line of user input."""
    prompt: str


class ApprovalRequest(BaseModel):
    decision: ApprovalDecision


class ActionRequest(BaseModel):
    decision: ActionDecision


class NextStepsRequest(BaseModel):
    decision: NextStepsDecision


class ModeRequest(BaseModel):
    mode: ExecutionMode


class CaptureRequest(BaseModel):
    action: Literal["on", "off"]


def _supervisor(req: Request) -> Supervisor:
    supervisor = getattr(req.app.state, "supervisor", None)
    if supervisor is None:
        raise HTTPException(status_code=500, detail="Supervisor not initialized")
    return supervisor


def _require_browser(supervisor: Supervisor) -> None:
    if not supervisor.browser.is_running:
        raise HTTPException(status_code=409, detail="Open a URL first")


def run_in_background(supervisor: Supervisor, coro, label: str) -> asyncio.Task:
    """
    Schedule supervisor work so the request can return immediately.
    Errors are printed and surfaced as an info event.
    """
    async def runner():
        try:
            await coro
        except asyncio.CancelledError:
            raise
        except Exception as e:
            print(f"{label} error: {e}")
            import traceback
            traceback.print_exc()
            supervisor.agent.emit(InfoEvent(message=f"{label} failed: {e}"))

    task = asyncio.create_task(runner())
    running_tasks.add(task)
    task.add_done_callback(running_tasks.discard)
    return task


async def open_and_greet(supervisor: Supervisor, url: str) -> None:
    """Open the target, then post the welcome and the initial page guidance."""
    await supervisor.open(url)
    await supervisor.welcome()
    await supervisor.initial_guidance()


@router.post("/open")
async def open_target(request: OpenRequest, req: Request) -> dict[str, Any]:
    """Launch the browser (if needed) and open a target URL."""
    supervisor = _supervisor(req)

    try:
        Guardrails(request.url).validate_target_url(request.url)
    except GuardrailViolation as e:
        raise HTTPException(status_code=400, detail=str(e))

    run_in_background(supervisor, open_and_greet(supervisor, request.url), "Open")

    return {
        "status": "opening",
        "url": request.url,
        "message": "Opening target in background"
    }


@router.post("/prompt")
async def send_prompt(request: PromptRequest, req: Request) -> dict[str, Any]:
    """Route one line of user input to the supervisor."""
    supervisor = _supervisor(req)
    prompt = request.prompt.strip()
    if not prompt:
        raise HTTPException(status_code=400, detail="Prompt is empty")
    _require_browser(supervisor)

    supervisor.agent.emit(UserPromptEvent(prompt=prompt))
    run_in_background(supervisor, supervisor.handle_user_prompt(prompt), "Prompt")

    return {"status": "accepted", "prompt": prompt}


@router.post("/approval")
async def resolve_approval(request: ApprovalRequest, req: Request) -> dict[str, Any]:
    """Answer the oldest pending approval request."""
    resolved = _supervisor(req).agent.resolve_approval(request.decision)
    return {"resolved": resolved, "decision": request.decision.value}


@router.post("/action")
async def resolve_action(request: ActionRequest, req: Request) -> dict[str, Any]:
    """Answer the oldest pending action suggestion."""
    resolved = _supervisor(req).agent.resolve_action_decision(request.decision)
    return {"resolved": resolved, "decision": request.decision.value}


@router.post("/next-steps")
async def resolve_next_steps(request: NextStepsRequest, req: Request) -> dict[str, Any]:
    """Answer the oldest pending next-steps question."""
    resolved = _supervisor(req).agent.resolve_next_steps(request.decision)
    return {"resolved": resolved, "decision": request.decision.value}


@router.post("/mode")
async def set_mode(request: ModeRequest, req: Request) -> dict[str, Any]:
    """Switch the execution mode."""
    agent = _supervisor(req).agent
    agent.set_mode(request.mode)
    return {"mode": agent.mode.value}


@router.post("/capture")
async def toggle_capture(request: CaptureRequest, req: Request) -> dict[str, Any]:
    """Turn capture on, or off (which writes documentation)."""
    supervisor = _supervisor(req)
    _require_browser(supervisor)

    if request.action == "on":
        started = supervisor.start_capture()
        return {"capture_active": supervisor.capture_active, "changed": started}

    if not supervisor.capture_active:
        return {"capture_active": False, "changed": False, "docs": None}

    docs = await supervisor.finalize("Capture stopped by user.")
    return {
        "capture_active": False,
        "changed": True,
        "docs": (
            {"markdown": str(docs.markdown_path), "openapi": str(docs.openapi_path)}
            if docs
            else None
        ),
    }


@router.post("/explore")
async def start_exploration(req: Request) -> dict[str, Any]:
    """Start an exploration run in the background."""
    supervisor = _supervisor(req)
    _require_browser(supervisor)

    if supervisor.exploring:
        raise HTTPException(status_code=409, detail="Exploration already running")

    run_in_background(supervisor, supervisor.explore(), "Exploration")

    return {
        "status": "started",
        "message": "Exploration started in background"
    }


@router.post("/explore/cancel")
async def cancel_exploration(req: Request) -> dict[str, Any]:
    """Stop a running exploration before its next page."""
    if not _supervisor(req).cancel_exploration():
        raise HTTPException(status_code=409, detail="Exploration not running")
    return {"status": "stopping"}


@router.get("/status")
async def get_status(req: Request) -> dict[str, Any]:
    """Current session status."""
    return _supervisor(req).get_status()


@router.get("/guardrails")
async def get_guardrails(req: Request) -> dict[str, Any]:
    """Get current guardrail configuration."""
    supervisor = _supervisor(req)
    guardrails = Guardrails(supervisor.url or "")
    return guardrails.get_scope_declaration()
