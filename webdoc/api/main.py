"""
FastAPI Application - Main entry point.
Provides REST API and WebSocket for the WebDoc agent.
"""

from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..agents.supervisor import Supervisor
from ..core.agent import Agent
from ..llm.provider import LLMProvider, get_llm_provider
from ..llm.reasoning import ReasoningService

from .routes import control, events, flows
from .routes.control import open_and_greet, run_in_background
from .routes.events import EventLog
from .websocket import ConnectionManager, router as websocket_router


def build_reasoning() -> ReasoningService:
    """Reasoning service backed by the configured provider, or fallbacks only."""
    llm: LLMProvider | None
    try:
        llm = get_llm_provider()
    except ValueError as e:
        print(f"LLM unavailable ({e}); using heuristic fallbacks")
        llm = None
    return ReasoningService(llm)


def build_supervisor(docs_path: str | Path | None = None) -> Supervisor:
    """Create a supervisor with a fresh agent core and browser."""
    return Supervisor(agent=Agent(), reasoning=build_reasoning(), docs_path=docs_path)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.
    Wires event listeners and shuts the session down on exit.
    """
    print("Initializing WebDoc agent...")

    supervisor: Supervisor | None = app.state.supervisor
    if supervisor is None:
        supervisor = build_supervisor(app.state.docs_path)
        app.state.supervisor = supervisor

    event_log = EventLog()
    connections = ConnectionManager()
    app.state.event_log = event_log
    app.state.connections = connections

    supervisor.agent.on_event(event_log.append)
    supervisor.agent.on_event(connections.publish)

    if app.state.initial_url:
        run_in_background(supervisor, open_and_greet(supervisor, app.state.initial_url), "Open")

    print("WebDoc API ready")

    yield

    # Cleanup
    print("Shutting down...")
    supervisor.agent.off_event(connections.publish)
    supervisor.agent.off_event(event_log.append)
    await supervisor.shutdown()


def create_app(
    supervisor: Supervisor | None = None,
    initial_url: str | None = None,
    docs_path: str | Path | None = None,
) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        supervisor: Session supervisor (built at startup if omitted)
        initial_url: Target to open once the server is up
        docs_path: Documentation directory for a supervisor built at startup

    Returns:
        Configured FastAPI app
    """
    app = FastAPI(
        title="WebDoc Agent",
        description=(
            "Interactive browser agent that watches a web application's API "
            "traffic, explores its navigation and writes API documentation."
        ),
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.state.supervisor = supervisor
    app.state.initial_url = initial_url
    app.state.docs_path = docs_path

    # CORS middleware for frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(control.router, prefix="/api/control", tags=["Control"])
    app.include_router(events.router, prefix="/api/events", tags=["Events"])
    app.include_router(flows.router, prefix="/api/flows", tags=["Flows"])
    app.include_router(websocket_router, prefix="/ws", tags=["WebSocket"])

    @app.get("/", tags=["Root"])
    async def root():
        """Root endpoint with API information."""
        return {
            "name": "WebDoc Agent",
            "version": __version__,
            "status": "running",
            "docs": "/docs",
            "agents": [
                "Supervisor",
                "Navigator",
                "Explorer",
                "Interceptor",
            ]
        }

    @app.get("/health", tags=["Health"])
    async def health_check():
        """Health check endpoint."""
        supervisor = app.state.supervisor
        return {
            "status": "healthy",
            "browser": "running" if supervisor and supervisor.browser.is_running else "stopped",
            "llm": "available" if supervisor and supervisor.reasoning.available else "fallback",
        }

    return app


# Create app instance
app = create_app()
