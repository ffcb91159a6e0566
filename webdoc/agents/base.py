"""
Base Agent Class.
Common functionality for the agents that drive a browser session.
"""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator

from ..core.agent import Agent
from ..core.events import InfoEvent, LLMStatusEvent
from ..llm.reasoning import ReasoningService


class BaseAgent:
    """
    Base class for session agents.
    Provides console logging, user-facing info events and LLM status.
    """

    def __init__(
        self,
        name: str,
        agent: Agent,
        reasoning: ReasoningService | None = None,
    ):
        """
        Initialize agent.

        Args:
            name: Agent name used in log lines
            agent: Agent core events are emitted through
            reasoning: Reasoning service (fallback-only if not provided)
        """
        self.name = name
        self.agent = agent
        self.reasoning = reasoning or ReasoningService()

    def log(self, message: str) -> None:
        """Log a message with agent name and timestamp."""
        timestamp = datetime.now().strftime("%H:%M:%S")
        print(f"[{timestamp}] [{self.name}] {message}")

    def notify(self, message: str) -> None:
        """Show a message to the user and log it."""
        self.log(message)
        self.agent.emit(InfoEvent(message=message))

    @asynccontextmanager
    async def thinking(self, message: str) -> AsyncIterator[None]:
        """
        Mark a reasoning call in progress for the duration of the block.
        """
        self.agent.emit(LLMStatusEvent(status="thinking", message=message))
        try:
            yield
        finally:
            self.agent.emit(LLMStatusEvent(status="idle"))
