"""
Agent Module - Session agents driving one browser.

Agents:
    - Supervisor: Command routing, capture lifecycle and documentation
    - Navigator: Page summaries and natural-language instructions
    - Explorer: Budgeted exploration of visible navigation
    - Interceptor: Network traffic capture
"""

from .base import BaseAgent
from .interceptor import CaptureAccumulator, CaptureSession
from .explorer import ExplorationOrchestrator
from .navigator import Navigator
from .supervisor import Supervisor, route_command

__all__ = [
    "BaseAgent",
    "CaptureAccumulator",
    "CaptureSession",
    "ExplorationOrchestrator",
    "Navigator",
    "Supervisor",
    "route_command",
]
