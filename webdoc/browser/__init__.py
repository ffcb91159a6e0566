"""Browser module - Playwright management, UI actions and click observation."""

from .manager import BrowserManager, BrowserNotStarted
from .observer import UIObserver
from .actions import build_action_candidates

__all__ = [
    "BrowserManager",
    "BrowserNotStarted",
    "UIObserver",
    "build_action_candidates",
]
