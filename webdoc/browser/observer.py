"""
UI Observer.
Reports user clicks in the page as ``ui_action`` events.
"""

from typing import Any

from playwright.async_api import Page

from ..core.agent import Agent
from ..core.events import UIActionEvent


BINDING_NAME = "__webdocReportClick"

# Installed in every document; forwards click details to the Python binding
CLICK_LISTENER_SCRIPT = f"""
(() => {{
  if (window.__webdocClickListener) return;
  window.__webdocClickListener = true;
  document.addEventListener("click", (e) => {{
    const target = e.target;
    if (!target || !window.{BINDING_NAME}) return;
    window.{BINDING_NAME}({{
      text: (target.textContent || "").trim().slice(0, 120),
      ariaLabel: target.getAttribute ? target.getAttribute("aria-label") || "" : "",
      title: target.getAttribute ? target.getAttribute("title") || "" : "",
      tagName: target.tagName || "",
    }});
  }}, true);
}})();
"""


def click_label(info: dict[str, Any] | None) -> str:
    """Best human-readable label for a clicked element."""
    if not info:
        return "Unknown element"
    for key in ("text", "ariaLabel", "title"):
        value = (info.get(key) or "").strip()
        if value:
            return value
    tag = info.get("tagName")
    return f"{tag} element" if tag else "Unknown element"


class UIObserver:
    """
    Watches a page for clicks and emits them through the agent.
    """

    def __init__(self, agent: Agent, page: Page):
        self.agent = agent
        self.page = page
        self._started = False

    async def start(self) -> None:
        if self._started:
            return
        await self.page.expose_binding(BINDING_NAME, self._on_click)
        await self.page.add_init_script(CLICK_LISTENER_SCRIPT)
        # The current document predates the init script
        try:
            await self.page.evaluate(CLICK_LISTENER_SCRIPT)
        except Exception as e:
            print(f"[browser] Click listener not installed on current page: {e}")
        self._started = True

    def _on_click(self, source: Any, info: dict[str, Any] | None) -> None:
        self.agent.emit(UIActionEvent(label=click_label(info), action="click"))
