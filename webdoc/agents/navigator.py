"""
Navigator Agent - The Operator.
Turns free-text user instructions into browser actions and describes
what is on screen.
"""

from .base import BaseAgent
from ..browser.manager import BrowserManager
from ..core.agent import Agent
from ..core.models import ActionResult, PageContext, PageSummary
from ..llm.reasoning import ReasoningService


class Navigator(BaseAgent):
    """
    Executes user instructions one action at a time.

    Instructions are interpreted against the current screenshot and page
    landmarks; when nothing actionable comes back the user gets an
    explanation of what is visible instead.
    """

    def __init__(
        self,
        agent: Agent,
        browser: BrowserManager,
        reasoning: ReasoningService | None = None,
    ):
        super().__init__("navigator", agent, reasoning)
        self.browser = browser

    async def _inspect(self) -> tuple[bytes | None, PageContext]:
        screenshot = await self.browser.take_screenshot()
        context = await self.browser.get_page_context()
        return screenshot, context

    async def summarize_page(self, message: str = "Summarizing the page...") -> PageSummary:
        """
        Describe the current screen to the user.

        Args:
            message: LLM status text shown while summarizing

        Returns:
            The summary that was shown
        """
        async with self.thinking(message):
            screenshot, context = await self._inspect()
            summary = await self.reasoning.get_page_summary(
                screenshot, self.browser.current_url, context
            )
        self.notify(f"Summary: {summary.summary}")
        return summary

    async def describe_page(self) -> PageSummary:
        """Summary followed by the follow-up question."""
        summary = await self.summarize_page()
        self.notify(summary.question or "What would you like to do next?")
        return summary

    async def initial_guidance(self) -> None:
        """Describe the first screen and explain how to continue."""
        try:
            await self.describe_page()
            self.notify('Type a command below. Try: "explore" after login.')
        except Exception as e:
            self.log(f"Initial guidance failed: {e}")
            self.notify("LLM guidance unavailable for the initial screen.")

    async def handle_instruction(self, instruction: str) -> ActionResult | None:
        """
        Interpret and perform a single instruction.

        Args:
            instruction: What the user typed

        Returns:
            The action result, or None if no action could be planned
        """
        async with self.thinking("Planning your action..."):
            screenshot, context = await self._inspect()
            plan = await self.reasoning.interpret_instruction(
                screenshot, self.browser.current_url, context, instruction
            )

        if not plan.is_actionable:
            async with self.thinking("Explaining what I can see..."):
                message = await self.reasoning.get_cannot_act_message(
                    screenshot, self.browser.current_url, context, instruction
                )
            self.notify(message)
            return None

        self.notify(f"Planned action: {plan.describe()}")

        result = await self.browser.perform_planned_action(plan)
        if result.ok:
            self.notify(f"Action executed: {result.message}")
        else:
            self.notify(f"Action failed: {result.message}")

        await self.summarize_page("Summarizing the new screen...")
        return result
