"""
Flow Tracker - groups steps into named, sequential flows.
"""

from datetime import datetime
from typing import Iterable

from .models import Flow, FlowStep, NetworkCall


UNTITLED_FLOW = "Untitled Flow"


class FlowTracker:
    """
    Tracks multi-step flows. Only one flow is current at a time;
    the last ``start_flow`` wins.
    """

    def __init__(self):
        self.flows: dict[str, Flow] = {}
        self.current_flow: Flow | None = None

    def start_flow(self, name: str) -> Flow:
        """
        Start a new flow and make it current.
        An unfinished previous flow is abandoned without an end time.
        """
        flow = Flow(name=name)
        self.flows[name] = flow
        self.current_flow = flow
        return flow

    def add_step(
        self,
        step: str,
        network_calls: Iterable[NetworkCall] = (),
        ui_actions: Iterable[str] = (),
    ) -> FlowStep:
        """
        Append a step to the current flow, starting an untitled one if needed.

        Args:
            step: Step name
            network_calls: Calls attributed to this step
            ui_actions: UI action labels attributed to this step

        Returns:
            The recorded step
        """
        flow = self.current_flow or self.start_flow(UNTITLED_FLOW)
        flow_step = FlowStep(
            name=flow.name,
            step=step,
            network_calls=list(network_calls),
            ui_actions=list(ui_actions),
        )
        flow.steps.append(flow_step)
        return flow_step

    def end_flow(self) -> Flow | None:
        """Close the current flow, if any."""
        flow = self.current_flow
        if flow:
            flow.end_time = datetime.now()
            self.current_flow = None
        return flow

    def get_flow(self, name: str) -> Flow | None:
        return self.flows.get(name)

    def all_flows(self) -> list[Flow]:
        return list(self.flows.values())
