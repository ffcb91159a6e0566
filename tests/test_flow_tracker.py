from webdoc.core.flow_tracker import UNTITLED_FLOW, FlowTracker
from webdoc.core.models import NetworkCall


def test_steps_append_to_current_flow_in_order() -> None:
    tracker = FlowTracker()
    tracker.start_flow("Checkout")
    tracker.add_step("Open cart", ui_actions=["Cart"])
    tracker.add_step(
        "Pay",
        network_calls=[NetworkCall(method="POST", url="https://shop.example.com/api/pay", status=200)],
    )

    flow = tracker.get_flow("Checkout")
    assert [s.step for s in flow.steps] == ["Open cart", "Pay"]
    assert flow.steps[0].ui_actions == ["Cart"]
    assert flow.steps[1].network_calls[0].method == "POST"
    assert all(s.name == "Checkout" for s in flow.steps)


def test_add_step_without_flow_starts_untitled() -> None:
    tracker = FlowTracker()
    step = tracker.add_step("Click")

    assert step.name == UNTITLED_FLOW
    assert tracker.current_flow.name == UNTITLED_FLOW


def test_last_start_wins_and_previous_flow_stays_open() -> None:
    tracker = FlowTracker()
    first = tracker.start_flow("A")
    tracker.start_flow("B")
    tracker.add_step("x")

    assert tracker.current_flow.name == "B"
    assert first.end_time is None
    assert first.steps == []


def test_end_flow_records_end_time() -> None:
    tracker = FlowTracker()
    tracker.start_flow("A")

    ended = tracker.end_flow()

    assert ended.end_time is not None
    assert tracker.current_flow is None
    assert tracker.end_flow() is None
    assert [f.name for f in tracker.all_flows()] == ["A"]
