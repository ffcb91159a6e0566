import asyncio
import time
from typing import Callable

import pytest
from fastapi.testclient import TestClient

from conftest import BASE_URL, FakeBrowser, make_call

from webdoc.agents.explorer import ExplorationOrchestrator
from webdoc.agents.supervisor import Supervisor
from webdoc.api.main import create_app
from webdoc.core.agent import Agent
from webdoc.core.events import NetworkEvent
from webdoc.llm.reasoning import ReasoningService


def wait_for(predicate: Callable[[], bool], timeout: float = 3.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


@pytest.fixture
def browser() -> FakeBrowser:
    return FakeBrowser()


@pytest.fixture
def supervisor(browser: FakeBrowser, tmp_path) -> Supervisor:
    agent = Agent()
    reasoning = ReasoningService()
    return Supervisor(
        agent=agent,
        browser=browser,
        reasoning=reasoning,
        docs_path=tmp_path / "docs",
        explorer=ExplorationOrchestrator(
            agent, browser, reasoning, settle_seconds=0, return_settle_seconds=0
        ),
    )


@pytest.fixture
def client(supervisor: Supervisor):
    with TestClient(create_app(supervisor=supervisor)) as test_client:
        yield test_client


@pytest.fixture
def opened_client(supervisor: Supervisor, client: TestClient) -> TestClient:
    asyncio.run(supervisor.open(BASE_URL))
    return client


def info_log(client: TestClient) -> list[str]:
    events = client.get("/api/events", params={"type": "info", "limit": 500}).json()["events"]
    return [e["message"] for e in events]


# ==============================================================================
# Root
# ==============================================================================

def test_root_and_health(client: TestClient) -> None:
    assert client.get("/").json()["name"] == "WebDoc Agent"

    health = client.get("/health").json()
    assert health == {"status": "healthy", "browser": "stopped", "llm": "fallback"}


# ==============================================================================
# Control
# ==============================================================================

def test_open_rejects_invalid_url(client: TestClient, browser: FakeBrowser) -> None:
    response = client.post("/api/control/open", json={"url": "file:///etc/passwd"})

    assert response.status_code == 400
    assert "Invalid URL" in response.json()["detail"]
    assert browser.launched == 0


def test_open_runs_in_background(client: TestClient, browser: FakeBrowser) -> None:
    response = client.post("/api/control/open", json={"url": BASE_URL})

    assert response.status_code == 200
    assert response.json()["status"] == "opening"
    assert wait_for(lambda: 'Type a command below. Try: "explore" after login.' in info_log(client))
    assert browser.navigations == [BASE_URL]
    assert client.get("/api/control/status").json()["browser_running"] is True


def test_prompt_requires_open_browser(client: TestClient) -> None:
    assert client.post("/api/control/prompt", json={"prompt": "explore"}).status_code == 409
    assert client.post("/api/control/prompt", json={"prompt": "   "}).status_code == 400


def test_prompt_is_logged_and_handled(opened_client: TestClient) -> None:
    response = opened_client.post("/api/control/prompt", json={"prompt": "/capture on"})

    assert response.json() == {"status": "accepted", "prompt": "/capture on"}
    prompts = opened_client.get("/api/events", params={"type": "user_prompt"}).json()["events"]
    assert [p["prompt"] for p in prompts] == ["/capture on"]
    assert wait_for(lambda: opened_client.get("/api/control/status").json()["capture_active"])


def test_decisions_with_nothing_pending(client: TestClient) -> None:
    assert client.post("/api/control/approval", json={"decision": "doc"}).json() == {
        "resolved": False,
        "decision": "doc",
    }
    assert client.post("/api/control/action", json={"decision": "yes"}).json()["resolved"] is False
    assert client.post("/api/control/next-steps", json={"decision": "network"}).json()["resolved"] is False


def test_invalid_decision_is_rejected(client: TestClient) -> None:
    assert client.post("/api/control/approval", json={"decision": "maybe"}).status_code == 422
    assert client.post("/api/control/next-steps", json={"decision": "yes"}).status_code == 422


def test_mode_switch(client: TestClient, supervisor: Supervisor) -> None:
    response = client.post("/api/control/mode", json={"mode": "DOCUMENT_ONLY"})

    assert response.json() == {"mode": "DOCUMENT_ONLY"}
    assert supervisor.agent.mode.value == "DOCUMENT_ONLY"
    events = client.get("/api/events", params={"type": "mode_change"}).json()["events"]
    assert events[-1]["mode"] == "DOCUMENT_ONLY"

    assert client.post("/api/control/mode", json={"mode": "TURBO"}).status_code == 422


def test_capture_toggle_writes_docs(opened_client: TestClient, browser: FakeBrowser) -> None:
    assert opened_client.post("/api/control/capture", json={"action": "on"}).json() == {
        "capture_active": True,
        "changed": True,
    }
    browser.fire([make_call("GET", "https://app.example.com/api/me", body='{"id": 1}')])

    body = opened_client.post("/api/control/capture", json={"action": "off"}).json()

    assert body["capture_active"] is False
    assert body["changed"] is True
    assert body["docs"]["markdown"].endswith("app-example-com-api.md")
    assert body["docs"]["openapi"].endswith("app-example-com-openapi.json")
    docs = opened_client.get("/api/events", params={"type": "documentation"}).json()["events"]
    assert [d["format"] for d in docs] == ["markdown", "openapi"]


def test_capture_off_when_idle(opened_client: TestClient) -> None:
    body = opened_client.post("/api/control/capture", json={"action": "off"}).json()
    assert body == {"capture_active": False, "changed": False, "docs": None}


def test_explore_requires_open_browser(client: TestClient) -> None:
    assert client.post("/api/control/explore").status_code == 409
    assert client.post("/api/control/explore/cancel").status_code == 409


def test_explore_in_background(opened_client: TestClient, browser: FakeBrowser) -> None:
    browser.candidates = []

    assert opened_client.post("/api/control/explore").json()["status"] == "started"
    assert wait_for(lambda: "No visible navigation items found." in info_log(opened_client))


def test_status_and_guardrails(opened_client: TestClient) -> None:
    status = opened_client.get("/api/control/status").json()

    assert status["url"] == BASE_URL
    assert status["mode"] == "OBSERVE_ONLY"
    assert status["pending"] == {"approval": 0, "action": 0, "next_steps": 0}

    scope = opened_client.get("/api/control/guardrails").json()
    assert scope["base_url"] == BASE_URL


# ==============================================================================
# Events and flows
# ==============================================================================

def test_events_can_hide_network_traffic(client: TestClient, supervisor: Supervisor) -> None:
    supervisor.agent.emit(NetworkEvent(method="GET", url="https://app.example.com/api/me", status=200))
    client.post("/api/control/mode", json={"mode": "EXECUTE"})

    everything = client.get("/api/events").json()
    quiet = client.get("/api/events", params={"include_network": False}).json()

    assert [e["type"] for e in everything["events"]] == ["network", "mode_change"]
    assert [e["type"] for e in quiet["events"]] == ["mode_change"]
    assert everything["total"] == 2


def test_flows(client: TestClient, supervisor: Supervisor) -> None:
    supervisor.agent.flow_tracker.start_flow("Signup")
    supervisor.agent.flow_tracker.add_step("Open form", ui_actions=["Sign up"])

    body = client.get("/api/flows").json()
    assert body["current"] == "Signup"
    assert body["flows"][0]["steps"][0]["step"] == "Open form"

    assert client.get("/api/flows/Signup").json()["name"] == "Signup"
    assert client.get("/api/flows/Missing").status_code == 404


def test_websocket_streams_events(client: TestClient) -> None:
    with client.websocket_connect("/ws/events") as websocket:
        assert websocket.receive_json()["type"] == "connected"

        client.post("/api/control/mode", json={"mode": "EXECUTE"})

        message = websocket.receive_json()
        assert message["type"] == "mode_change"
        assert message["mode"] == "EXECUTE"
