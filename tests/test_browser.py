import pytest

from webdoc.browser.actions import build_action_candidates, wants_first_result
from webdoc.browser.manager import BrowserManager, BrowserNotStarted
from webdoc.browser.observer import BINDING_NAME, UIObserver, click_label
from webdoc.core.agent import Agent


# ==============================================================================
# Action candidates
# ==============================================================================

def test_login_phrase_maps_to_login_pattern() -> None:
    candidates = build_action_candidates("Log in")

    assert candidates.button_names
    assert candidates.button_names[0].search("Sign In")
    assert candidates.link_names[0].search("LOGIN")


def test_quoted_label_is_matched_as_text() -> None:
    candidates = build_action_candidates('click "Pricing (USD)"')

    assert not candidates.button_names
    assert [p.search("See Pricing (USD) plans") is not None for p in candidates.texts] == [True]


def test_unknown_action_falls_back_to_escaped_text() -> None:
    candidates = build_action_candidates("Reports [beta]")

    assert len(candidates.texts) == 1
    assert candidates.texts[0].search("reports [beta]")


def test_wants_first_result() -> None:
    assert wants_first_result("play first video")
    assert wants_first_result("open the First Result")
    assert not wants_first_result("open settings")


# ==============================================================================
# UI observer
# ==============================================================================

class FakePage:
    def __init__(self, evaluate_error: Exception | None = None):
        self.bindings: dict = {}
        self.init_scripts: list[str] = []
        self.evaluated: list[str] = []
        self.evaluate_error = evaluate_error

    async def expose_binding(self, name, callback) -> None:
        self.bindings[name] = callback

    async def add_init_script(self, script: str) -> None:
        self.init_scripts.append(script)

    async def evaluate(self, script: str) -> None:
        if self.evaluate_error:
            raise self.evaluate_error
        self.evaluated.append(script)


@pytest.mark.parametrize(
    ("info", "expected"),
    [
        ({"text": "  Save  ", "ariaLabel": "save-btn"}, "Save"),
        ({"text": "", "ariaLabel": "Close dialog"}, "Close dialog"),
        ({"text": "", "ariaLabel": "", "title": "Help"}, "Help"),
        ({"tagName": "SVG"}, "SVG element"),
        (None, "Unknown element"),
    ],
)
def test_click_label(info, expected: str) -> None:
    assert click_label(info) == expected


async def test_observer_reports_clicks(agent: Agent, events: list) -> None:
    page = FakePage()
    observer = UIObserver(agent, page)

    await observer.start()
    await observer.start()
    page.bindings[BINDING_NAME](None, {"text": "Reports"})

    assert len(page.init_scripts) == 1
    assert len(page.evaluated) == 1
    assert [(e.type, e.label, e.action) for e in events] == [("ui_action", "Reports", "click")]


async def test_observer_survives_unscriptable_current_page(agent: Agent) -> None:
    observer = UIObserver(agent, FakePage(evaluate_error=RuntimeError("about:blank")))

    await observer.start()

    assert observer._started


# ==============================================================================
# Browser manager
# ==============================================================================

async def test_manager_requires_launch(agent: Agent) -> None:
    browser = BrowserManager(agent, headless=True)

    assert not browser.is_running
    assert browser.current_url == ""
    with pytest.raises(BrowserNotStarted):
        await browser.navigate("https://example.com")
    with pytest.raises(BrowserNotStarted):
        await browser.take_screenshot()

    # Safe no-ops before launch
    await browser.go_back_or_navigate("https://example.com")
    await browser.close()


def test_manager_delegates_capture_to_accumulator(agent: Agent) -> None:
    browser = BrowserManager(agent, headless=True)
    seen = []

    browser.start_capture("https://app.example.com/", include_third_party=True)
    browser.set_capture_listener(seen.append)

    assert browser.capture_active
    assert browser.accumulator.capture_active
    assert browser.captured_calls() == []

    browser.stop_capture()
    assert not browser.capture_active
