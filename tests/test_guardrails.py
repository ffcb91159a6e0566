import pytest

from conftest import candidate, make_call

from webdoc.core.guardrails import Guardrails, GuardrailViolation
from webdoc.utils.urls import (
    api_key,
    get_base_domain,
    get_hostname,
    get_primary_host,
    get_primary_origin,
    is_same_site,
    normalize_url,
    safe_path,
)


# ==============================================================================
# Guardrails
# ==============================================================================

@pytest.mark.parametrize(
    "label",
    ["Logout", "Sign out", "Delete project", "Remove member", "Unsubscribe",
     "Checkout", "Payment methods", "My Orders", "Purchase history", "Buy now"],
)
def test_unsafe_labels(label: str) -> None:
    assert Guardrails.is_unsafe_label(label)


@pytest.mark.parametrize("label", ["Dashboard", "Reports", "Settings", "Team"])
def test_safe_labels(label: str) -> None:
    assert not Guardrails.is_unsafe_label(label)


def test_off_site_detection() -> None:
    guardrails = Guardrails("https://app.example.com/home", authorized_domains=[])

    assert not guardrails.is_off_site("https://app.example.com/reports")
    assert not guardrails.is_off_site("https://eu.app.example.com/reports")
    assert guardrails.is_off_site("https://example.com/")
    assert guardrails.is_off_site("https://evil-app.example.com.attacker.io/")
    assert guardrails.is_off_site("/relative/path")


def test_risky_navigation() -> None:
    guardrails = Guardrails("https://app.example.com/", authorized_domains=[])

    assert guardrails.is_risky_navigation(candidate("Docs", "https://docs.vendor.io/"))
    assert guardrails.is_risky_navigation(candidate("Logout", type="button"))
    assert not guardrails.is_risky_navigation(candidate("Reports", type="button"))
    assert not guardrails.is_risky_navigation(candidate("Reports", "https://app.example.com/r"))


def test_validate_target_url_requires_http() -> None:
    guardrails = Guardrails("", authorized_domains=[])

    assert guardrails.validate_target_url("https://example.com")
    for url in ("ftp://example.com", "javascript:alert(1)", "example.com", "https://"):
        with pytest.raises(GuardrailViolation):
            guardrails.validate_target_url(url)


def test_validate_target_url_honors_authorized_domains() -> None:
    guardrails = Guardrails("", authorized_domains=["example.com"])

    assert guardrails.validate_target_url("https://shop.example.com/")
    with pytest.raises(GuardrailViolation, match="not in authorized domains"):
        guardrails.validate_target_url("https://example.org/")


def test_scope_declaration() -> None:
    scope = Guardrails("https://app.example.com/", authorized_domains=[]).get_scope_declaration()

    assert scope["base_url"] == "https://app.example.com/"
    assert scope["authorized_domains"] == []
    assert "logout" in scope["unsafe_label_pattern"]


# ==============================================================================
# URL helpers
# ==============================================================================

def test_hostname_and_base_domain() -> None:
    assert get_hostname("https://API.Example.com:8443/x") == "api.example.com"
    assert get_hostname("not a url") is None
    assert get_base_domain("https://app.eu.example.com/x") == "example.com"
    assert get_base_domain("http://localhost:3000/") == "localhost"


def test_same_site() -> None:
    assert is_same_site("example.com", "example.com")
    assert is_same_site("api.example.com", "example.com")
    assert not is_same_site("badexample.com", "example.com")


def test_api_key_ignores_query_and_fragment() -> None:
    assert api_key("GET", "https://a.example.com/items?x=1#top") == "GET a.example.com/items"
    assert api_key("GET", "https://a.example.com") == "GET a.example.com/"
    assert api_key("GET", "garbage") == "GET garbage"


def test_safe_path() -> None:
    assert safe_path("https://a.example.com/v1/items?x=1") == "/v1/items"
    assert safe_path("https://a.example.com") == "/"
    assert safe_path("/already/a/path") == "/already/a/path"


def test_primary_host_and_origin() -> None:
    calls = [
        make_call("GET", "https://api.example.com/a"),
        make_call("GET", "https://api.example.com/b"),
        make_call("GET", "https://cdn.example.com/c"),
    ]

    assert get_primary_host(calls) == "api.example.com"
    assert get_primary_origin(calls) == "https://api.example.com"
    assert get_primary_host([]) is None
    assert get_primary_origin([]) is None


def test_normalize_url() -> None:
    assert normalize_url("example.com") == "https://example.com"
    assert normalize_url("  http://example.com/x ") == "http://example.com/x"
