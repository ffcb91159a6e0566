"""
Scope & Safety Guardrails.
Decides which targets may be opened and which navigation needs a human.
"""

import re
from urllib.parse import urlparse

from .config import settings
from .models import ExplorationCandidate


class GuardrailViolation(Exception):
    """Raised when a guardrail is violated."""
    pass


# Labels exploration never follows on its own
UNSAFE_LABEL_PATTERN = re.compile(
    r"(logout|sign\s*out|delete|remove|unsubscribe|checkout|payment|order|purchase|buy)",
    re.IGNORECASE,
)


class Guardrails:
    """
    Safety enforcement for exploration and target selection.

    - Destructive or transactional controls are never clicked automatically
    - Off-site navigation requires an explicit human decision
    - Targets can be restricted to a list of authorized domains
    """

    def __init__(self, base_url: str, authorized_domains: list[str] | None = None):
        """
        Initialize guardrails for a target.

        Args:
            base_url: URL exploration starts from
            authorized_domains: Domains the user may open (empty = any)
        """
        self.base_url = base_url
        self.base_host = (urlparse(base_url).hostname or "").lower()
        self.authorized_domains = (
            authorized_domains
            if authorized_domains is not None
            else settings.authorized_domain_list
        )

    @staticmethod
    def is_unsafe_label(label: str) -> bool:
        """True if a control label looks destructive or transactional."""
        return bool(UNSAFE_LABEL_PATTERN.search(label))

    def is_off_site(self, href: str) -> bool:
        """
        True if ``href`` leaves the base host and is not one of its subdomains.
        Unparseable hrefs count as off-site.
        """
        try:
            target_host = (urlparse(href).hostname or "").lower()
        except ValueError:
            return True
        if not target_host:
            return True
        return target_host != self.base_host and not target_host.endswith(f".{self.base_host}")

    def is_risky_navigation(self, candidate: ExplorationCandidate) -> bool:
        """
        Navigation that needs an explicit human decision before proceeding.

        Args:
            candidate: Navigation candidate

        Returns:
            True if the label is unsafe or the target is off-site
        """
        if self.is_unsafe_label(candidate.label):
            return True
        if not candidate.href:
            return False
        return self.is_off_site(candidate.href)

    def validate_target_url(self, url: str) -> bool:
        """
        Validate that a target URL may be opened.

        Args:
            url: The URL to validate

        Returns:
            True if authorized

        Raises:
            GuardrailViolation: If URL is not authorized
        """
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.hostname:
            raise GuardrailViolation(
                f"Invalid URL: {url}. Please provide a valid HTTP or HTTPS URL"
            )

        # If no authorized domains specified, allow (user responsibility)
        if not self.authorized_domains:
            return True

        domain = parsed.hostname.lower()
        for auth_domain in self.authorized_domains:
            if domain == auth_domain or domain.endswith(f".{auth_domain}"):
                return True

        raise GuardrailViolation(
            f"Domain '{domain}' is not in authorized domains: {self.authorized_domains}"
        )

    def get_scope_declaration(self) -> dict:
        """
        Get a declaration of the current scope and safety settings.

        Returns:
            Dictionary with scope information
        """
        return {
            "base_url": self.base_url,
            "authorized_domains": self.authorized_domains,
            "max_exploration_pages": settings.max_exploration_pages,
            "unsafe_label_pattern": UNSAFE_LABEL_PATTERN.pattern,
            "include_third_party": settings.include_third_party,
            "disclaimer": (
                "Approval gates documentation and continuation only. "
                "Network calls the page already made cannot be undone."
            ),
        }
