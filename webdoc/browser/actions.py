"""
Locator candidates for free-text UI actions.

Maps an action phrase such as "log in" or 'click "Pricing"' onto the
accessible names and text patterns the browser should try, in order.
"""

import re
from dataclasses import dataclass, field


FIRST_RESULT_PATTERN = re.compile(
    r"(first\s+video|first\s+result|first\s+item|first\s+image|first\s+thumbnail|play\s+first)",
    re.IGNORECASE,
)

FIRST_RESULT_SELECTORS = (
    "ytd-video-renderer a#video-title",
    "ytd-rich-item-renderer a#video-title",
    "a#video-title",
    '[data-testid="video-title"]',
    'a[href*="watch"]',
)

# (trigger words, pattern tried against buttons, links and text)
INTENT_PATTERNS: tuple[tuple[tuple[str, ...], re.Pattern], ...] = (
    (("login", "log in", "sign in"), re.compile(r"log\s*in|login|sign\s*in", re.IGNORECASE)),
    (
        ("signup", "sign up", "register"),
        re.compile(r"sign\s*up|signup|register|create\s*account", re.IGNORECASE),
    ),
    (("checkout", "cart", "basket"), re.compile(r"checkout|cart|basket", re.IGNORECASE)),
    (("continue", "start"), re.compile(r"continue|start|get\s*started|next", re.IGNORECASE)),
)

QUOTED_PATTERN = re.compile(r"\"([^\"]+)\"|'([^']+)'")


@dataclass
class ActionCandidates:
    """Accessible names and texts to try, in order."""
    button_names: list[re.Pattern] = field(default_factory=list)
    link_names: list[re.Pattern] = field(default_factory=list)
    texts: list[re.Pattern] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.button_names or self.link_names or self.texts)


def wants_first_result(action: str) -> bool:
    return bool(FIRST_RESULT_PATTERN.search(action))


def build_action_candidates(action: str) -> ActionCandidates:
    """
    Build locator patterns for an action phrase.

    Args:
        action: Free-text action, e.g. "Log in" or 'click "Docs"'

    Returns:
        Candidates; falls back to the escaped action text itself
    """
    normalized = action.lower()
    candidates = ActionCandidates()

    for triggers, pattern in INTENT_PATTERNS:
        if any(t in normalized for t in triggers):
            candidates.button_names.append(pattern)
            candidates.link_names.append(pattern)
            candidates.texts.append(pattern)

    quoted = QUOTED_PATTERN.search(action)
    if quoted:
        text = quoted.group(1) or quoted.group(2)
        if text:
            candidates.texts.append(re.compile(re.escape(text), re.IGNORECASE))

    if candidates.is_empty():
        candidates.texts.append(re.compile(re.escape(action), re.IGNORECASE))

    return candidates
