"""
URL helpers shared by capture, deduplication and documentation.
"""

from collections import Counter
from typing import Iterable
from urllib.parse import urlparse

from ..core.models import CapturedCall


def get_hostname(url: str) -> str | None:
    """Lowercase hostname of ``url``, or None if it can't be parsed."""
    try:
        return urlparse(url).hostname or None
    except ValueError:
        return None


def get_base_domain(url: str) -> str | None:
    """
    Registrable base domain of a URL: the last two host labels.

    Args:
        url: Any absolute URL

    Returns:
        e.g. "example.com" for "https://app.eu.example.com/x"
    """
    host = get_hostname(url)
    if not host:
        return None
    parts = [p for p in host.split(".") if p]
    if len(parts) <= 2:
        return host
    return ".".join(parts[-2:])


def is_same_site(host: str, base_domain: str) -> bool:
    """True if ``host`` is ``base_domain`` or one of its subdomains."""
    return host == base_domain or host.endswith(f".{base_domain}")


def api_key(method: str, url: str) -> str:
    """
    Session deduplication key: method + hostname + pathname.
    Query strings and fragments are ignored.
    """
    try:
        parsed = urlparse(url)
        if not parsed.hostname:
            raise ValueError(url)
        return f"{method} {parsed.hostname}{parsed.path or '/'}"
    except ValueError:
        return f"{method} {url}"


def safe_path(url: str) -> str:
    """Path component of ``url``, or the URL itself if it can't be parsed."""
    try:
        parsed = urlparse(url)
        if not parsed.scheme:
            return url
        return parsed.path or "/"
    except ValueError:
        return url


def get_primary_host(calls: Iterable[CapturedCall]) -> str | None:
    """Most frequent hostname among captured calls."""
    counts = Counter(h for h in (get_hostname(c.url) for c in calls) if h)
    if not counts:
        return None
    return counts.most_common(1)[0][0]


def get_primary_origin(calls: Iterable[CapturedCall]) -> str | None:
    """Most frequent scheme://host[:port] among captured calls."""
    origins = []
    for call in calls:
        try:
            parsed = urlparse(call.url)
        except ValueError:
            continue
        if parsed.scheme and parsed.netloc:
            origins.append(f"{parsed.scheme}://{parsed.netloc}")
    if not origins:
        return None
    return Counter(origins).most_common(1)[0][0]


def normalize_url(url: str) -> str:
    """Prefix ``https://`` when no scheme is given."""
    trimmed = url.strip()
    if trimmed.startswith("http://") or trimmed.startswith("https://"):
        return trimmed
    return f"https://{trimmed}"
