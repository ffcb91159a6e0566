"""
Risk assessment for observed API calls.
"""

import re

from .models import RiskLevel


FINANCIAL_PATTERN = re.compile(r"checkout|payment|order|purchase|billing|subscription")
ACCOUNT_DELETION_PATTERN = re.compile(r"/users/[^/]+/delete|/account/close|/account/delete")
AUTH_PATTERN = re.compile(r"/auth/|/login|/logout|/register")


def assess_risk(method: str, url: str) -> RiskLevel:
    """
    Classify a network call. Rules are checked in order; first match wins.

    Args:
        method: HTTP method
        url: Request URL

    Returns:
        Risk tier
    """
    upper_method = method.upper()
    lower_url = url.lower()

    # Destructive methods
    if upper_method == "DELETE":
        return RiskLevel.HIGH

    # Financial endpoints
    if FINANCIAL_PATTERN.search(lower_url):
        return RiskLevel.HIGH

    # Account removal
    if ACCOUNT_DELETION_PATTERN.search(lower_url):
        return RiskLevel.HIGH

    # Modification methods
    if upper_method in ("PUT", "PATCH"):
        return RiskLevel.MEDIUM

    # Authentication endpoints
    if AUTH_PATTERN.search(lower_url):
        return RiskLevel.MEDIUM

    return RiskLevel.LOW
