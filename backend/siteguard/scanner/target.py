"""
Target validation.

Turns a raw URL string into a :class:`Target` or raises
:class:`TargetValidationError` before any probe runs.
"""
from __future__ import annotations

import logging
from urllib.parse import urlparse

from siteguard.errors import TargetValidationError
from siteguard.scanner.schemas import Target

logger = logging.getLogger(__name__)

MAX_URL_LENGTH = 2048

SUPPORTED_SCHEMES = ("http", "https")

BROWSER_INTERNAL_PREFIXES = (
    "chrome://",
    "edge://",
    "about:",
    "chrome-extension://",
    "file://",
)


def validate_target(url: str) -> Target:
    """
    Validate *url* and return the derived :class:`Target`.

    Raises:
        TargetValidationError: If the URL is empty, too long, unparsable,
            a browser-internal page, or uses a scheme other than http/https.
    """
    url = (url or "").strip()
    if not url:
        raise TargetValidationError(
            "Cannot access tab URL. This might be a browser internal page.", url
        )
    if len(url) > MAX_URL_LENGTH:
        raise TargetValidationError(
            f"Target exceeds maximum length ({MAX_URL_LENGTH} chars)", url
        )

    if url.lower().startswith(BROWSER_INTERNAL_PREFIXES):
        raise TargetValidationError(
            "Cannot scan browser internal pages. Please navigate to a website.", url
        )

    try:
        parsed = urlparse(url)
        port = parsed.port
    except ValueError as exc:
        raise TargetValidationError(f"Invalid URL: {exc}", url) from exc

    scheme = parsed.scheme.lower()
    if scheme not in SUPPORTED_SCHEMES:
        raise TargetValidationError(
            f'Cannot scan URLs with protocol "{scheme}:". '
            "Only HTTP and HTTPS are supported.",
            url,
        )

    hostname = parsed.hostname
    if not hostname:
        raise TargetValidationError(f"Invalid URL: no host in '{url}'", url)

    logger.debug("Validated target %s (scheme=%s host=%s)", url, scheme, hostname)
    return Target(url=url, scheme=scheme, hostname=hostname.lower(), port=port)
