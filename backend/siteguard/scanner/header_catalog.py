"""
Security Header Catalog

The twelve tracked response headers with their importance tier and
weight (total weight 19), plus value checks for CSP and HSTS.
"""
from __future__ import annotations

import re
from typing import Dict, List, Mapping

from siteguard.scanner.schemas import HeaderCatalogEntry, ImportanceTier

HEADER_CATALOG: tuple = (
    HeaderCatalogEntry(
        name="Content-Security-Policy",
        importance=ImportanceTier.HIGH,
        weight=3,
        description="Helps prevent XSS attacks by specifying which dynamic resources are allowed to load",
        example="default-src 'self'; script-src 'self' trusted-scripts.com",
    ),
    HeaderCatalogEntry(
        name="Strict-Transport-Security",
        importance=ImportanceTier.HIGH,
        weight=3,
        description="Forces browsers to use HTTPS for the specified domain",
        example="max-age=31536000; includeSubDomains",
    ),
    HeaderCatalogEntry(
        name="X-Content-Type-Options",
        importance=ImportanceTier.MEDIUM,
        weight=2,
        description="Prevents browsers from MIME-sniffing a response from the declared content-type",
        example="nosniff",
    ),
    HeaderCatalogEntry(
        name="X-Frame-Options",
        importance=ImportanceTier.MEDIUM,
        weight=2,
        description="Protects against clickjacking by preventing the page from being embedded in a frame",
        example="DENY",
    ),
    HeaderCatalogEntry(
        name="X-XSS-Protection",
        importance=ImportanceTier.LOW,
        weight=1,
        description="Enables the cross-site scripting (XSS) filter in browsers",
        example="1; mode=block",
    ),
    HeaderCatalogEntry(
        name="Referrer-Policy",
        importance=ImportanceTier.MEDIUM,
        weight=2,
        description="Controls how much referrer information should be included with requests",
        example="strict-origin-when-cross-origin",
    ),
    HeaderCatalogEntry(
        name="Permissions-Policy",
        importance=ImportanceTier.LOW,
        weight=1,
        description="Controls which browser features and APIs can be used in the page",
        example="camera=(), microphone=(), geolocation=()",
    ),
    HeaderCatalogEntry(
        name="Cache-Control",
        importance=ImportanceTier.LOW,
        weight=1,
        description="Directives for caching mechanisms in requests and responses",
        example="no-store, max-age=0",
    ),
    HeaderCatalogEntry(
        name="Clear-Site-Data",
        importance=ImportanceTier.LOW,
        weight=1,
        description="Clears browsing data (cookies, storage, cache) associated with the requesting website",
        example='"cache", "cookies", "storage"',
    ),
    HeaderCatalogEntry(
        name="Cross-Origin-Embedder-Policy",
        importance=ImportanceTier.LOW,
        weight=1,
        description="Prevents a document from loading cross-origin resources that don't explicitly grant permission",
        example="require-corp",
    ),
    HeaderCatalogEntry(
        name="Cross-Origin-Opener-Policy",
        importance=ImportanceTier.LOW,
        weight=1,
        description="Prevents other domains from opening/controlling a window",
        example="same-origin",
    ),
    HeaderCatalogEntry(
        name="Cross-Origin-Resource-Policy",
        importance=ImportanceTier.LOW,
        weight=1,
        description="Prevents other domains from reading the response of the resources to which this header is applied",
        example="same-origin",
    ),
)

TOTAL_WEIGHT = sum(entry.weight for entry in HEADER_CATALOG)

ONE_YEAR_SECONDS = 31536000

_MAX_AGE_RE = re.compile(r"max-age=(\d+)", re.IGNORECASE)


def normalize_headers(headers: Mapping[str, str]) -> Dict[str, str]:
    """Lower-case header names for case-insensitive lookup."""
    return {str(key).lower(): value for key, value in headers.items()}


def analyze_csp(value: str) -> List[str]:
    recommendations = []
    if "script-src" in value and "'unsafe-inline'" in value:
        recommendations.append(
            "Avoid using 'unsafe-inline' in script-src as it defeats the purpose of CSP"
        )
    if "script-src" in value and "'unsafe-eval'" in value:
        recommendations.append(
            "Avoid using 'unsafe-eval' in script-src as it allows potentially dangerous code execution"
        )
    if "default-src" not in value:
        recommendations.append(
            "Consider adding default-src directive as a fallback for other resource types"
        )
    return recommendations


def analyze_hsts(value: str) -> List[str]:
    recommendations = []
    match = _MAX_AGE_RE.search(value)
    if match:
        if int(match.group(1)) < ONE_YEAR_SECONDS:
            recommendations.append("Consider increasing max-age to at least 31536000 (1 year)")
    else:
        recommendations.append("max-age directive is missing")
    if "includesubdomains" not in value.lower():
        recommendations.append("Consider adding includeSubDomains directive for better security")
    if "preload" not in value.lower():
        recommendations.append("Consider adding preload directive for maximum security")
    return recommendations


def analyze_header_value(name: str, value: str) -> List[str]:
    """Recommendations for a present header's value (empty when none apply)."""
    lowered = name.lower()
    if lowered == "content-security-policy":
        return analyze_csp(value)
    if lowered == "strict-transport-security":
        return analyze_hsts(value)
    return []
