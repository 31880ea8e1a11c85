#!/usr/bin/env python3

"""Header and URL construction for NetBox REST calls."""

from __future__ import annotations

from typing import Any, Dict, Optional
from urllib.parse import quote

# Characters encodeURIComponent leaves alone besides ``quote``'s own safe set.
_COMPONENT_SAFE = "!*'()"


def build_headers(token: Optional[str] = None) -> Dict[str, str]:
    """Build request headers.

    Args:
        token: NetBox API token. ``Authorization`` is only set when truthy.

    Returns:
        dict[str, str]: Header mapping.
    """
    headers = {
        "Content-Type": "application/json",
        "Accept": "application/json",
    }
    if token:
        headers["Authorization"] = f"Token {token}"
    return headers


def quote_component(value: Any) -> str:
    """Percent-encode one query key or value like ``encodeURIComponent``."""
    return quote(str(value), safe=_COMPONENT_SAFE)


def build_url(base_url: str, path: str, params: Optional[Dict[str, Any]] = None) -> str:
    """Join the REST root and a resource path, appending an encoded query.

    Args:
        base_url: NetBox REST root, e.g. ``https://netbox.example.com/api``.
        path: Resource path, e.g. ``/dcim/devices/``.
        params: Query parameters; ``None`` values are skipped.

    Returns:
        str: Absolute URL.
    """
    url = f"{base_url.rstrip('/')}/{path.lstrip('/')}"
    query = "&".join(
        f"{quote_component(key)}={quote_component(value)}"
        for key, value in (params or {}).items()
        if value is not None
    )
    return f"{url}?{query}" if query else url
