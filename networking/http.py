from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


def create_httpx_client(
    *,
    timeout: Optional[float] = None,
    headers: Optional[Dict[str, str]] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    **kwargs: Any,
) -> httpx.AsyncClient:
    """
    Return an AsyncClient for the JSON market-data services.

    Args:
        timeout: Optional total timeout in seconds. If omitted, httpx defaults are used.
        headers: Extra headers merged over the JSON defaults.
        transport: Optional transport override (``httpx.MockTransport`` in tests).
        **kwargs: Additional parameters forwarded to ``httpx.AsyncClient``.
    """
    client_kwargs: Dict[str, Any] = dict(kwargs)
    client_kwargs["headers"] = {**DEFAULT_HEADERS, **(headers or {})}

    if timeout is not None:
        client_kwargs["timeout"] = httpx.Timeout(timeout)

    if transport is not None:
        client_kwargs["transport"] = transport

    return httpx.AsyncClient(**client_kwargs)
