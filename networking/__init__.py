"""
Networking helpers shared by the HTTP market-data clients.
"""

from .http import DEFAULT_HEADERS, create_httpx_client

__all__ = [
    "DEFAULT_HEADERS",
    "create_httpx_client",
]
