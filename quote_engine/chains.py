"""Supported network checks."""

from quote_engine.constants import SUPPORTED_CHAIN_IDS
from quote_engine.errors import UnsupportedChainError


def ensure_supported_chain(chain_id: int) -> int:
    """Return ``chain_id`` or raise ``UnsupportedChainError`` without doing any I/O."""
    if chain_id not in SUPPORTED_CHAIN_IDS:
        raise UnsupportedChainError(chain_id, SUPPORTED_CHAIN_IDS)
    return chain_id
