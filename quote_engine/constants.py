"""
Protocol and chain constants shared by the quote engine and its clients.
"""

from typing import Dict, FrozenSet

# Per-share units are expressed per 10**18 of basket supply
SCALE = 10 ** 18

# Smallest non-zero per-share position the engine will leave behind
DUST_THRESHOLD = 50

# Gas estimates are padded by this percentage before being quoted
TRADE_GAS_BUFFER_PERCENT = 5

ZERO_EX_ADAPTER_NAME = "ZeroExApiAdapterV5"

# 32 zero bytes, used as calldata for passthrough legs
ZERO_CALLDATA = "0x" + "00" * 32

DEFAULT_FEE_RECIPIENT = "0xd3d555bb655acba9452bfc6d7cea8cc7b3628c55"
DEFAULT_EXCLUDED_SOURCES = ("Kyber", "Eth2Dai", "Mesh")

ETHEREUM_CHAIN_ID = 1
OPTIMISM_CHAIN_ID = 10
POLYGON_CHAIN_ID = 137

SUPPORTED_CHAIN_IDS: FrozenSet[int] = frozenset(
    {ETHEREUM_CHAIN_ID, OPTIMISM_CHAIN_ID, POLYGON_CHAIN_ID}
)

# Wrapped native currency per chain, used to price gas in USD
CHAIN_CURRENCY_ADDRESSES: Dict[int, str] = {
    ETHEREUM_CHAIN_ID: "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2",  # WETH
    OPTIMISM_CHAIN_ID: "0x4200000000000000000000000000000000000006",  # WETH
    POLYGON_CHAIN_ID: "0x0d500b1d8e8ef31e21c99d1db9a6444d3adf1270",  # WMATIC
}

CHAIN_CURRENCY_SYMBOLS: Dict[int, str] = {
    ETHEREUM_CHAIN_ID: "ETH",
    OPTIMISM_CHAIN_ID: "ETH",
    POLYGON_CHAIN_ID: "MATIC",
}
