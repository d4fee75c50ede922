"""
Configuration management for the quote engine
"""

from typing import Dict, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from quote_engine.constants import (
    ETHEREUM_CHAIN_ID,
    OPTIMISM_CHAIN_ID,
    POLYGON_CHAIN_ID,
    TRADE_GAS_BUFFER_PERCENT,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Swap aggregator (0x). The key is only attached when set; public hosts need none.
    zeroex_api_key: Optional[str] = None
    zeroex_ethereum_url: str = "https://api.0x.org"
    zeroex_optimism_url: str = "https://optimism.api.0x.org"
    zeroex_polygon_url: str = "https://polygon.api.0x.org"

    # Market data services
    coingecko_api_url: str = "https://api.coingecko.com/api/v3"
    coingecko_tokens_url: str = "https://tokens.coingecko.com"

    # HTTP
    request_timeout_seconds: float = 15.0

    # Batch staggering (milliseconds between consecutive quote requests)
    swap_batch_delay_ms: int = Field(default=25, ge=0)
    trade_batch_delay_ms: int = Field(default=300, ge=0)

    # Gas estimates are padded by this percentage
    trade_gas_buffer_percent: int = Field(default=TRADE_GAS_BUFFER_PERCENT, ge=0)

    log_level: str = "INFO"

    @field_validator("zeroex_api_key", mode="before")
    @classmethod
    def _blank_key_is_none(cls, value: Optional[str]) -> Optional[str]:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def zeroex_urls(self) -> Dict[int, str]:
        """Aggregator host per chain id."""
        return {
            ETHEREUM_CHAIN_ID: self.zeroex_ethereum_url.rstrip("/"),
            OPTIMISM_CHAIN_ID: self.zeroex_optimism_url.rstrip("/"),
            POLYGON_CHAIN_ID: self.zeroex_polygon_url.rstrip("/"),
        }

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"


# Global settings instance
settings = Settings()
