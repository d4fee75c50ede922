"""
Tests for settings loading.
"""

import pytest
from pydantic import ValidationError

from quote_engine.config import Settings


class TestSettings:
    """Environment-driven configuration."""

    def test_defaults(self, monkeypatch):
        for name in ("ZEROEX_API_KEY", "SWAP_BATCH_DELAY_MS", "TRADE_BATCH_DELAY_MS", "ZEROEX_POLYGON_URL"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings(_env_file=None)

        assert settings.zeroex_api_key is None
        assert settings.swap_batch_delay_ms == 25
        assert settings.trade_batch_delay_ms == 300
        assert settings.trade_gas_buffer_percent == 5
        assert settings.zeroex_urls() == {
            1: "https://api.0x.org",
            10: "https://optimism.api.0x.org",
            137: "https://polygon.api.0x.org",
        }

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("ZEROEX_API_KEY", "secret")
        monkeypatch.setenv("SWAP_BATCH_DELAY_MS", "50")
        monkeypatch.setenv("ZEROEX_POLYGON_URL", "https://polygon.example.org/")

        settings = Settings(_env_file=None)

        assert settings.zeroex_api_key == "secret"
        assert settings.swap_batch_delay_ms == 50
        assert settings.zeroex_urls()[137] == "https://polygon.example.org"

    def test_blank_api_key_is_unset(self, monkeypatch):
        monkeypatch.setenv("ZEROEX_API_KEY", "   ")

        assert Settings(_env_file=None).zeroex_api_key is None

    def test_negative_delay_is_invalid(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, trade_batch_delay_ms=-1)
