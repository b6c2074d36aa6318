"""Application configuration using pydantic-settings."""

import logging
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class Settings(BaseSettings):
    """Settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # Chain
    # ======================
    chain_id: str = Field(default="cosmoshub-4", description="Target chain id")
    hd_path: str = Field(default="m/44'/118/0'/0/0", description="HD derivation path")
    address_prefix: str = Field(default="cosmos", description="Bech32 prefix of native accounts")
    evm_address_prefix: str = Field(
        default="evmos", description="Bech32 prefix applied to Ethereum addresses"
    )
    direct_sign_prefixes: str = Field(
        default="/cosmwasm.wasm,/titan",
        description="Comma-separated type URL prefixes signed in Direct mode",
    )

    # ======================
    # REST gateway
    # ======================
    rest_endpoint: str = Field(
        default="https://cosmos-rest.publicnode.com", description="Cosmos REST URL"
    )
    broadcast_mode: str = Field(default="BROADCAST_MODE_SYNC", description="Default broadcast mode")
    http_timeout: Optional[float] = Field(
        default=None, description="HTTP timeout in seconds (None = wait forever)"
    )

    # ======================
    # Persistence
    # ======================
    storage_path: Optional[str] = Field(
        default=None, description="JSON file for connected wallet / account cache (None = memory)"
    )

    # ======================
    # Logging
    # ======================
    log_level: str = Field(default="INFO", description="Logging level")

    @property
    def direct_sign_prefix_list(self) -> list[str]:
        """Parse direct-sign prefixes into a list."""
        return [p.strip() for p in self.direct_sign_prefixes.split(",") if p.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Apply the configured log level and format to the root logger."""
    settings = settings or get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
