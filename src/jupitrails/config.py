"""Application configuration using pydantic-settings."""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # Jupiter API
    # ======================
    jupiter_api_base: str = Field(
        default="https://lite-api.jup.ag/", description="Jupiter API base URL"
    )
    jupiter_api_key: Optional[str] = Field(
        default=None, description="Optional Jupiter API key for higher rate limits"
    )
    http_timeout: float = Field(default=30.0, description="HTTP request timeout in seconds")

    # ======================
    # Solana RPC
    # ======================
    sol_rpc_url: str = Field(
        default="https://api.mainnet-beta.solana.com", description="Solana RPC URL"
    )

    # ======================
    # Quoting
    # ======================
    default_slippage_bps: int = Field(
        default=50, ge=0, le=10_000, description="User slippage for accepted routes (0.5%)"
    )
    discovery_slippage_bps: int = Field(
        default=50,
        ge=0,
        le=10_000,
        description="Fixed slippage for live price discovery, independent of user slippage",
    )
    quote_debounce_seconds: float = Field(
        default=0.5, ge=0, description="Quiet period before a price-discovery refresh"
    )
    route_debounce_seconds: float = Field(
        default=1.0, ge=0, description="Quiet period before an accepted-route refresh"
    )

    # ======================
    # Swap building
    # ======================
    dynamic_compute_unit_limit: bool = Field(
        default=True, description="Let Jupiter simulate and set the compute unit limit"
    )
    dynamic_slippage: bool = Field(default=True, description="Let Jupiter tune slippage")
    priority_level: Literal["medium", "high", "veryHigh"] = Field(
        default="veryHigh", description="Priority fee level"
    )
    max_priority_fee_lamports: int = Field(
        default=1_000_000, ge=0, description="Cap on the priority fee in lamports"
    )

    # ======================
    # Confirmation
    # ======================
    confirm_poll_interval: float = Field(
        default=2.0, gt=0, description="Seconds between confirmation polls"
    )
    confirm_timeout: float = Field(
        default=60.0, gt=0, description="Give up on confirmation after this many seconds"
    )

    # ======================
    # Wallet
    # ======================
    wallet_secret_key: Optional[str] = Field(
        default=None, description="Base58 encoded Solana keypair used by the CLI"
    )

    debug: bool = Field(default=False, description="Enable debug logging")

    @property
    def has_wallet(self) -> bool:
        """Check if a signing key is configured."""
        return bool(self.wallet_secret_key)

    def get_safe_dict(self) -> dict:
        """Return settings dict with secrets redacted."""
        return {
            "jupiter": {
                "api_base": self.jupiter_api_base,
                "api_key": "***" if self.jupiter_api_key else "(not set)",
                "timeout": self.http_timeout,
            },
            "rpc": self.sol_rpc_url,
            "quoting": {
                "slippage_bps": self.default_slippage_bps,
                "discovery_slippage_bps": self.discovery_slippage_bps,
                "quote_debounce": self.quote_debounce_seconds,
                "route_debounce": self.route_debounce_seconds,
            },
            "priority": {
                "level": self.priority_level,
                "max_lamports": self.max_priority_fee_lamports,
                "dynamic_compute_unit_limit": self.dynamic_compute_unit_limit,
                "dynamic_slippage": self.dynamic_slippage,
            },
            "confirmation": {
                "poll_interval": self.confirm_poll_interval,
                "timeout": self.confirm_timeout,
            },
            "wallet_configured": self.has_wallet,
            "debug": self.debug,
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
