"""Application configuration using pydantic-settings.

All services receive a ``Settings`` instance at construction time; nothing
reads the environment at call time.
"""

from enum import Enum
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Jito block engine tip accounts (mainnet)
DEFAULT_TIP_ACCOUNTS = [
    "96gYZGLnJYVFmbjzopPSU6QiEV5fGqZNyN9nmNhvrZU5",
    "HFqU5x63VTqvQss8hp11i4wVV8bD44PvwucfZ2bU7gRe",
    "Cw8CFyM9FkoMi7K7Crf6HNQqf4uEMzpKw6QNghXLvLkY",
    "ADaUMid9yfUytqMBgopwjb2DTLSokTSzL1zt6iGPaS49",
    "DfXygSm4jCyNCybVYYK6DwvWqjKee8pbDmJGcLWNDXjh",
    "ADuUkR4vqLUMWXxW9gh6D6L8pMSawimctcNZ5pGwDcEt",
    "DttWaMuVvTiduZRnguLF7jNxTgiMBZ1hyAumKUiL2KRL",
    "3AVi9Tg9Uo68tJfuvoKvqKNWKkC5wPdSSdeBnizKZ6jT",
]


class SubmissionMode(str, Enum):
    """How a batch of bundles is sent to the relay."""
    PARALLEL = "parallel"       # Independent bundles, lowest latency
    SEQUENTIAL = "sequential"   # Bundle N depends on bundle N-1, stop on first miss


class TipSelection(str, Enum):
    """Policy for picking the tip recipient from the tip account pool."""
    RANDOM = "random"
    ROUND_ROBIN = "round_robin"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # API
    # ======================
    api_host: str = Field(default="0.0.0.0", description="API server host")
    api_port: int = Field(default=8000, description="API server port")

    # ======================
    # Environment
    # ======================
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=True, description="Enable debug mode")

    # ======================
    # Quote service (Jupiter Ultra)
    # ======================
    quote_base_url: str = Field(
        default="https://api.jup.ag/ultra/v1", description="Jupiter Ultra API base URL"
    )
    quote_api_key: str = Field(default="", description="Jupiter API key (x-api-key)")
    excluded_routers: str = Field(
        default="iris,dflow,jupiterz",
        description="Comma-separated routers excluded from quotes",
    )
    request_timeout_ms: int = Field(
        default=10_000, gt=0, description="Deadline for a single quote request"
    )

    # ======================
    # Relay (Jito block engine)
    # ======================
    relay_url: str = Field(
        default="https://ny.mainnet.block-engine.jito.wtf",
        description="Jito block engine URL",
    )
    relay_auth_token: str = Field(default="", description="Jito UUID / auth token")
    confirmation_timeout_ms: int = Field(
        default=30_000, gt=0, description="Per-bundle confirmation window"
    )
    confirmation_poll_interval_ms: int = Field(
        default=2_000, gt=0, description="Delay between in-flight status polls"
    )
    confirmation_grace_ms: int = Field(
        default=5_000, ge=0,
        description="Extra wait beyond the confirmation window before a bundle is abandoned",
    )
    submission_mode: SubmissionMode = Field(
        default=SubmissionMode.PARALLEL, description="parallel or sequential submission"
    )
    max_bundle_transactions: int = Field(
        default=5, ge=2, description="Relay cap on transactions per bundle"
    )

    # ======================
    # Solana RPC
    # ======================
    rpc_url: str = Field(
        default="https://api.mainnet-beta.solana.com", description="Solana RPC URL"
    )
    simulate_failed_bundles: bool = Field(
        default=True, description="Dry-run failed bundles to attach diagnostics"
    )

    # ======================
    # Tips & priority fees
    # ======================
    tip_accounts: list[str] = Field(
        default_factory=lambda: list(DEFAULT_TIP_ACCOUNTS),
        description="Tip recipient pool",
    )
    tip_selection: TipSelection = Field(
        default=TipSelection.RANDOM, description="random or round_robin"
    )
    default_tip_lamports: int = Field(
        default=100_000, ge=0, description="Tip when the request does not set one"
    )
    tip_multiplier: int = Field(default=1, ge=1, description="Multiplier applied to every tip")
    compute_unit_limit: int = Field(
        default=1_400_000, gt=0, description="Compute unit limit prepended to swaps"
    )
    compute_unit_price_micro_lamports: int = Field(
        default=1_000_000, ge=0, description="Compute unit price prepended to swaps"
    )

    # ======================
    # Local signer (CLI runner only)
    # ======================
    signer_private_key: Optional[str] = Field(
        default=None, description="Base58 secret key used by the CLI runner"
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    @property
    def excluded_router_list(self) -> list[str]:
        """Parse excluded routers into a list."""
        return [r.strip() for r in self.excluded_routers.split(",") if r.strip()]

    @property
    def request_timeout_seconds(self) -> float:
        return self.request_timeout_ms / 1000

    @property
    def confirmation_timeout_seconds(self) -> float:
        return self.confirmation_timeout_ms / 1000

    @property
    def confirmation_poll_interval_seconds(self) -> float:
        return self.confirmation_poll_interval_ms / 1000

    @property
    def confirmation_grace_seconds(self) -> float:
        return self.confirmation_grace_ms / 1000

    def get_safe_dict(self) -> dict:
        """Return settings dict with secrets redacted."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "api_host": self.api_host,
            "api_port": self.api_port,
            "quote": {
                "base_url": self.quote_base_url,
                "api_key": "***" if self.quote_api_key else "(not set)",
                "excluded_routers": self.excluded_router_list,
                "timeout_ms": self.request_timeout_ms,
            },
            "relay": {
                "url": self.relay_url,
                "auth_token": "***" if self.relay_auth_token else "(not set)",
                "confirmation_timeout_ms": self.confirmation_timeout_ms,
                "confirmation_grace_ms": self.confirmation_grace_ms,
                "submission_mode": self.submission_mode.value,
            },
            "rpc": {"url": self._redact_url(self.rpc_url)},
            "tips": {
                "accounts": len(self.tip_accounts),
                "selection": self.tip_selection.value,
                "default_lamports": self.default_tip_lamports,
                "multiplier": self.tip_multiplier,
            },
            "compute_budget": {
                "unit_limit": self.compute_unit_limit,
                "unit_price_micro_lamports": self.compute_unit_price_micro_lamports,
            },
            "signer_configured": bool(self.signer_private_key),
        }

    @staticmethod
    def _redact_url(url: str) -> str:
        """Redact API keys passed as query parameters (e.g. ?api-key=...)."""
        if "?" in url:
            base, _ = url.split("?", 1)
            return f"{base}?***"
        return url


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
