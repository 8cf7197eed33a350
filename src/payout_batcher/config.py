"""
Configuration management for the Payout Batcher.

Supports configuration via environment variables and .env files.
"""

from enum import Enum
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from stellar_sdk import Network


class NetworkType(str, Enum):
    """Stellar network types."""
    PUBLIC = "public"
    TESTNET = "testnet"


class RunMode(str, Enum):
    """What the batcher does with each validated envelope."""
    PREVIEW = "preview"    # Print only, never sign
    SIGN = "sign"          # Sign and write to the output file
    SUBMIT = "submit"      # Sign and submit to Horizon


class BatcherConfig(BaseSettings):
    """
    Configuration settings for the Payout Batcher.

    All settings can be configured via environment variables with the PAYOUT_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="PAYOUT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Network settings
    network: NetworkType = Field(
        default=NetworkType.PUBLIC,
        description="Stellar network the payouts are signed for"
    )
    horizon_url: Optional[str] = Field(
        default=None,
        description="Custom Horizon base URL (optional)"
    )
    request_timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="HTTP timeout for a single Horizon request"
    )

    # Wallet settings
    wallet_secret: Optional[str] = Field(
        default=None,
        description="Secret seed of the wallet that signs the payouts"
    )

    # Batch files
    input_file: str = Field(
        default="payouts_to_sign.txt",
        description="File with transactions to sign"
    )
    output_file: str = Field(
        default="payouts_signed.txt",
        description="File to place signed transactions"
    )

    # Run mode
    preview: bool = Field(
        default=False,
        description="Print transactions instead of signing them"
    )
    submit: bool = Field(
        default=False,
        description="Submit transactions to the network after signing"
    )
    fail_fast: bool = Field(
        default=True,
        description="Abort the whole batch on the first rejected line"
    )

    # Retry settings
    gateway_timeout_backoff_seconds: float = Field(
        default=15.0,
        ge=0,
        description="Wait after a Horizon gateway timeout"
    )
    insufficient_fee_backoff_seconds: float = Field(
        default=30.0,
        ge=0,
        description="Wait after a tx_insufficient_fee rejection"
    )
    generic_backoff_seconds: float = Field(
        default=60.0,
        ge=0,
        description="Wait after any other submission error"
    )
    max_attempts: Optional[int] = Field(
        default=None,
        ge=1,
        description="Maximum submission attempts per transaction (unbounded if unset)"
    )
    submit_deadline_seconds: Optional[float] = Field(
        default=None,
        gt=0,
        description="Time budget for submitting one transaction (unbounded if unset)"
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format"
    )

    @property
    def network_passphrase(self) -> str:
        """Passphrase that binds signatures to the configured network."""
        if self.network == NetworkType.TESTNET:
            return Network.TESTNET_NETWORK_PASSPHRASE
        return Network.PUBLIC_NETWORK_PASSPHRASE

    @property
    def horizon_base_url(self) -> str:
        """Get the appropriate Horizon URL based on network."""
        if self.horizon_url:
            return self.horizon_url.rstrip("/")

        network_urls = {
            NetworkType.PUBLIC: "https://horizon.stellar.org",
            NetworkType.TESTNET: "https://horizon-testnet.stellar.org",
        }
        return network_urls[self.network]

    @property
    def run_mode(self) -> RunMode:
        """Preview takes precedence over submit."""
        if self.preview:
            return RunMode.PREVIEW
        if self.submit:
            return RunMode.SUBMIT
        return RunMode.SIGN


# Global config instance
_config: Optional[BatcherConfig] = None


def get_config() -> BatcherConfig:
    """Get or create the global configuration instance."""
    global _config
    if _config is None:
        _config = BatcherConfig()
    return _config


def set_config(config: BatcherConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
