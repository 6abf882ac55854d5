"""
Configuration settings for bytescope

Uses pydantic-settings for type-safe configuration management.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Ethereum RPC
    eth_rpc_url: str = Field(
        default="",
        description="Ethereum RPC endpoint (falls back to public endpoints when empty)"
    )

    rpc_timeout_seconds: int = Field(
        default=10,
        description="HTTP timeout for RPC requests"
    )

    # Rate limiting
    rpc_requests_per_second: int = Field(
        default=10,
        description="Max RPC requests per second"
    )

    default_block_tag: str = Field(
        default="latest",
        description="Block tag used for eth_getCode"
    )

    # Comparison
    similarity_threshold: float = Field(
        default=70.0,
        ge=0,
        le=100,
        description="Minimum similarity for two contracts to join the same family"
    )

    similar_relationship_threshold: float = Field(
        default=80.0,
        ge=0,
        le=100,
        description="Similarity above which a pair is reported as similar-implementation"
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level for the CLI"
    )


# Global settings instance
settings = Settings()
