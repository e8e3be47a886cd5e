"""
OneSig Merkle Service - Configuration
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
    )

    # Application
    APP_NAME: str = "OneSig Merkle"
    VERSION: str = "1.0.0"
    ENV: str = "development"
    DEBUG: bool = False

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8083
    WORKERS: int = 1
    LOG_LEVEL: str = "INFO"

    # Leaf encoding
    LEAF_ENCODING_VERSION: int = 1

    # Tree policies for records encoded by this service
    ENCODE_SORTED_PAIRS: bool = True
    ENCODE_SORT_LEAVES: bool = False

    # Tree policies for pre-encoded leaves (MerkleTreeJS defaults)
    MERKLE_SORTED_PAIRS: bool = False
    MERKLE_SORT_LEAVES: bool = False

    MAX_LEAVES: int = Field(default=100_000, gt=0)

    # Metrics
    METRICS_ENABLED: bool = True


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
