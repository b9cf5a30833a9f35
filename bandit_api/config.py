"""Application configuration using Pydantic Settings."""

from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Registry backend: in-process counters or Snowflake tables
    storage_backend: Literal["memory", "snowflake"] = "memory"

    # Snowflake connection (required only when storage_backend == "snowflake")
    snowflake_account: Optional[str] = None
    snowflake_user: Optional[str] = None
    snowflake_password: Optional[str] = None
    snowflake_warehouse: Optional[str] = None
    snowflake_database: str = "bandit"
    snowflake_schema: str = "experiments"

    # API configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Algorithm configuration
    prior_alpha: float = Field(default=1.0, gt=0)
    prior_beta: float = Field(default=1.0, gt=0)
    win_probability_samples: int = Field(default=10000, ge=100)
    random_seed: Optional[int] = None  # None = seed from OS entropy once per process

    # Logging configuration
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL

    # Rate limiting configuration
    rate_limit_enabled: bool = True
    rate_limit_default_max: int = 100  # requests per window
    rate_limit_default_window: int = 60  # seconds
    # Honor X-Forwarded-For only behind a proxy that overwrites it
    trust_forwarded_for: bool = False

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
