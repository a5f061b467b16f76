"""Application configuration."""

from typing import List, Union

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "PortfolioAnalytics"
    APP_ENV: str = "development"
    DEBUG: bool = False  # Secure default: disabled
    API_V1_PREFIX: str = "/api/v1"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "text"  # "text" or "json"

    # Snapshot history
    SNAPSHOT_HISTORY_LIMIT: int = 1000
    WALLET_LOCK_TIMEOUT_SECONDS: float = 30.0

    # Holdings collaborator (wallet dashboard API)
    HOLDINGS_API_URL: str = "http://localhost:3000/api/wallet-dashboard"
    HOLDINGS_TIMEOUT_SECONDS: float = 10.0

    # Analytics reference values
    RISK_FREE_RATE: float = 0.05
    DEFAULT_CORRELATION: float = 0.5
    MARKET_BETA: float = 1.1
    DEFAULT_LIQUIDITY_SCORE: float = 0.5
    STABLE_REFERENCE_ASSET: str = "USDC"

    # Recommendations
    MAX_RECOMMENDATIONS: int = 10
    MIN_RECOMMENDATION_CONFIDENCE: float = 0.3

    # Rate Limiting
    RATE_LIMIT_PER_MINUTE: int = 60
    READ_RATE_LIMIT_PER_MINUTE: int = 120
    RATE_LIMIT_STORAGE_URI: str = "memory://"

    # CORS
    # Override with comma-separated env var: CORS_ORIGINS=https://mysite.com,https://www.mysite.com
    CORS_ORIGINS: Union[str, List[str]] = "http://localhost:3000,http://127.0.0.1:3000"

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("SNAPSHOT_HISTORY_LIMIT", "MAX_RECOMMENDATIONS")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v

    @field_validator("HOLDINGS_TIMEOUT_SECONDS", "WALLET_LOCK_TIMEOUT_SECONDS")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeout must be positive")
        return v

    @field_validator(
        "DEFAULT_CORRELATION", "DEFAULT_LIQUIDITY_SCORE", "MIN_RECOMMENDATION_CONFIDENCE"
    )
    @classmethod
    def validate_unit_interval(cls, v: float) -> float:
        if not 0 <= v <= 1:
            raise ValueError("must be between 0 and 1")
        return v

    @field_validator("LOG_FORMAT")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v = v.lower()
        if v not in ("text", "json"):
            raise ValueError("LOG_FORMAT must be 'text' or 'json'")
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.APP_ENV == "production" and not self.DEBUG

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
