"""Configuration settings for the fare and booking service."""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

# Per-class (distance_km, fare) tiers used when the fare store is empty.
# Sleeper tiers match the admin console defaults; AC classes follow the
# per-km class ratios (0.75 / 2.25 / 3.50 / 5.50).
DEFAULT_FARE_TIERS: dict[str, list[list[float]]] = {
    "SL": [[100, 150.0], [250, 300.0], [500, 550.0], [750, 750.0], [1000, 950.0]],
    "3A": [[100, 450.0], [250, 900.0], [500, 1650.0], [750, 2250.0], [1000, 2850.0]],
    "2A": [[100, 700.0], [250, 1400.0], [500, 2565.0], [750, 3500.0], [1000, 4435.0]],
    "1A": [[100, 1100.0], [250, 2200.0], [500, 4035.0], [750, 5500.0], [1000, 6965.0]],
}


class Settings(BaseSettings):
    """Application settings with Pydantic validation."""

    # Environment settings
    environment: str = Field(
        default="development",
        description="Application environment"
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Application log level"
    )

    # Storage settings
    storage_backend: str = Field(
        default="memory",
        description="Booking and fare storage backend: 'memory' or 'sql'"
    )

    database_url: str = Field(
        default="sqlite:///./railfare.db",
        description="SQLAlchemy database URL used by the 'sql' backend"
    )

    # Payment settings
    payment_secret: str = Field(
        default="change-me-payment-secret",
        description="Shared secret for HMAC-SHA256 payment callback signatures"
    )

    currency: str = Field(
        default="INR",
        min_length=3,
        max_length=3,
        description="ISO 4217 currency used for gateway orders"
    )

    # Booking settings
    pnr_max_attempts: int = Field(
        default=10,
        ge=1,
        description="Number of PNR codes to try before giving up on a collision"
    )

    # Pricing settings
    quote_workers: int = Field(
        default=8,
        ge=1,
        le=64,
        description="Worker threads used to compute quotes for a search"
    )

    default_fare_tiers: dict[str, list[list[float]]] = Field(
        default=DEFAULT_FARE_TIERS,
        description="Fare tiers seeded into an empty fare store"
    )

    # Tracing settings
    otlp_endpoint: str | None = Field(
        default=None,
        description="OTLP gRPC collector endpoint; spans are only exported when set"
    )

    # CORS settings
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:8000"],
        description="Allowed CORS origins"
    )

    # Server settings
    host: str = Field(
        default="0.0.0.0",
        description="Server host"
    )

    port: int = Field(
        default=8000,
        description="Server port"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        valid_environments = ["development", "test", "staging", "production"]
        if v.lower() not in valid_environments:
            raise ValueError(f"Environment must be one of: {valid_environments}")
        return v.lower()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level value."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("storage_backend")
    @classmethod
    def validate_storage_backend(cls, v: str) -> str:
        """Validate storage backend value."""
        valid_backends = ["memory", "sql"]
        if v.lower() not in valid_backends:
            raise ValueError(f"Storage backend must be one of: {valid_backends}")
        return v.lower()

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | list[str]) -> list[str]:
        """Parse CORS origins from string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    @property
    def debug(self) -> bool:
        """Return True if in development mode."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Return True if in production mode."""
        return self.environment == "production"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "RAILFARE_",
        "case_sensitive": False,
    }


# Global settings instance
settings = Settings()
