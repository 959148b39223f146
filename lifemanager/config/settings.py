"""
Configuration Management for Life Manager

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Thresholds used by the extractor, the savings tracker and the review
validator live next to the credentials of the optional AI fallback, so
every tunable number can be seen in one place.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ExtractionSettings(BaseSettings):
    """Rule-based payment text extraction configuration."""

    model_config = SettingsConfigDict(
        env_prefix="EXTRACTION_",
        extra="ignore"
    )

    max_counterparty_length: int = Field(
        default=30,
        ge=1,
        le=30,
        description="Longest counterparty name accepted from a pattern match"
    )


class SavingsSettings(BaseSettings):
    """Savings plan tracking configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SAVINGS_",
        extra="ignore"
    )

    on_track_tolerance: float = Field(
        default=0.9,
        gt=0.0,
        le=1.0,
        description="Fraction of expected progress a plan must reach to be on track"
    )


class GeminiSettings(BaseSettings):
    """Gemini LLM configuration (AI-assisted payment parsing)."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        extra="ignore"
    )

    api_key: str = Field(
        ...,
        description="Gemini API key"
    )
    model_name: str = Field(
        default="gemini-1.5-flash",
        description="Gemini model to use"
    )
    max_tokens: int = Field(
        default=256,
        ge=64,
        le=8192,
        description="Maximum tokens in response"
    )
    temperature: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Model temperature (lower = more deterministic)"
    )
    timeout_seconds: float = Field(
        default=15.0,
        gt=0.0,
        le=120.0,
        description="Upper bound for a single parse request"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Review thresholds
    max_payment_amount: float = Field(
        default=50000.0,
        gt=0,
        description="Largest amount auto-applied without a second look"
    )
    future_timestamp_tolerance_minutes: int = Field(
        default=10,
        ge=0,
        description="How far in the future a payment timestamp may be"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Sub-settings are loaded lazily so that a missing Gemini key
    # does not stop the rule-based parts from working.

    @property
    def extraction(self) -> ExtractionSettings:
        return ExtractionSettings()

    @property
    def savings(self) -> SavingsSettings:
        return SavingsSettings()

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}
    settings = get_settings()

    for name in ("extraction", "savings", "gemini", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
