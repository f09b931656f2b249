"""
Centralized configuration management.

All engine configuration is loaded and validated here.
"""
import os
import logging
from typing import Optional
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)


class Settings(BaseModel):
    """Engine settings with validation."""

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="text", description="Log output format: 'text' or 'json'")

    # Classification
    classification_sample_size: int = Field(default=100, ge=1, le=100000, description="Non-null values sampled per column")
    sample_values_limit: int = Field(default=20, ge=1, le=1000, description="Distinct preview values kept per column")
    histogram_bins: int = Field(default=10, ge=1, le=100, description="Equal-width bins per numeric histogram")

    # Ranking
    max_recommendations: int = Field(default=10, ge=1, le=100, description="Maximum recommendations returned")
    max_per_chart_type: int = Field(default=3, ge=1, le=50, description="Recommendations kept per chart type")

    # Chart defaults
    chart_width: int = Field(default=800, ge=100, le=10000, description="Default chart width in pixels")
    chart_height: int = Field(default=500, ge=100, le=10000, description="Default chart height in pixels")

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}, got '{v}'")
        return v.upper()

    @field_validator('log_format')
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        if v.lower() not in ("text", "json"):
            raise ValueError(f"LOG_FORMAT must be 'text' or 'json', got '{v}'")
        return v.lower()

    @property
    def dimensions(self) -> dict:
        return {"width": self.chart_width, "height": self.chart_height}

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables."""
        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "text"),
            classification_sample_size=int(os.getenv("CLASSIFICATION_SAMPLE_SIZE", "100")),
            sample_values_limit=int(os.getenv("SAMPLE_VALUES_LIMIT", "20")),
            histogram_bins=int(os.getenv("HISTOGRAM_BINS", "10")),
            max_recommendations=int(os.getenv("MAX_RECOMMENDATIONS", "10")),
            max_per_chart_type=int(os.getenv("MAX_PER_CHART_TYPE", "3")),
            chart_width=int(os.getenv("CHART_WIDTH", "800")),
            chart_height=int(os.getenv("CHART_HEIGHT", "500")),
        )


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get engine settings (singleton pattern)."""
    global _settings
    if _settings is None:
        load_dotenv()
        _settings = Settings.from_env()
        logger.info("Configuration loaded and validated successfully")
    return _settings


def reload_settings() -> Settings:
    """Reload settings (useful for testing)."""
    global _settings
    _settings = None
    return get_settings()
