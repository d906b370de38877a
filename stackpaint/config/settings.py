"""
Application Settings
===================

Renderer settings and environment configuration using Pydantic Settings.
Supports development, testing, and production environments.
"""

from typing import Optional
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Renderer settings with environment variable support."""

    # Application Configuration
    app_name: str = Field(default="stackpaint", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(
        default="development", description="Environment: development, testing, production"
    )
    debug: bool = Field(default=False, description="Debug mode")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: Optional[Path] = Field(default=None, description="Optional rotating log file")

    # Viewport Configuration
    default_width: int = Field(default=800, description="Default viewport width")
    default_height: int = Field(default=600, description="Default viewport height")
    max_width: int = Field(default=8000, description="Maximum viewport width")
    max_height: int = Field(default=8000, description="Maximum viewport height")
    default_scale: float = Field(default=1.0, description="Default device scale factor")

    # Paint Configuration
    max_iframe_depth: int = Field(default=8, description="Maximum nested iframe render depth")
    image_smoothing: bool = Field(default=True, description="Smooth scaled images")

    # Resource Configuration
    resource_timeout: float = Field(default=15.0, description="Resource fetch timeout in seconds")
    max_resource_bytes: int = Field(
        default=20 * 1024 * 1024, description="Largest resource payload accepted"
    )

    # Output Configuration
    png_compress_level: int = Field(default=6, description="zlib level used for PNG output")

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        allowed = {"development", "testing", "production"}
        if v not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of: {allowed}")
        return v.upper()

    @field_validator("max_iframe_depth")
    @classmethod
    def validate_iframe_depth(cls, v: int) -> int:
        """Iframe depth must leave room for at least the root document."""
        if v < 0:
            raise ValueError("max_iframe_depth cannot be negative")
        return v

    @field_validator("png_compress_level")
    @classmethod
    def validate_compress_level(cls, v: int) -> int:
        """Validate zlib compression level."""
        if not 0 <= v <= 9:
            raise ValueError("png_compress_level must be between 0 and 9")
        return v

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, env_prefix="STACKPAINT_"
    )


# Global settings instance - will be initialized when needed
settings = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global settings
    if settings is None:
        settings = Settings()
    return settings


def reload_settings() -> Settings:
    """Reload settings from environment."""
    global settings
    settings = Settings()
    return settings
