"""Configuration management system using Pydantic v2 and YAML.

This module provides type-safe configuration loading with validation
for the Findr search pipeline. Every setting has a safe default, so the
pipeline runs without a config file; with
``search.synthetic_without_credentials`` enabled it also runs without
provider credentials (searches then return synthetic listings).
"""

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from findr.utils.exceptions import ConfigFileNotFoundError, ConfigurationError, ConfigValidationError


class ProviderConfig(BaseModel):
    """Configuration for the Bright Data scraping provider."""

    api_key: Optional[str] = Field(default=None, description="Bearer token for the provider API")
    base_url: str = Field(default="https://api.brightdata.com/request", description="Provider request endpoint")
    zone: str = Field(default="mcp_unlocker", description="Provider zone identifier")
    country: str = Field(default="us", description="Country the provider fetches from")
    format: str = Field(default="raw", description="Response format requested from the provider")
    timeout_seconds: int = Field(default=30, ge=1, description="Provider request timeout in seconds")

    @field_validator('base_url')
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Ensure the endpoint is an HTTP(S) URL."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")
        return v

    @field_validator('country')
    @classmethod
    def validate_country(cls, v: str) -> str:
        """Normalize country code to lower case."""
        return v.strip().lower()


class ProxyConfig(BaseModel):
    """Configuration for direct proxy access to the provider."""

    host: str = Field(default="brd.superproxy.io", description="Proxy host")
    port: int = Field(default=33325, ge=1, le=65535, description="Proxy port")
    username: Optional[str] = Field(default=None, description="Proxy username")
    password: Optional[str] = Field(default=None, description="Proxy password")


class CacheConfig(BaseModel):
    """Configuration for the in-memory result cache."""

    ttl_seconds: float = Field(default=300.0, gt=0, description="Lifetime of real search results")
    fallback_ttl_seconds: float = Field(default=60.0, gt=0, description="Lifetime of synthetic fallback results")
    max_size: int = Field(default=100, ge=1, description="Maximum number of cached entries")

    @model_validator(mode='after')
    def validate_fallback_ttl(self) -> 'CacheConfig':
        """Ensure synthetic results expire before real ones."""
        if self.fallback_ttl_seconds >= self.ttl_seconds:
            raise ValueError(
                f"fallback_ttl_seconds ({self.fallback_ttl_seconds}) must be shorter "
                f"than ttl_seconds ({self.ttl_seconds})"
            )
        return self


class RateLimitConfig(BaseModel):
    """Configuration for outbound request rate limiting."""

    requests_per_minute: int = Field(default=10, ge=1, description="Sliding-window request cap per minute")
    max_concurrent_requests: int = Field(default=5, ge=1, description="Token bucket capacity (burst size)")


class RetryConfig(BaseModel):
    """Configuration for provider retry and rate-limit recovery."""

    max_retries: int = Field(default=3, ge=0, description="Retries after the first failed provider call")
    base_delay_seconds: float = Field(default=1.0, ge=0.0, description="Base of the exponential backoff")
    max_jitter_seconds: float = Field(default=0.2, ge=0.0, description="Upper bound of random jitter")
    rate_limit_cooldown_seconds: float = Field(default=5.0, ge=0.0, description="Wait after a throttling signal")
    max_rate_limit_retries: int = Field(default=1, ge=0, description="Extra attempts after a throttling signal")


class SearchConfig(BaseModel):
    """Configuration for marketplace search requests."""

    synthetic_without_credentials: bool = Field(
        default=False,
        description="Serve synthetic listings instead of failing when the provider is not configured",
    )
    marketplace_base_url: str = Field(
        default="https://www.facebook.com/marketplace",
        description="Base URL of the marketplace being searched",
    )

    @field_validator('marketplace_base_url')
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Remove trailing slashes so paths can be appended."""
        return v.rstrip("/")


class ScoringConfig(BaseModel):
    """Configuration for relevance scoring."""

    default_radius_miles: float = Field(default=25.0, gt=0, description="Search radius when the caller gives none")


class AppConfig(BaseModel):
    """Root configuration model containing all sub-configurations."""

    provider: ProviderConfig = Field(default_factory=ProviderConfig)
    proxy: ProxyConfig = Field(default_factory=ProxyConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    log_level: str = Field(default="INFO", description="Logging level")
    log_dir: Optional[str] = Field(default=None, description="Directory for rotating log files")

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level. Choose from: {valid_levels}")
        return v_upper


# Environment variables that override file values: env name -> (section, field); None is the top level
ENV_OVERRIDES = {
    'BRIGHTDATA_API_KEY': ('provider', 'api_key'),
    'BRIGHTDATA_ZONE_NAME': ('provider', 'zone'),
    'BRIGHTDATA_API_URL': ('provider', 'base_url'),
    'BRIGHTDATA_PROXY_HOST': ('proxy', 'host'),
    'BRIGHTDATA_PROXY_PORT': ('proxy', 'port'),
    'BRIGHTDATA_PROXY_USERNAME': ('proxy', 'username'),
    'BRIGHTDATA_PROXY_PASSWORD': ('proxy', 'password'),
    'LOG_LEVEL': (None, 'log_level'),
    'FINDR_LOG_DIR': (None, 'log_dir'),
}

# Singleton pattern for configuration
_config: Optional[AppConfig] = None


def _apply_env_overrides(config_dict: dict) -> dict:
    for env_name, (section, field) in ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if not value:
            continue
        if section is None:
            config_dict[field] = value
        else:
            config_dict.setdefault(section, {})
            if config_dict[section] is None:
                config_dict[section] = {}
            config_dict[section][field] = value
    return config_dict


def load_config(config_path: Optional[Path | str] = None) -> AppConfig:
    """Load and validate configuration from YAML file.

    Resolution order for the file: explicit ``config_path`` argument,
    then the FINDR_CONFIG environment variable, then config/config.yaml
    relative to the project root. A missing default file is not an
    error; built-in defaults are used instead. Provider credentials from
    BRIGHTDATA_* environment variables override file values, as do
    LOG_LEVEL and FINDR_LOG_DIR for the logging settings.

    Args:
        config_path: Path to configuration file

    Returns:
        Validated AppConfig instance

    Raises:
        ConfigFileNotFoundError: If an explicitly requested file doesn't exist
        ConfigValidationError: If the file is not a YAML mapping
        pydantic.ValidationError: If configuration is invalid
    """
    explicit = True
    if config_path is None:
        env_config_path = os.environ.get('FINDR_CONFIG')
        if env_config_path:
            config_path = Path(env_config_path)
        else:
            project_root = Path(__file__).parent.parent.parent
            config_path = project_root / "config" / "config.yaml"
            explicit = False
    else:
        config_path = Path(config_path)

    config_dict: dict = {}
    if config_path.exists():
        with open(config_path, 'r', encoding='utf-8') as f:
            try:
                config_dict = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigValidationError(
                    f"Invalid YAML in {config_path}: {e}",
                    field=str(config_path),
                ) from e
        if not isinstance(config_dict, dict):
            raise ConfigValidationError(
                f"Configuration file {config_path} must contain a mapping",
                field=str(config_path),
            )
    elif explicit:
        example_path = config_path.parent / "config.example.yaml"
        raise ConfigFileNotFoundError(
            f"Configuration file not found: {config_path}. "
            f"Copy {example_path} to {config_path} and customize it.",
            path=str(config_path),
        )

    config_dict = _apply_env_overrides(config_dict)

    # Validate and create configuration
    config = AppConfig.model_validate(config_dict)
    return config


def get_config(config_path: Optional[Path | str] = None, reload: bool = False) -> AppConfig:
    """Get configuration instance (singleton pattern).

    Args:
        config_path: Path to configuration file (only used on first call or if reload=True)
        reload: Force reload of configuration

    Returns:
        Cached or newly loaded AppConfig instance
    """
    global _config

    if _config is None or reload:
        _config = load_config(config_path)

    return _config


def reset_config() -> None:
    """Reset cached configuration (useful for testing)."""
    global _config
    _config = None


def validate_provider_credentials(config: AppConfig) -> None:
    """Fail fast when the provider cannot be called.

    Args:
        config: Application configuration

    Raises:
        ConfigurationError: If the API key or zone is missing
    """
    missing = []
    if not config.provider.api_key:
        missing.append("provider.api_key (BRIGHTDATA_API_KEY)")
    if not config.provider.zone:
        missing.append("provider.zone (BRIGHTDATA_ZONE_NAME)")

    if missing:
        raise ConfigurationError(
            "Bright Data provider is not configured",
            missing=missing,
        )
