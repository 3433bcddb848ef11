"""Unit tests for configuration loading and validation."""

import pytest
import yaml
from pydantic import ValidationError

from findr.utils.config import (
    AppConfig,
    CacheConfig,
    ProviderConfig,
    SearchConfig,
    get_config,
    load_config,
    validate_provider_credentials,
)
from findr.utils.exceptions import ConfigFileNotFoundError, ConfigurationError, ConfigValidationError


class TestProviderConfig:
    """Test provider settings."""

    def test_defaults(self):
        """Test default endpoint, zone and country."""
        config = ProviderConfig()

        assert config.api_key is None
        assert config.base_url == "https://api.brightdata.com/request"
        assert config.zone == "mcp_unlocker"
        assert config.country == "us"
        assert config.timeout_seconds == 30

    def test_country_normalized(self):
        """Test country codes are lower-cased."""
        assert ProviderConfig(country=" DE ").country == "de"

    def test_base_url_must_be_http(self):
        """Test non-HTTP endpoints are rejected."""
        with pytest.raises(ValidationError, match="http"):
            ProviderConfig(base_url="brightdata.com/request")


class TestCacheConfig:
    """Test cache settings."""

    def test_defaults(self):
        """Test default TTLs and size."""
        config = CacheConfig()

        assert config.ttl_seconds == 300
        assert config.fallback_ttl_seconds == 60
        assert config.max_size == 100

    def test_fallback_ttl_must_be_shorter(self):
        """Test synthetic results cannot outlive real ones."""
        with pytest.raises(ValidationError, match="shorter"):
            CacheConfig(ttl_seconds=60, fallback_ttl_seconds=120)

    def test_positive_values(self):
        """Test TTL and size must be positive."""
        with pytest.raises(ValidationError):
            CacheConfig(max_size=0)


class TestSearchConfig:
    """Test search settings."""

    def test_trailing_slash_removed(self):
        """Test base URL trailing slashes are stripped."""
        config = SearchConfig(marketplace_base_url="https://www.facebook.com/marketplace/")

        assert config.marketplace_base_url == "https://www.facebook.com/marketplace"

    def test_synthetic_without_credentials_off_by_default(self):
        """Test missing credentials fail by default."""
        assert SearchConfig().synthetic_without_credentials is False


class TestAppConfig:
    """Test application configuration."""

    def test_defaults(self):
        """Test every section has defaults."""
        config = AppConfig()

        assert config.rate_limit.requests_per_minute == 10
        assert config.rate_limit.max_concurrent_requests == 5
        assert config.retry.max_retries == 3
        assert config.retry.max_rate_limit_retries == 1
        assert config.scoring.default_radius_miles == 25
        assert config.log_level == "INFO"

    def test_log_level_normalized(self):
        """Test log level is upper-cased."""
        assert AppConfig(log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level(self):
        """Test unknown log levels are rejected."""
        with pytest.raises(ValidationError, match="Invalid log level"):
            AppConfig(log_level="VERBOSE")


class TestLoadConfig:
    """Test loading configuration from YAML and the environment."""

    def test_load_from_yaml(self, tmp_path):
        """Test loading configuration from YAML file."""
        config_data = {
            "provider": {"api_key": "file-key", "zone": "file_zone"},
            "cache": {"ttl_seconds": 120, "fallback_ttl_seconds": 30},
            "rate_limit": {"requests_per_minute": 20},
            "log_level": "warning",
        }
        config_file = tmp_path / "config.yaml"
        with open(config_file, "w") as f:
            yaml.dump(config_data, f)

        config = load_config(config_file)

        assert config.provider.api_key == "file-key"
        assert config.provider.zone == "file_zone"
        assert config.cache.ttl_seconds == 120
        assert config.rate_limit.requests_per_minute == 20
        assert config.rate_limit.max_concurrent_requests == 5
        assert config.log_level == "WARNING"

    def test_empty_file_uses_defaults(self, tmp_path):
        """Test an empty YAML file gives the defaults."""
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("")

        config = load_config(config_file)

        assert config == AppConfig()

    def test_missing_explicit_file(self, tmp_path):
        """Test an explicitly requested file must exist."""
        with pytest.raises(ConfigFileNotFoundError) as exc_info:
            load_config(tmp_path / "missing.yaml")

        assert exc_info.value.code == "CONFIG_FILE_NOT_FOUND"
        assert "config.example.yaml" in exc_info.value.message

    def test_findr_config_env_var(self, tmp_path, monkeypatch):
        """Test FINDR_CONFIG points at the file to load."""
        config_file = tmp_path / "custom.yaml"
        config_file.write_text("provider:\n  zone: env_file_zone\n")
        monkeypatch.setenv("FINDR_CONFIG", str(config_file))

        assert load_config().provider.zone == "env_file_zone"

    def test_findr_config_env_var_missing_file(self, tmp_path, monkeypatch):
        """Test a FINDR_CONFIG path that does not exist is an error."""
        monkeypatch.setenv("FINDR_CONFIG", str(tmp_path / "nope.yaml"))

        with pytest.raises(ConfigFileNotFoundError):
            load_config()

    def test_environment_overrides_file(self, tmp_path, monkeypatch):
        """Test BRIGHTDATA_* variables take precedence over the file."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("provider:\n  api_key: file-key\n  zone: file_zone\n")
        monkeypatch.setenv("BRIGHTDATA_API_KEY", "env-key")
        monkeypatch.setenv("BRIGHTDATA_ZONE_NAME", "env_zone")
        monkeypatch.setenv("BRIGHTDATA_PROXY_PORT", "22225")
        monkeypatch.setenv("BRIGHTDATA_PROXY_USERNAME", "brd-customer-1")

        config = load_config(config_file)

        assert config.provider.api_key == "env-key"
        assert config.provider.zone == "env_zone"
        assert config.proxy.port == 22225
        assert config.proxy.username == "brd-customer-1"

    def test_logging_environment_overrides(self, tmp_path, monkeypatch):
        """Test LOG_LEVEL and FINDR_LOG_DIR take precedence over the file."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("log_level: warning\n")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("FINDR_LOG_DIR", str(tmp_path / "logs"))

        config = load_config(config_file)

        assert config.log_level == "DEBUG"
        assert config.log_dir == str(tmp_path / "logs")

    def test_environment_overrides_null_section(self, tmp_path, monkeypatch):
        """Test overrides work when the YAML section is empty."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("provider:\n")
        monkeypatch.setenv("BRIGHTDATA_API_KEY", "env-key")

        assert load_config(config_file).provider.api_key == "env-key"

    def test_invalid_yaml(self, tmp_path):
        """Test unparseable YAML is reported as a configuration error."""
        config_file = tmp_path / "invalid.yaml"
        config_file.write_text("invalid: yaml: content:")

        with pytest.raises(ConfigValidationError) as exc_info:
            load_config(config_file)

        assert exc_info.value.code == "CONFIG_VALIDATION"

    def test_non_mapping_yaml(self, tmp_path):
        """Test a YAML list is not a valid configuration."""
        config_file = tmp_path / "list.yaml"
        config_file.write_text("- provider\n- cache\n")

        with pytest.raises(ConfigValidationError, match="mapping"):
            load_config(config_file)

    def test_invalid_values_rejected(self, tmp_path):
        """Test validation errors surface from the file contents."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("rate_limit:\n  requests_per_minute: 0\n")

        with pytest.raises(ValidationError):
            load_config(config_file)


class TestConfigSingleton:
    """Test configuration singleton pattern."""

    def test_get_config_returns_same_instance(self):
        """Test get_config returns cached instance."""
        config1 = get_config()
        config2 = get_config()

        assert config1 is config2

    def test_reload(self, tmp_path):
        """Test reload=True re-reads the file."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("log_level: DEBUG\n")
        first = get_config(config_file)

        config_file.write_text("log_level: ERROR\n")
        cached = get_config(config_file)
        reloaded = get_config(config_file, reload=True)

        assert cached is first
        assert cached.log_level == "DEBUG"
        assert reloaded.log_level == "ERROR"


class TestValidateProviderCredentials:
    """Test the fail-fast credential check."""

    def test_configured(self):
        """Test a key and zone pass."""
        config = AppConfig.model_validate({"provider": {"api_key": "key", "zone": "zone"}})

        validate_provider_credentials(config)

    def test_missing_key(self):
        """Test a missing API key is reported."""
        with pytest.raises(ConfigurationError) as exc_info:
            validate_provider_credentials(AppConfig())

        missing = exc_info.value.context["missing"]
        assert len(missing) == 1
        assert "BRIGHTDATA_API_KEY" in missing[0]

    def test_missing_key_and_zone(self):
        """Test every missing setting is listed."""
        config = AppConfig.model_validate({"provider": {"zone": ""}})

        with pytest.raises(ConfigurationError) as exc_info:
            validate_provider_credentials(config)

        assert len(exc_info.value.context["missing"]) == 2
