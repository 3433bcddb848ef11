"""
Custom exception hierarchy for Findr.

Provides a structured exception hierarchy for different error scenarios:
- AppException: Base for all application errors
- ConfigError: Configuration-related errors
- ScraperError: Provider and network errors
- ValidationError: Input validation errors

Each exception includes:
- Descriptive message
- Optional error code for programmatic handling
- Optional context dictionary for debugging

Example:
    >>> from findr.utils.exceptions import ProviderRequestError
    >>> raise ProviderRequestError("Provider returned 502", url=url, status_code=502)
"""

from __future__ import annotations

from typing import Any, Dict, Optional


# ============================================
# Base Exception
# ============================================


class AppException(Exception):
    """
    Base exception for all Findr application errors.

    All custom exceptions inherit from this class, allowing:
    - Catch-all handling of application errors
    - Consistent error structure across the app
    - Error code and context support

    Attributes:
        message: Human-readable error description.
        code: Optional error code for programmatic handling.
        context: Optional dictionary with debugging context.

    Example:
        >>> try:
        ...     raise AppException("Something went wrong", code="APP_001")
        ... except AppException as e:
        ...     print(f"Error {e.code}: {e.message}")
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Initialize the exception.

        Args:
            message: Human-readable error description.
            code: Optional error code (e.g., "CONFIG_INVALID").
            context: Optional dict with additional debugging info.
        """
        self.message = message
        self.code = code or self._default_code()
        self.context = context or {}
        super().__init__(self.message)

    def _default_code(self) -> str:
        """Generate default error code from class name."""
        # Convert CamelCase to UPPER_SNAKE_CASE
        name = self.__class__.__name__
        code = ""
        for i, char in enumerate(name):
            if char.isupper() and i > 0:
                code += "_"
            code += char.upper()
        return code

    def __str__(self) -> str:
        """String representation with code if available."""
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message

    def __repr__(self) -> str:
        """Detailed representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code!r}, "
            f"context={self.context!r})"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "context": self.context,
        }


# ============================================
# Configuration Errors
# ============================================


class ConfigError(AppException):
    """
    Base exception for configuration-related errors.

    Raised when there are issues with:
    - Loading configuration files
    - Parsing YAML
    - Missing provider credentials
    """

    pass


class ConfigFileNotFoundError(ConfigError):
    """Raised when an explicitly requested configuration file is not found."""

    def __init__(
        self,
        message: str = "Configuration file not found",
        path: Optional[str] = None,
        **kwargs,
    ) -> None:
        context = kwargs.pop("context", {})
        if path:
            context["path"] = path
        super().__init__(message, code="CONFIG_FILE_NOT_FOUND", context=context, **kwargs)


class ConfigurationError(ConfigError):
    """
    Raised when a required setting is absent or invalid.

    Never retried: a missing API key will still be missing on the next attempt.

    Example:
        >>> raise ConfigurationError(
        ...     "Bright Data API key is not configured",
        ...     missing=["provider.api_key"]
        ... )
    """

    def __init__(
        self,
        message: str = "Invalid configuration",
        missing: Optional[list[str]] = None,
        **kwargs,
    ) -> None:
        context = kwargs.pop("context", {})
        if missing:
            context["missing"] = list(missing)
        super().__init__(message, code="CONFIG_INVALID", context=context, **kwargs)


class ConfigValidationError(ConfigError):
    """
    Raised when a configuration file cannot be read as YAML.

    Example:
        >>> raise ConfigValidationError(
        ...     "Invalid YAML in config/config.yaml",
        ...     field="config/config.yaml"
        ... )
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Any = None,
        **kwargs,
    ) -> None:
        context = kwargs.pop("context", {})
        if field:
            context["field"] = field
        if value is not None:
            context["value"] = value
        super().__init__(message, code="CONFIG_VALIDATION", context=context, **kwargs)


# ============================================
# Scraper Errors
# ============================================


class ScraperError(AppException):
    """
    Base exception for scraping errors.

    Raised when there are issues with:
    - Requests to the scraping provider
    - Provider-side throttling
    """

    pass


class ProviderRequestError(ScraperError):
    """
    Raised when the scraping provider returns a non-success status
    or a malformed payload.

    Example:
        >>> raise ProviderRequestError(
        ...     "Provider request failed",
        ...     url="https://api.brightdata.com/request",
        ...     status_code=502
        ... )
    """

    def __init__(
        self,
        message: str = "Provider request failed",
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs,
    ) -> None:
        context = kwargs.pop("context", {})
        if url:
            context["url"] = url
        if status_code:
            context["status_code"] = status_code
        self.status_code = status_code
        super().__init__(message, code="PROVIDER_REQUEST", context=context, **kwargs)


class RateLimitError(ScraperError):
    """
    Raised when the provider signals throttling (HTTP 429).

    Example:
        >>> raise RateLimitError(
        ...     "Too many requests",
        ...     retry_after=60
        ... )
    """

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        retry_after: Optional[int] = None,
        **kwargs,
    ) -> None:
        context = kwargs.pop("context", {})
        if retry_after:
            context["retry_after_seconds"] = retry_after
        self.retry_after = retry_after
        super().__init__(message, code="RATE_LIMIT", context=context, **kwargs)


# ============================================
# Validation Errors
# ============================================


class ValidationError(AppException):
    """
    Base exception for input validation errors.

    Raised when user input or data fails validation.
    """

    pass


class InvalidInputError(ValidationError):
    """Raised when input data is invalid."""

    def __init__(
        self,
        message: str = "Invalid input",
        field: Optional[str] = None,
        value: Any = None,
        **kwargs,
    ) -> None:
        context = kwargs.pop("context", {})
        if field:
            context["field"] = field
        if value is not None:
            context["value"] = str(value)[:100]  # Limit value length
        super().__init__(message, code="INVALID_INPUT", context=context, **kwargs)
