"""
Custom exceptions for grounded-modkit.

This module defines domain-specific exceptions for archive classification,
release lookup, and companion-tool installation.
"""

from datetime import datetime


class ModkitError(Exception):
    """
    Base exception for all grounded-modkit errors.

    All custom exceptions should inherit from this class so callers can catch
    every application-specific error in one place.
    """

    def __init__(self, message: str, details: str | None = None) -> None:
        """
        Initialize the exception.

        Args:
            message: The primary error message.
            details: Optional additional context about the error.
        """
        self.message = message
        self.details = details
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(ModkitError):
    """
    Exception raised when configuration is invalid or missing.

    This includes:
    - Unreadable or malformed configuration files
    - Plugin requirements that cannot select an asset
    """

    pass


class ConfigFileError(ConfigurationError):
    """Exception raised when configuration file cannot be read or written."""

    pass


class RequirementConfigError(ConfigurationError):
    """Exception raised when a requirement has neither an archive pattern nor a file name."""

    pass


# =============================================================================
# API Errors
# =============================================================================


class APIError(ModkitError):
    """
    Exception raised for release-feed errors.

    Attributes:
        endpoint: The API endpoint that was accessed.
        status_code: The HTTP status code returned, if any.
        is_retryable: Whether repeating the request later may succeed.
    """

    def __init__(
        self,
        message: str,
        endpoint: str | None = None,
        status_code: int | None = None,
        is_retryable: bool = False,
        details: str | None = None,
    ) -> None:
        super().__init__(message, details)
        self.endpoint = endpoint
        self.status_code = status_code
        self.is_retryable = is_retryable


class AuthenticationError(APIError):
    """Exception raised when API authentication fails."""

    pass


class ResourceNotFoundError(APIError):
    """Exception raised when an API resource is not found."""

    pass


class RateLimitError(APIError):
    """
    Exception raised when the GitHub API rate limit is exceeded.

    Attributes:
        reset_time: When the rate limit will reset, or None if unknown.
        remaining: Number of requests remaining.
    """

    def __init__(
        self,
        message: str = "GitHub API rate limit exceeded",
        reset_time: datetime | None = None,
        remaining: int = 0,
        endpoint: str | None = None,
        status_code: int = 403,
    ) -> None:
        reset_str = reset_time.isoformat() if reset_time else "unknown"
        super().__init__(
            message,
            endpoint=endpoint,
            status_code=status_code,
            is_retryable=True,
            details=f"Resets at: {reset_str}, Remaining: {remaining}",
        )
        self.reset_time = reset_time
        self.remaining = remaining


# =============================================================================
# Archive Errors
# =============================================================================


class ArchiveError(ModkitError):
    """
    Exception raised for archive content errors.

    Attributes:
        archive_path: The archive (or listing) being processed, if known.
    """

    def __init__(
        self,
        message: str,
        archive_path: str | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, details)
        self.archive_path = archive_path


class UnsupportedContentError(ArchiveError):
    """Exception raised when no archetype accepts an archive's file list."""

    pass


class MalformedArchiveError(ArchiveError):
    """Exception raised when an archetype matched but its anchor file cannot be located."""

    pass


# =============================================================================
# Dependency Errors
# =============================================================================


class DependencyError(ModkitError):
    """Base exception for companion-tool download and install failures."""

    pass


class DownloadError(DependencyError):
    """
    Exception raised by a host when a download cannot be started.

    Attributes:
        url: The URL that was being downloaded.
    """

    def __init__(
        self, message: str, url: str | None = None, details: str | None = None
    ) -> None:
        super().__init__(message, details)
        self.url = url


class InstallError(DependencyError):
    """
    Exception raised by a host when a finished download cannot be installed.

    Attributes:
        download_id: The download that failed to install.
    """

    def __init__(
        self,
        message: str,
        download_id: str | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, details)
        self.download_id = download_id
