"""
Housekeeper Exception Hierarchy.

Defines all custom exceptions used across the housekeeping pipeline.
Setup and classification errors are fatal for a run; deletion errors are
per-artifact and recovered by the deletion orchestrator.
"""

from typing import Any


class HousekeeperError(Exception):
    """
    Base exception for all Housekeeper errors.

    All custom exceptions inherit from this class, allowing
    generic catch blocks and consistent error handling.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None):
        """
        Initialize a HousekeeperError.

        Args:
            message: Human-readable error message
            details: Optional structured data for debugging
        """
        super().__init__(message)
        self.message = message
        self.details = dict(details or {})

    def __str__(self) -> str:
        """Return string representation with details."""
        base = self.message
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{base} ({details_str})"
        return base

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class InvalidArtifactError(HousekeeperError):
    """
    Raised when an artifact timestamp cannot be parsed or compared.

    Aborts classification: retention decisions cannot be made for a
    pool containing artifacts of unknown age.
    """

    def __init__(
        self,
        message: str,
        *,
        artifact_id: str | None = None,
        value: Any = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize an InvalidArtifactError.

        Args:
            message: Human-readable error message
            artifact_id: ID of the offending artifact
            value: The timestamp value that could not be used
            details: Optional structured data for debugging
        """
        details = dict(details or {})
        if artifact_id:
            details["artifact_id"] = artifact_id
        if value is not None:
            details["value"] = repr(value)

        super().__init__(message, details=details)
        self.artifact_id = artifact_id
        self.value = value


class InvalidVolumeError(HousekeeperError):
    """Raised when capacity figures make a usage fraction undefined."""

    def __init__(
        self,
        message: str,
        *,
        volume_id: str | None = None,
        axis: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = dict(details or {})
        if volume_id:
            details["volume_id"] = volume_id
        if axis:
            details["axis"] = axis

        super().__init__(message, details=details)
        self.volume_id = volume_id
        self.axis = axis


class SourceUnavailableError(HousekeeperError):
    """
    Raised when the artifact or volume source cannot be reached.

    This occurs when:
    - The management command cannot be executed
    - The requested volume or shadow storage does not exist
    - The artifact root directory is missing
    """

    def __init__(
        self,
        message: str,
        *,
        source: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize a SourceUnavailableError.

        Args:
            message: Human-readable error message
            source: Identifier of the unreachable source
            details: Optional structured data for debugging
        """
        details = dict(details or {})
        if source:
            details["source"] = source

        super().__init__(message, details=details)
        self.source = source


class DeletionFailedError(HousekeeperError):
    """Raised by an artifact source when a single deletion fails."""

    def __init__(
        self,
        message: str,
        *,
        artifact_id: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = dict(details or {})
        if artifact_id:
            details["artifact_id"] = artifact_id

        super().__init__(message, details=details)
        self.artifact_id = artifact_id


class ConfigurationError(HousekeeperError):
    """
    Errors in configuration loading or validation.

    Raised when:
    - Configuration files are missing or malformed
    - Configuration values are invalid
    """

    def __init__(
        self,
        message: str,
        *,
        config_file: str | None = None,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize a ConfigurationError.

        Args:
            message: Human-readable error message
            config_file: Path to configuration file if applicable
            config_key: Configuration key if applicable
            details: Optional structured data for debugging
        """
        details = dict(details or {})
        if config_file:
            details["config_file"] = config_file
        if config_key:
            details["config_key"] = config_key

        super().__init__(message, details=details)
        self.config_file = config_file
        self.config_key = config_key


class NotificationError(HousekeeperError):
    """Raised when a notification channel is misconfigured."""

    def __init__(
        self,
        message: str,
        *,
        channel: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = dict(details or {})
        if channel:
            details["channel"] = channel

        super().__init__(message, details=details)
        self.channel = channel
