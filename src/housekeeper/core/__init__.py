"""
Housekeeper Core Module.

Provides the exception hierarchy shared by every housekeeping stage.
"""

__all__ = [
    "HousekeeperError",
    "InvalidArtifactError",
    "InvalidVolumeError",
    "SourceUnavailableError",
    "DeletionFailedError",
    "ConfigurationError",
    "NotificationError",
]

from housekeeper.core.exceptions import (
    ConfigurationError,
    DeletionFailedError,
    HousekeeperError,
    InvalidArtifactError,
    InvalidVolumeError,
    NotificationError,
    SourceUnavailableError,
)
