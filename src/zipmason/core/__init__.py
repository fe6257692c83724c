"""zipmason core: configuration, errors, logging and diagnostics."""

from zipmason.core.config import ConfigResolver, ConfigSource, LoggingPolicy
from zipmason.core.errors import (
    ArchiveModeError,
    ArchiveNotFoundError,
    ConfigError,
    CorruptedFileError,
    DirectoryCreateFailedError,
    FileError,
    InvalidDestinationError,
    InvalidEntryNameError,
    PathNotFoundError,
    ZipMasonError,
)
from zipmason.core.events import EventBus, get_event_bus
from zipmason.core.logging import (
    VerbosityLevel,
    apply_logging_policy,
    get_logger,
    get_verbosity,
    set_colors,
    set_verbosity,
)

__all__ = [
    # Config
    "ConfigResolver",
    "ConfigSource",
    "LoggingPolicy",
    # Errors
    "ZipMasonError",
    "ConfigError",
    "FileError",
    "InvalidDestinationError",
    "PathNotFoundError",
    "ArchiveNotFoundError",
    "DirectoryCreateFailedError",
    "CorruptedFileError",
    "ArchiveModeError",
    "InvalidEntryNameError",
    # Events
    "EventBus",
    "get_event_bus",
    # Logging
    "VerbosityLevel",
    "apply_logging_policy",
    "get_logger",
    "get_verbosity",
    "set_colors",
    "set_verbosity",
]
