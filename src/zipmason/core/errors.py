"""Error handling with friendly messages."""

from __future__ import annotations


class ZipMasonError(Exception):
    """Base exception for all zipmason errors."""

    def __init__(self, message: str, suggestion: str | None = None) -> None:
        self.message = message
        self.suggestion = suggestion
        super().__init__(message)

    def __str__(self) -> str:
        if self.suggestion:
            return f"{self.message}\nSuggestion: {self.suggestion}"
        return self.message


class ConfigError(ZipMasonError):
    """Configuration error."""

    pass


class FileError(ZipMasonError):
    """File operation error."""

    pass


class InvalidDestinationError(FileError):
    """Destination path is not a usable filesystem path."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        super().__init__(
            f"Invalid destination '{path}': {reason}",
            "Pass a plain file path (use --literal for names containing wildcards)",
        )


class PathNotFoundError(FileError):
    """Required source path does not exist."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Path not found: '{path}'")


class ArchiveNotFoundError(PathNotFoundError):
    """Archive to read does not exist."""

    def __init__(self, path: str) -> None:
        FileError.__init__(self, f"Archive not found: '{path}'")
        self.path = path


class DirectoryCreateFailedError(FileError):
    """Destination directory could not be created."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        super().__init__(f"Cannot create directory '{path}': {reason}")


class CorruptedFileError(FileError):
    """File is corrupted."""

    def __init__(self, path: str) -> None:
        super().__init__(
            f"File '{path}' is corrupted or not a ZIP archive",
            "Try re-downloading or check file integrity",
        )


class ArchiveModeError(FileError):
    """Operation is not allowed in the archive's open mode."""

    pass


class InvalidEntryNameError(FileError):
    """Computed archive entry name is not usable."""

    pass
