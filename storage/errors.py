"""Exceptions raised by the storage services and mapped to HTTP errors by the API."""

from typing import Optional, Sequence


class StorageError(Exception):
    """Base class for storage service failures."""


class InvalidVolumeRequest(StorageError):
    """Volume name or size rejected before any command runs."""


class VolumeExistsError(StorageError):
    def __init__(self, name: str):
        super().__init__(f"volume '{name}' already exists")
        self.name = name


class VolumeNotFoundError(StorageError):
    def __init__(self, name: str):
        super().__init__(f"volume '{name}' not found")
        self.name = name


class CommandError(StorageError):
    """A shell command failed. The message embeds the combined stdout/stderr."""

    def __init__(self, argv: Sequence[str], returncode: int, output: str, step: Optional[str] = None):
        self.argv = list(argv)
        self.returncode = returncode
        self.output = output
        self.step = step
        message = f"exit status {returncode}: {output.strip()}"
        if step:
            message = f"{step} failed: {message}"
        super().__init__(message)


class FileBrowserError(StorageError):
    """A call to the file-browser API failed."""


class FileBrowserNotConfigured(FileBrowserError):
    pass
