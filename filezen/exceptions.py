"""
FileZen exception hierarchy.

All exceptions inherit from FileZenError for easy catching.
"""

from typing import Any


class FileZenError(Exception):
    """Base exception for all filezen errors."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx})"
        return self.message


class TransportError(FileZenError):
    """Network-level error (connection failed, TLS, timeout, HTTP status)."""

    def __init__(self, message: str, *, operation: str | None = None) -> None:
        super().__init__(message, operation=operation)
        self.operation = operation


class EnvelopeError(FileZenError):
    """The server answered with a non-OK status envelope."""

    def __init__(self, message: str, *, operation: str, server_message: str) -> None:
        super().__init__(message, operation=operation)
        self.operation = operation
        self.server_message = server_message


class AuthenticationError(EnvelopeError):
    """Login was rejected."""

    def __init__(self, message: str, *, server_message: str = "") -> None:
        super().__init__(message, operation="login", server_message=server_message)


class StateError(FileZenError):
    """Operation attempted without a valid session."""


class ProtocolMismatchError(FileZenError):
    """Response did not have the shape the endpoint contract promises."""

    def __init__(self, message: str, *, operation: str, status_code: int | None = None) -> None:
        super().__init__(message, operation=operation, status_code=status_code)
        self.operation = operation
        self.status_code = status_code


class PathError(FileZenError):
    """Path-related error."""

    def __init__(self, message: str, *, path: str) -> None:
        super().__init__(message, path=path)
        self.path = path


class FolderNotFoundError(PathError):
    """Project/folder path does not exist in the cached tree."""


class FileNotFoundInFolderError(PathError):
    """No file with that name exists in the folder."""


class UploadNotAllowedError(PathError):
    """Folder is not writable or already holds a file with that name."""


class DeliveryError(FileZenError):
    """Secondary delivery request is invalid."""


class FileTooLargeError(DeliveryError):
    """File exceeds the delivery size cap."""

    def __init__(self, message: str, *, size: int, limit: int) -> None:
        super().__init__(message)
        self.context.update(size=size, limit=limit)
        self.size = size
        self.limit = limit


class InvalidModeError(FileZenError):
    """Unknown admin import/export mode."""

    def __init__(self, message: str, *, mode: str) -> None:
        super().__init__(message, mode=mode)
        self.mode = mode
