# tsexport/exceptions.py
from __future__ import annotations


class ExportError(Exception):
    """Base error for all export-session exceptions."""


# ---- Layout / open errors ----
class AlreadyExists(ExportError, FileExistsError):
    """Raised when the destination file of a session is already on disk."""

    def __init__(self, path) -> None:
        self.path = str(path)
        super().__init__(
            f"The file '{self.path}' already exists. Extending an already "
            f"existing file with additional resources is not supported."
        )


class CapacityExceeded(ExportError):
    """Raised when the requested file would exceed the container size limit."""

    def __init__(self, required_bytes: int, limit: float) -> None:
        self.required_bytes = required_bytes
        self.limit = limit
        super().__init__(
            f"The requested data size of {required_bytes} bytes per channel "
            f"exceeds the limit of {limit:.0f} bytes. Choose a shorter file "
            f"period or a coarser sample period."
        )


class InvalidLayout(ExportError, ValueError):
    """Raised when catalog items cannot be mapped onto unique groups and channels."""


class InvalidCatalogItem(ExportError, ValueError):
    """Raised when a Catalog / Resource / Representation is constructed with invalid inputs."""


class ConfigurationError(ExportError, ValueError):
    """Raised when the writer context carries unusable settings."""


# ---- Session errors ----
class InvalidState(ExportError, RuntimeError):
    """Raised when an operation is called outside its legal session state."""

    def __init__(self, operation: str, state) -> None:
        self.operation = operation
        self.state = state
        name = getattr(state, "name", state)
        super().__init__(f"Cannot {operation} in {name} state")


class InvalidRequest(ExportError, ValueError):
    """Raised when a write offset or sample array does not fit the open file."""


class Cancelled(ExportError):
    """Raised when a cancellation signal is observed mid-operation."""

    def __init__(self, operation: str, groups_completed: int = 0) -> None:
        self.operation = operation
        self.groups_completed = groups_completed
        super().__init__(
            f"{operation} cancelled after {groups_completed} completed catalog group(s)"
        )


# ---- I/O ----
class IoFailure(ExportError, OSError):
    """Raised when the container library fails to read or write a file."""

    def __init__(self, message: str, path=None) -> None:
        self.path = None if path is None else str(path)
        super().__init__(message if path is None else f"{message}: '{self.path}'")


# ---- Lookup errors (also behave like KeyError for dict-like APIs) ----
class ChannelNotFound(ExportError, KeyError):
    """Raised when a write request names a catalog item that was not opened."""
