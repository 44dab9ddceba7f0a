"""Custom exceptions for autocontext."""


class AutocontextError(Exception):
    """Base exception for all autocontext errors."""


class ConfigError(AutocontextError):
    """Configuration-related errors."""


class IndexingError(AutocontextError):
    """Codebase indexing errors."""


class RetrievalError(AutocontextError):
    """Raised when a retrieval source fails during context assembly."""

    def __init__(self, source: str, cause: BaseException):
        self.source = source
        self.cause = cause
        super().__init__(f"Retrieval source '{source}' failed: {cause}")
