"""
Exceptions raised by the module logger.
"""


class ModuleLoggerError(Exception):
    """Base exception for module logger failures."""
    pass


class UsageError(ModuleLoggerError):
    """Raised when required command-line input is missing."""
    pass


class StorageIOError(ModuleLoggerError):
    """Raised when a cache, counts or log file cannot be read or written."""

    def __init__(self, path, reason):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"{self.path}: {reason}")


class CacheCorruptError(ModuleLoggerError):
    """Raised when a non-empty cache file cannot be parsed."""

    def __init__(self, path, reason):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"cache file {self.path} is corrupt: {reason}")


class CountsCorruptError(ModuleLoggerError):
    """Raised when a non-empty counts file cannot be parsed."""

    def __init__(self, path, reason):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"counts file {self.path} is corrupt: {reason}")
