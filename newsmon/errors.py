from __future__ import annotations


class MonitorError(RuntimeError):
    """Base class for monitor failures."""


class ConfigurationError(MonitorError):
    """Raised for missing or invalid run configuration."""


class ExtractionError(MonitorError):
    """Raised by an extraction attempt for conditions worth retrying."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class StoreError(MonitorError):
    """Raised when the news store cannot be read or written."""