class CleanupError(Exception):
    """Base class for article cleanup errors."""


class ProtectionUnavailableError(CleanupError):
    """Raised when the protection set cannot be resolved and the engine runs fail-closed."""


class FeedCleanupTimeoutError(CleanupError):
    """Raised when a feed-scope cleanup exceeds its configured wall-clock bound."""


class RetentionSettingsValidationError(CleanupError, ValueError):
    """Raised when a retention settings update is outside the accepted ranges."""

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message
