"""Errors raised by the selection engine and its store."""


class ReelFeedError(Exception):
    """Base class for all engine errors."""


class CategoryNotFound(ReelFeedError):
    """The requested category is not present in the resolved catalog."""

    def __init__(self, category: str):
        self.category = category
        super().__init__(f"Category '{category}' not found")


class NoVideosAvailable(ReelFeedError):
    """The catalog is empty; retrying is futile until it changes."""

    def __init__(self, message: str = "No videos available"):
        super().__init__(message)


class StoreUnavailable(ReelFeedError):
    """The persistent store failed. Callers may retry."""

    def __init__(self, operation: str, cause: Exception = None):
        self.operation = operation
        self.cause = cause
        detail = f"Store unavailable during {operation}"
        if cause is not None:
            detail = f"{detail}: {cause}"
        super().__init__(detail)
