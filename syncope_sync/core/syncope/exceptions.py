"""Syncope-specific exceptions for error handling."""


class DirectoryError(Exception):
    """Base exception for all Syncope directory operations."""
    pass


class DirectoryUnavailableError(DirectoryError):
    """The Syncope server could not be reached at all."""

    def __init__(self, message: str = "Syncope server is not reachable."):
        super().__init__(message)


class DirectoryAPIError(DirectoryError):
    """HTTP error from the Syncope REST API.
    
    Attributes:
        status_code: HTTP status code
        message: Error message from response
        endpoint: API endpoint that failed
    """
    
    def __init__(self, status_code: int, message: str, endpoint: str):
        self.status_code = status_code
        self.message = message
        self.endpoint = endpoint
        super().__init__(f"[{status_code}] {endpoint}: {message}")


class GroupError(DirectoryError):
    """A group operation failed."""
    pass


class GroupNotFoundError(GroupError):
    """Group does not exist in Syncope."""
    pass


class UserError(DirectoryError):
    """A user (any object) operation failed."""
    pass


class UserNotFoundError(UserError):
    """User lookup failed - no matching any object in the site realm."""
    pass
