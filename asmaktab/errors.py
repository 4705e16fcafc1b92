"""Custom exception classes for the application."""


class AppError(Exception):
    """Base application error class."""

    def __init__(self, message, status_code=400):
        """Initialize the error."""
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class ValidationError(AppError):
    """Raised when user input fails validation."""

    def __init__(self, message="Validation failed."):
        """Initialize the error."""
        super().__init__(message, 400)


class ConflictError(AppError):
    """Raised when an action conflicts with the current state of a resource."""

    def __init__(self, message="Request conflicts with the current state."):
        """Initialize the error."""
        super().__init__(message, 400)


class AuthenticationError(AppError):
    """Raised when the request carries no valid identity."""

    def __init__(self, message="Unauthorized."):
        """Initialize the error."""
        super().__init__(message, 401)


class AuthorizationError(AppError):
    """Raised when the acting identity may not perform the action."""

    def __init__(self, message="Forbidden access."):
        """Initialize the error."""
        super().__init__(message, 403)


class NotFoundError(AppError):
    """Raised when a resource is not found."""

    def __init__(self, message="Resource not found."):
        """Initialize the error."""
        super().__init__(message, 404)


class StoreError(AppError):
    """Raised when the underlying document store fails."""

    def __init__(self, message="A database error occurred."):
        """Initialize the error."""
        super().__init__(message, 500)
