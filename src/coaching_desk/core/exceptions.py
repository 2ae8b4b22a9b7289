class DomainError(Exception):
    """Base exception for business rule violations."""

    status_code = 400


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    status_code = 400


class AuthenticationError(DomainError):
    """Raised when the caller has no usable session or bad credentials."""

    status_code = 401


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    status_code = 403


class NotFoundError(DomainError):
    """Raised when a referenced tenant-scoped entity does not exist."""

    status_code = 404


class ConflictError(DomainError):
    """Raised when a unique entity (e.g. an account email) already exists."""

    status_code = 409


class UpstreamUnavailableError(DomainError):
    """Raised when a backing service cannot be reached."""

    status_code = 503


class InternalError(DomainError):
    """Raised when a write could not be completed consistently."""

    status_code = 500
