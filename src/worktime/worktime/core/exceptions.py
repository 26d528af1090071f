class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class NotFoundError(DomainError):
    """Raised when a referenced entity does not exist."""


class StorageUnavailableError(DomainError):
    """Raised when the database cannot serve a request."""


class ConstraintViolationError(StorageUnavailableError):
    """Raised when a write is rejected by a unique or foreign key constraint.

    ``errno`` is the MySQL error number when known; only 1062 (duplicate key)
    means another row already holds the value.
    """

    DUPLICATE_KEY_ERRNO = 1062

    def __init__(self, message: str = "", *, errno=None):
        super().__init__(message)
        self.errno = errno

    @property
    def is_duplicate_key(self) -> bool:
        return self.errno == self.DUPLICATE_KEY_ERRNO


class GenerationExhaustedError(DomainError):
    """Raised when no free sharing code was found within the attempt budget."""


class SharingError(DomainError):
    """Base exception for failures redeeming a sharing code."""


class CodeNotFoundError(SharingError):
    """Raised when a presented code does not resolve to any user."""


class SelfConnectionError(SharingError):
    """Raised when a user redeems their own code."""


class AlreadyConnectedError(SharingError):
    """Raised when the two users are already connected in either direction."""
