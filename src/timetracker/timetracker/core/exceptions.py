class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class InvalidEntryError(ValidationError):
    """Raised when a timesheet entry has impossible hours or break minutes."""


class InvalidWeekStartError(ValidationError):
    """Raised when a timesheet week does not start on a Monday."""


class InvalidDateRangeError(ValidationError):
    """Raised when a request ends before it starts."""


class InsufficientBalanceError(ValidationError):
    """Raised when a vacation balance cannot cover the requested days."""


class InvalidStateError(DomainError):
    """Raised when an entity is not in the state an operation requires.

    Also raised when a conditional update finds the state already moved.
    """


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class NotOwnerError(AuthorizationError):
    """Raised when an owner-only action is attempted by someone else."""


class InsufficientPermissionError(AuthorizationError):
    """Raised when the actor's role ranks below the required role."""


class SelfApprovalError(AuthorizationError):
    """Raised when a reviewer tries to approve their own vacation request."""


class ConflictError(DomainError):
    """Raised when an operation collides with existing data."""


class DuplicateWeekError(ConflictError):
    """Raised when a timesheet already exists for the same week."""


class OverlappingRequestError(ConflictError):
    """Raised when a request overlaps a pending or approved request."""


class NotFoundError(DomainError):
    """Raised when a referenced entity does not exist."""
