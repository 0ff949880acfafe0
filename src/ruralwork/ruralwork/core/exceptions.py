class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class InvalidScoreRangeError(ValidationError):
    """A dimension score outside [0, 20] was submitted."""


class EvaluationLockedError(ValidationError):
    """A completed evaluation cannot be edited again."""


class DuplicateVoteError(ValidationError):
    """A voter already cast a ballot for this vote."""


class MissingReferenceError(DomainError):
    """A record points at a user (or other record) that does not exist.

    Aggregation treats this as soft: the record is skipped, the batch continues.
    """


class ConcurrentDeductionConflict(DomainError):
    """An idempotency key was reused for a different score adjustment."""


class StoreUnavailableError(DomainError):
    """The record store could not be reached or failed mid-operation."""


class DuplicateRecordError(DomainError):
    """An insert violated a unique key in the record store."""


class StatisticsUnavailableError(DomainError):
    """Statistics could not be loaded; no partial result is produced."""
