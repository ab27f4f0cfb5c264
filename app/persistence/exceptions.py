"""Persistence layer exceptions.

All persistence exceptions inherit from PersistenceError. The matching engine
wraps PersistenceError into a retryable StorageFailureError for callers.
"""


class PersistenceError(Exception):
    """Base exception for all persistence layer errors.

    Raised by repositories when the underlying SQLAlchemy call fails.
    """

    pass


class DatabaseConnectionError(PersistenceError):
    """Raised when database connection or initialization fails.

    Examples:
    - Invalid database URL
    - Database file not accessible
    - Session requested before init_database()
    """

    pass


class RecordNotFoundError(PersistenceError):
    """Raised when an update targets a user or project that does not exist.

    Lookups that may legitimately miss return None instead.
    """

    pass


class DataIntegrityError(PersistenceError):
    """Raised when a constraint violation cannot be resolved.

    Examples:
    - Duplicate email on user creation
    - Foreign key pointing at a missing user or project

    A duplicate (freelancer, project) match is not one of these: the match
    ledger resolves it by returning the existing record.
    """

    pass
