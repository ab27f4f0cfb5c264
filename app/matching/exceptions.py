"""Exceptions raised by the consent store and the matching engine.

NotFoundError, InvalidTargetError and RoleMismatchError are validation
failures surfaced to the caller as-is. StorageFailureError wraps persistence
failures; every matching operation is idempotent, so callers may retry it.
A duplicate match insert is never raised: the ledger absorbs it.
"""


class MatchingError(Exception):
    """Base exception for all consent and matching errors."""

    pass


class NotFoundError(MatchingError):
    """A referenced user or project does not exist."""

    def __init__(self, entity: str, entity_id: str) -> None:
        """Initialize with the missing entity kind and id.

        Args:
            entity: Entity kind ("user", "freelancer", "project")
            entity_id: Identifier that was looked up
        """
        super().__init__(f"{entity.capitalize()} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class InvalidTargetError(MatchingError):
    """A consent target does not reference an existing entity of the expected type.

    Raised by the consent store, e.g. approving a client id on a project or a
    missing project id on a freelancer.
    """

    def __init__(self, message: str, target_id: str) -> None:
        super().__init__(message)
        self.target_id = target_id


class RoleMismatchError(MatchingError):
    """The wrong marketplace side invoked an operation.

    Examples:
    - The "freelancer" argument references a client
    - A freelancer calls the client-side approval
    - A client calls the freelancer-side approval
    """

    def __init__(self, message: str, user_id: str, expected_role: str) -> None:
        super().__init__(message)
        self.user_id = user_id
        self.expected_role = expected_role


class StorageFailureError(MatchingError):
    """The durable store failed; the transaction was rolled back.

    The operation left no partial writes and is safe to retry.
    """

    retryable = True
