"""Authentication boundary.

Token verification happens upstream: the gateway in front of the service sets
``X-User-Id`` for authenticated requests. This module only resolves that id to
a user and enforces the ownership rules the matching engine does not know
about (a client acts on its own projects only).
"""

from typing import Optional

from fastapi import Header

from app.domain.models import Project, User
from app.matching.exceptions import MatchingError, StorageFailureError
from app.persistence import PersistenceError, UserRepository, get_session

USER_ID_HEADER = "X-User-Id"


class UnauthorizedError(MatchingError):
    """The request carries no identity, or an unknown one."""

    pass


class ForbiddenError(MatchingError):
    """The caller is authenticated but may not act on the resource."""

    pass


def get_current_user(
    x_user_id: Optional[str] = Header(default=None, alias=USER_ID_HEADER),
) -> User:
    """Resolve the calling user from the identity header.

    Raises:
        UnauthorizedError: If the header is missing or names no user
        StorageFailureError: If the lookup failed
    """
    if not x_user_id or not x_user_id.strip():
        raise UnauthorizedError(f"Missing {USER_ID_HEADER} header")

    try:
        with get_session() as session:
            user = UserRepository(session).get(x_user_id.strip())
    except PersistenceError as e:
        raise StorageFailureError(f"Failed to resolve caller: {e}") from e

    if user is None:
        raise UnauthorizedError("Unauthorized")
    return user


def ensure_project_owner(user: User, project: Project) -> None:
    """Reject callers acting on a project they do not own.

    Raises:
        ForbiddenError: If ``user`` is not the project's client
    """
    if project.client_id != user.id:
        raise ForbiddenError(f"User {user.id} does not own project {project.id}")
