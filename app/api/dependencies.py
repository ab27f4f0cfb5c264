"""Per-request wiring of sessions and the matching engine."""

from contextlib import contextmanager
from typing import Iterator

from fastapi import Request

from app.matching.engine import MatchingEngine
from app.persistence import get_session


@contextmanager
def matching_engine(request: Request) -> Iterator[MatchingEngine]:
    """Open one transaction and yield an engine bound to it.

    The transaction commits when the block exits normally and rolls back on
    any exception, before the response is produced.

    Example:
        >>> with matching_engine(request) as engine:
        ...     outcome = engine.like(Side.CLIENT, user.id, freelancer_id, project_id)
    """
    state = request.app.state
    with get_session() as session:
        yield MatchingEngine(
            session,
            ranker=state.ranker,
            ranking_config=state.app_config.ranking,
        )
