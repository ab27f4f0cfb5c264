"""Storage for users, projects, consent decisions, and the match ledger.

Open a transaction with ``get_session()`` after ``init_database()`` and hand
the session to a repository (or to ``MatchingEngine``)::

    >>> from app.persistence import init_database, get_session, MatchRepository
    >>> init_database("sqlite:///./data/freelance_match.db")
    >>> with get_session() as session:
    ...     match, created = MatchRepository(session).create_if_absent("F7", "P3", "C1")

Consent rows themselves are written through ``app.matching.consent``; the
repositories here only read them back as sets on the domain objects.
"""

from .database import close_database, get_engine, get_session, init_database
from .exceptions import (
    DatabaseConnectionError,
    DataIntegrityError,
    PersistenceError,
    RecordNotFoundError,
)
from .repositories import MatchRepository, ProjectRepository, UserRepository

__all__ = [
    "init_database",
    "get_session",
    "close_database",
    "get_engine",
    "UserRepository",
    "ProjectRepository",
    "MatchRepository",
    "PersistenceError",
    "DatabaseConnectionError",
    "RecordNotFoundError",
    "DataIntegrityError",
]
