"""Mutual-consent matching between freelancers and projects.

This module provides:
- ConsentStore: approve/disapprove sets owned by projects and freelancers
- MatchingEngine: like/dislike state machine creating one match per pair
- ConsentOutcome, PairState, Side: results and derived pair states
- Exceptions surfaced to API callers
"""

from .consent import ConsentOwner, ConsentStore, OwnerKind
from .engine import MatchingEngine, describe_project
from .exceptions import (
    InvalidTargetError,
    MatchingError,
    NotFoundError,
    RoleMismatchError,
    StorageFailureError,
)
from .models import ConsentOutcome, PairState, Side, derive_pair_state

__all__ = [
    "MatchingEngine",
    "describe_project",
    "ConsentStore",
    "ConsentOwner",
    "OwnerKind",
    "ConsentOutcome",
    "PairState",
    "Side",
    "derive_pair_state",
    "MatchingError",
    "NotFoundError",
    "InvalidTargetError",
    "RoleMismatchError",
    "StorageFailureError",
]
