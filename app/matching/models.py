"""Data models for the matching engine.

This module defines the marketplace sides, the derived state of a
(freelancer, project) pair, and the outcome returned by every consent call.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from app.domain.models import Decision, Match, UserRole


class Side(str, Enum):
    """Which side of the marketplace records a decision."""

    CLIENT = "client"
    FREELANCER = "freelancer"

    @property
    def role(self) -> UserRole:
        return UserRole(self.value)


class PairState(str, Enum):
    """State of a (freelancer, project) pair, derived from both consent sets.

    MATCHED is terminal: no operation removes a match.
    """

    UNDECIDED = "undecided"
    FREELANCER_INTERESTED = "freelancer_interested"
    CLIENT_APPROVED = "client_approved"
    MATCHED = "matched"
    REJECTED = "rejected"


def derive_pair_state(
    freelancer_decision: Optional[Decision],
    client_decision: Optional[Decision],
    has_match: bool,
) -> PairState:
    """Compute the pair state from both sides' decisions and the ledger.

    Args:
        freelancer_decision: Freelancer's decision about the project
        client_decision: Client's decision about the freelancer on that project
        has_match: Whether the ledger holds a match for the pair

    Returns:
        The derived PairState
    """
    if has_match:
        return PairState.MATCHED
    if Decision.NOK in (freelancer_decision, client_decision):
        return PairState.REJECTED
    if freelancer_decision == Decision.OK:
        return PairState.FREELANCER_INTERESTED
    if client_decision == Decision.OK:
        return PairState.CLIENT_APPROVED
    return PairState.UNDECIDED


@dataclass(frozen=True)
class ConsentOutcome:
    """Result of a like or dislike call.

    Attributes:
        side: Side that recorded the decision
        decision: Decision recorded
        freelancer_id: Freelancer of the pair
        project_id: Project of the pair
        state: Pair state after the call
        match: Match for the pair, whether created now or earlier
        match_created: True only for the call that inserted the match
        changed: False when the decision was already recorded (a retry)
    """

    side: Side
    decision: Decision
    freelancer_id: str
    project_id: str
    state: PairState
    match: Optional[Match] = None
    match_created: bool = False
    changed: bool = True

    @property
    def matched(self) -> bool:
        return self.match is not None
