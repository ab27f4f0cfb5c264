"""Mutual-consent matching engine.

This module implements the consent state machine that:
1. Records a like or dislike from either side in the consent store
2. Checks whether the other side already approved the pair
3. Records exactly one match per (freelancer, project) in the match ledger

All steps of one call run in the caller's session, i.e. one transaction.
Calls touching the same project serialize on the project row where the
database supports row locks; the ledger's unique constraint covers the rest.
"""

from typing import List, Optional

from sqlalchemy.orm import Session

from app.config.models import RankingConfig
from app.domain.models import Decision, Match, Project, User
from app.logging import get_logger
from app.logging.context import log_context
from app.persistence.exceptions import PersistenceError
from app.persistence.repositories import MatchRepository, ProjectRepository, UserRepository
from app.ranking.base import CandidateRanker, filter_candidates
from app.ranking.skills import SkillOverlapRanker

from .consent import ConsentOwner, ConsentStore
from .exceptions import NotFoundError, RoleMismatchError, StorageFailureError
from .models import ConsentOutcome, PairState, Side, derive_pair_state

logger = get_logger(__name__, component="matching")


class MatchingEngine:
    """Records consent decisions and creates matches on mutual approval.

    Responsibilities:
    - Validate that the pair exists and that the actor acts on its own side
    - Update the acting side's consent set (approve or disapprove)
    - On approval, check the reciprocal consent and create the match once
    - Serve ranked candidate lists without previously rejected freelancers

    Retrying any call is safe: decisions are upserts and the ledger returns the
    existing match instead of inserting a second one.
    """

    def __init__(
        self,
        session: Session,
        ranker: Optional[CandidateRanker] = None,
        ranking_config: Optional[RankingConfig] = None,
    ):
        """Initialize MatchingEngine.

        Args:
            session: SQLAlchemy session; the caller owns commit and rollback
            ranker: Candidate ranker (defaults to SkillOverlapRanker)
            ranking_config: Ranking settings (candidate limit, weights)
        """
        self.session = session
        self.ranking_config = ranking_config or RankingConfig()
        self.ranker = ranker or SkillOverlapRanker(self.ranking_config)
        self.users = UserRepository(session)
        self.projects = ProjectRepository(session)
        self.ledger = MatchRepository(session)
        self.consents = ConsentStore(session)

    def like(self, side: Side, actor_id: str, freelancer_id: str, project_id: str) -> ConsentOutcome:
        """Record an approval and create the match if the other side approved too.

        Args:
            side: CLIENT approves the freelancer on the project; FREELANCER
                approves the project
            actor_id: Authenticated user performing the call
            freelancer_id: Freelancer of the pair
            project_id: Project of the pair

        Returns:
            ConsentOutcome with the pair state and the match, if any

        Raises:
            NotFoundError: If the actor, freelancer, or project does not exist
            RoleMismatchError: If freelancer_id is not a freelancer or the actor
                is not on ``side``
            StorageFailureError: If the database failed (safe to retry)
        """
        return self._decide(side, actor_id, freelancer_id, project_id, Decision.OK)

    def dislike(
        self, side: Side, actor_id: str, freelancer_id: str, project_id: str
    ) -> ConsentOutcome:
        """Record a disapproval. Never creates or removes a match.

        Arguments and errors are the same as like().
        """
        return self._decide(side, actor_id, freelancer_id, project_id, Decision.NOK)

    def pair_state(self, freelancer_id: str, project_id: str) -> PairState:
        """Derive the current state of a (freelancer, project) pair."""
        try:
            return derive_pair_state(
                self.consents.decision(ConsentOwner.freelancer(freelancer_id), project_id),
                self.consents.decision(ConsentOwner.project(project_id), freelancer_id),
                self.ledger.get_by_pair(freelancer_id, project_id) is not None,
            )
        except PersistenceError as e:
            raise StorageFailureError(f"Failed to read pair state: {e}") from e

    def candidates(self, project_id: str) -> List[User]:
        """Rank freelancers for a project.

        The ranker's order is kept. Duplicates and freelancers the client
        rejected for this project are removed, and the list is truncated to
        ``ranking.max_candidates``.

        Raises:
            NotFoundError: If the project does not exist
            StorageFailureError: If the database failed
        """
        try:
            project = self.projects.get(project_id)
            if project is None:
                raise NotFoundError("project", project_id)

            pool = self.users.list_freelancers()
        except PersistenceError as e:
            raise StorageFailureError(f"Failed to load candidates: {e}") from e

        by_id = {user.id: user for user in pool}
        ranked = self.ranker.rank(project, pool)

        results = []
        for freelancer_id in filter_candidates(
            ranked, project, limit=self.ranking_config.max_candidates
        ):
            user = by_id.get(freelancer_id)
            if user is None:
                logger.warning(
                    f"Ranker returned unknown freelancer {freelancer_id}",
                    extra={"event": "matching.candidates.unknown_id", "project_id": project_id},
                )
                continue
            results.append(user)

        logger.info(
            f"Served {len(results)} candidates for project {project_id}",
            extra={
                "event": "matching.candidates.served",
                "project_id": project_id,
                "pool_size": len(pool),
                "candidate_count": len(results),
                "rejected_count": len(project.nok_freelancers),
            },
        )
        return results

    def matches_for(self, user_id: str) -> List[Match]:
        """List matches where the user is the freelancer or the project owner.

        Raises:
            NotFoundError: If the user does not exist
        """
        try:
            if not self.users.exists(user_id):
                raise NotFoundError("user", user_id)
            return self.ledger.list_for_user(user_id)
        except PersistenceError as e:
            raise StorageFailureError(f"Failed to list matches: {e}") from e

    def _decide(
        self,
        side: Side,
        actor_id: str,
        freelancer_id: str,
        project_id: str,
        decision: Decision,
    ) -> ConsentOutcome:
        with log_context(actor_id=actor_id, freelancer_id=freelancer_id, project_id=project_id):
            try:
                return self._apply_decision(side, actor_id, freelancer_id, project_id, decision)
            except PersistenceError as e:
                logger.error(
                    f"Storage failure recording {decision.value} from {side.value}: {e}",
                    extra={"event": "matching.storage_failure", "side": side.value},
                )
                raise StorageFailureError(f"Failed to record decision: {e}") from e

    def _apply_decision(
        self,
        side: Side,
        actor_id: str,
        freelancer_id: str,
        project_id: str,
        decision: Decision,
    ) -> ConsentOutcome:
        actor = self.users.get(actor_id)
        if actor is None:
            raise NotFoundError("user", actor_id)
        if actor.role != side.role:
            raise RoleMismatchError(
                f"User {actor_id} is a {actor.role.value} and cannot act as {side.value}",
                user_id=actor_id,
                expected_role=side.value,
            )

        # Lock the project row first: both halves of a pair serialize here
        project = self.projects.get(project_id, for_update=True)
        if project is None:
            raise NotFoundError("project", project_id)

        freelancer = actor if actor.id == freelancer_id else self.users.get(freelancer_id)
        if freelancer is None:
            raise NotFoundError("freelancer", freelancer_id)
        if not freelancer.is_freelancer:
            raise RoleMismatchError(
                f"User {freelancer_id} is not a freelancer",
                user_id=freelancer_id,
                expected_role=Side.FREELANCER.value,
            )
        if side == Side.FREELANCER and actor.id != freelancer_id:
            raise RoleMismatchError(
                f"Freelancer {actor_id} cannot decide for freelancer {freelancer_id}",
                user_id=actor_id,
                expected_role=Side.FREELANCER.value,
            )

        own, other, target_id = self._owners(side, freelancer_id, project_id)
        if decision == Decision.OK:
            changed = self.consents.add_approval(own, target_id)
        else:
            changed = self.consents.add_disapproval(own, target_id)

        # Read the other side only after our own write is in the transaction
        other_target = project_id if side == Side.CLIENT else freelancer_id
        other_decision = self.consents.decision(other, other_target)

        match, created = None, False
        if decision == Decision.OK and other_decision == Decision.OK:
            match, created = self.ledger.create_if_absent(
                freelancer_id, project_id, project.client_id
            )
            self._log_match(match, created, side)
        else:
            match = self.ledger.get_by_pair(freelancer_id, project_id)

        freelancer_decision, client_decision = (
            (other_decision, decision) if side == Side.CLIENT else (decision, other_decision)
        )
        state = derive_pair_state(freelancer_decision, client_decision, match is not None)

        logger.info(
            f"Recorded {decision.value} from {side.value}",
            extra={
                "event": "matching.decision.recorded",
                "side": side.value,
                "decision": decision.value,
                "changed": changed,
                "pair_state": state.value,
            },
        )

        return ConsentOutcome(
            side=side,
            decision=decision,
            freelancer_id=freelancer_id,
            project_id=project_id,
            state=state,
            match=match,
            match_created=created,
            changed=changed,
        )

    @staticmethod
    def _owners(side: Side, freelancer_id: str, project_id: str):
        """Return (acting owner, other owner, acting target) for a side."""
        if side == Side.CLIENT:
            return ConsentOwner.project(project_id), ConsentOwner.freelancer(freelancer_id), freelancer_id
        return ConsentOwner.freelancer(freelancer_id), ConsentOwner.project(project_id), project_id

    @staticmethod
    def _log_match(match: Match, created: bool, side: Side) -> None:
        if created:
            logger.info(
                f"Match created: {match.freelancer_id}/{match.project_id}",
                extra={
                    "event": "matching.match.created",
                    "match_id": match.id,
                    "client_id": match.client_id,
                    "completed_by": side.value,
                },
            )
        else:
            logger.debug(
                f"Match already existed: {match.freelancer_id}/{match.project_id}",
                extra={"event": "matching.match.converged", "match_id": match.id},
            )


def describe_project(project: Project) -> str:
    """One-line summary of a project's consent sets, for logs and scripts."""
    return (
        f"{project.title} ({project.id}): "
        f"{len(project.ok_freelancers)} approved, {len(project.nok_freelancers)} rejected"
    )
