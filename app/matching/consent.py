"""Consent store: durable approve/disapprove sets for both marketplace sides.

A project owns the client's decisions about freelancers; a freelancer owns
their decisions about projects. Each decision is one row keyed by
(owner, target), so recording the opposite decision moves the target from one
set to the other in a single atomic upsert.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Set

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.models import Decision, UserRole
from app.logging import get_logger
from app.persistence.schema import (
    ProjectFreelancerConsentModel,
    ProjectModel,
    UserModel,
    UserProjectConsentModel,
)
from app.utils.timestamps import format_for_storage, utc_now

from .exceptions import (
    InvalidTargetError,
    NotFoundError,
    RoleMismatchError,
    StorageFailureError,
)

logger = get_logger(__name__, component="consent")

_UPSERT_DIALECTS = {
    "sqlite": sqlite_insert,
    "postgresql": pg_insert,
}


class OwnerKind(str, Enum):
    """Which entity owns a consent set."""

    PROJECT = "project"
    FREELANCER = "freelancer"


@dataclass(frozen=True)
class ConsentOwner:
    """Reference to the entity whose consent sets are being written."""

    kind: OwnerKind
    owner_id: str

    @classmethod
    def project(cls, project_id: str) -> "ConsentOwner":
        return cls(OwnerKind.PROJECT, project_id)

    @classmethod
    def freelancer(cls, user_id: str) -> "ConsentOwner":
        return cls(OwnerKind.FREELANCER, user_id)


@dataclass(frozen=True)
class _TableSpec:
    model: type
    owner_col: str
    target_col: str


_TABLES = {
    OwnerKind.PROJECT: _TableSpec(ProjectFreelancerConsentModel, "project_id", "freelancer_id"),
    OwnerKind.FREELANCER: _TableSpec(UserProjectConsentModel, "user_id", "project_id"),
}


class ConsentStore:
    """Reads and writes consent decisions within the caller's session.

    The store never commits; the surrounding ``get_session()`` scope decides
    whether the write becomes visible.
    """

    def __init__(self, session: Session):
        """Initialize store with database session.

        Args:
            session: SQLAlchemy session for database operations
        """
        self.session = session

    def add_approval(self, owner: ConsentOwner, target_id: str) -> bool:
        """Put target_id in the owner's approved set.

        Removes it from the disapproved set in the same statement. Idempotent.

        Args:
            owner: Project or freelancer whose set is updated
            target_id: Freelancer id (project owner) or project id (freelancer owner)

        Returns:
            True if the recorded decision changed, False if it was already approved

        Raises:
            NotFoundError: If the owner does not exist
            RoleMismatchError: If a freelancer owner is not a freelancer
            InvalidTargetError: If the target is missing or of the wrong type
            StorageFailureError: If the database write fails
        """
        return self._record(owner, target_id, Decision.OK)

    def add_disapproval(self, owner: ConsentOwner, target_id: str) -> bool:
        """Put target_id in the owner's disapproved set.

        Symmetric to add_approval().
        """
        return self._record(owner, target_id, Decision.NOK)

    def decision(self, owner: ConsentOwner, target_id: str) -> Optional[Decision]:
        """Return the owner's current decision about target_id, if any."""
        spec = _TABLES[owner.kind]
        try:
            stmt = select(spec.model.decision).where(
                getattr(spec.model, spec.owner_col) == owner.owner_id,
                getattr(spec.model, spec.target_col) == target_id,
            )
            value = self.session.execute(stmt).scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Error reading consent for {owner.owner_id}: {e}", exc_info=True)
            raise StorageFailureError(f"Failed to read consent: {e}") from e

        return Decision(value) if value else None

    def approved(self, owner: ConsentOwner) -> Set[str]:
        """Return the owner's approved set."""
        return self._targets(owner, Decision.OK)

    def disapproved(self, owner: ConsentOwner) -> Set[str]:
        """Return the owner's disapproved set."""
        return self._targets(owner, Decision.NOK)

    def _record(self, owner: ConsentOwner, target_id: str, decision: Decision) -> bool:
        self._validate(owner, target_id)

        previous = self.decision(owner, target_id)
        if previous == decision:
            logger.debug(
                "Consent unchanged",
                extra={
                    "event": "consent.unchanged",
                    "owner_kind": owner.kind.value,
                    "owner_id": owner.owner_id,
                    "target_id": target_id,
                    "decision": decision.value,
                },
            )

        try:
            self._upsert(_TABLES[owner.kind], owner.owner_id, target_id, decision)
        except SQLAlchemyError as e:
            logger.error(
                f"Error recording consent {decision.value} for {owner.owner_id}/{target_id}: {e}",
                exc_info=True,
            )
            raise StorageFailureError(f"Failed to record consent: {e}") from e

        if previous != decision:
            logger.info(
                "Consent recorded",
                extra={
                    "event": "consent.recorded",
                    "owner_kind": owner.kind.value,
                    "owner_id": owner.owner_id,
                    "target_id": target_id,
                    "decision": decision.value,
                    "previous_decision": previous.value if previous else None,
                },
            )
        return previous != decision

    def _upsert(self, spec: _TableSpec, owner_id: str, target_id: str, decision: Decision) -> None:
        values = {
            spec.owner_col: owner_id,
            spec.target_col: target_id,
            "decision": decision.value,
            "decided_at": format_for_storage(utc_now()),
        }
        dialect = self.session.get_bind().dialect.name
        insert_fn = _UPSERT_DIALECTS.get(dialect)

        if insert_fn is None:
            # No native upsert: fall back to the ORM within the same transaction
            key = {spec.owner_col: owner_id, spec.target_col: target_id}
            existing = self.session.get(spec.model, key)
            if existing is None:
                self.session.add(spec.model(**values))
            elif existing.decision != decision.value:
                existing.decision = values["decision"]
                existing.decided_at = values["decided_at"]
            self.session.flush()
            return

        stmt = insert_fn(spec.model).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[spec.owner_col, spec.target_col],
            set_={"decision": stmt.excluded.decision, "decided_at": stmt.excluded.decided_at},
            where=spec.model.decision != stmt.excluded.decision,
        )
        self.session.execute(stmt)

    def _targets(self, owner: ConsentOwner, decision: Decision) -> Set[str]:
        spec = _TABLES[owner.kind]
        try:
            stmt = select(getattr(spec.model, spec.target_col)).where(
                getattr(spec.model, spec.owner_col) == owner.owner_id,
                spec.model.decision == decision.value,
            )
            return set(self.session.execute(stmt).scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Error reading consent set for {owner.owner_id}: {e}", exc_info=True)
            raise StorageFailureError(f"Failed to read consent set: {e}") from e

    def _validate(self, owner: ConsentOwner, target_id: str) -> None:
        try:
            if owner.kind == OwnerKind.PROJECT:
                if self.session.get(ProjectModel, owner.owner_id) is None:
                    raise NotFoundError("project", owner.owner_id)
                target = self.session.get(UserModel, target_id)
                if target is None or target.role != UserRole.FREELANCER.value:
                    raise InvalidTargetError(
                        f"Consent target {target_id} is not an existing freelancer", target_id
                    )
            else:
                user = self.session.get(UserModel, owner.owner_id)
                if user is None:
                    raise NotFoundError("freelancer", owner.owner_id)
                if user.role != UserRole.FREELANCER.value:
                    raise RoleMismatchError(
                        f"User {owner.owner_id} is not a freelancer",
                        user_id=owner.owner_id,
                        expected_role=UserRole.FREELANCER.value,
                    )
                if self.session.get(ProjectModel, target_id) is None:
                    raise InvalidTargetError(
                        f"Consent target {target_id} is not an existing project", target_id
                    )
        except SQLAlchemyError as e:
            logger.error(f"Error validating consent owner {owner.owner_id}: {e}", exc_info=True)
            raise StorageFailureError(f"Failed to validate consent: {e}") from e
