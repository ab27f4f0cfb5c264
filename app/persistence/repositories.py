"""Repositories for users, projects, and the match ledger.

Each repository works inside the caller's session and hands back domain
models, never ORM rows. SQLAlchemy errors surface as PersistenceError.
Consent writes live in ``app.matching.consent``.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.models import Match, Project, User, UserRole
from app.utils.identifiers import new_id
from app.utils.timestamps import utc_now

from .exceptions import DataIntegrityError, PersistenceError, RecordNotFoundError
from .schema import (
    MatchModel,
    ProjectFreelancerConsentModel,
    ProjectModel,
    UserModel,
    UserProjectConsentModel,
    split_decisions,
)

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("title", "website", "about_me", "skills", "hourly_rate", "company")


class UserRepository:
    """Users of both roles, with the freelancer consent sets attached."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, user_id: str) -> Optional[User]:
        """Retrieve user by id, including the freelancer consent sets.

        Args:
            user_id: Unique user identifier

        Returns:
            User domain model if found, None otherwise

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            user_model = self.session.get(UserModel, user_id)
            if user_model is None:
                return None

            ok_projects, nok_projects = self._consent_sets(user_id)
            return user_model.to_domain(ok_projects, nok_projects)

        except SQLAlchemyError as e:
            logger.error(f"Error retrieving user {user_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve user: {e}") from e

    def exists(self, user_id: str, role: Optional[UserRole] = None) -> bool:
        """Check whether a user exists, optionally with a given role."""
        try:
            stmt = select(UserModel.id).where(UserModel.id == user_id)
            if role is not None:
                stmt = stmt.where(UserModel.role == role.value)
            return self.session.execute(stmt).first() is not None

        except SQLAlchemyError as e:
            logger.error(f"Error checking user {user_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to check user: {e}") from e

    def list_all(self, role: Optional[UserRole] = None) -> List[User]:
        """Retrieve users ordered by creation time.

        Consent sets are not loaded; use get() for a single user's full state.

        Args:
            role: Restrict to one marketplace side

        Returns:
            Users ordered by creation time

        Raises:
            PersistenceError: Wrapped SQLAlchemy errors
        """
        try:
            stmt = select(UserModel).order_by(UserModel.created_at.asc(), UserModel.id.asc())
            if role is not None:
                stmt = stmt.where(UserModel.role == role.value)
            user_models = self.session.execute(stmt).scalars().all()

            return [user_model.to_domain() for user_model in user_models]

        except SQLAlchemyError as e:
            logger.error(f"Error listing users: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list users: {e}") from e

    def list_freelancers(self) -> List[User]:
        """Retrieve every freelancer (the ranking input pool)."""
        return self.list_all(role=UserRole.FREELANCER)

    def create(self, user: User) -> User:
        """Insert a new user.

        Args:
            user: User domain model; id and created_at are filled when missing

        Returns:
            Persisted User domain model

        Raises:
            DataIntegrityError: If the id or email is already taken
            PersistenceError: On any database failure
        """
        try:
            user = user.model_copy(
                update={
                    "id": user.id or new_id(),
                    "created_at": user.created_at or utc_now(),
                    "ok_projects": set(),
                    "nok_projects": set(),
                }
            )
            user_model = UserModel.from_domain(user)
            self.session.add(user_model)
            self.session.flush()
            return user_model.to_domain()

        except IntegrityError as e:
            logger.error(f"Integrity error creating user {user.id}: {e}", exc_info=True)
            raise DataIntegrityError(f"Failed to create user due to constraint violation: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error creating user {user.id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to create user: {e}") from e

    def update_profile(self, user_id: str, attrs: Dict[str, Any]) -> User:
        """Update whitelisted profile fields of a user.

        Keys outside the profile whitelist (role, consent sets, ...) are ignored.

        Args:
            user_id: Unique user identifier
            attrs: Field values to apply

        Returns:
            Updated User domain model

        Raises:
            RecordNotFoundError: If user_id doesn't exist
            PersistenceError: If database error occurs
        """
        try:
            user_model = self.session.get(UserModel, user_id)
            if user_model is None:
                raise RecordNotFoundError(f"User with id {user_id} not found")

            ok_projects, nok_projects = self._consent_sets(user_id)
            current = user_model.to_domain(ok_projects, nok_projects)
            changes = {field: attrs[field] for field in PROFILE_FIELDS if field in attrs}
            # Validate the merged profile before touching the row
            updated = User.model_validate({**current.model_dump(), **changes})

            for field in changes:
                setattr(user_model, field, getattr(updated, field))

            self.session.flush()
            return updated

        except RecordNotFoundError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Error updating profile for user {user_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to update profile: {e}") from e

    def _consent_sets(self, user_id: str):
        stmt = select(
            UserProjectConsentModel.project_id, UserProjectConsentModel.decision
        ).where(UserProjectConsentModel.user_id == user_id)
        return split_decisions(self.session.execute(stmt).all())


class ProjectRepository:
    """Projects, with the owning client's consent sets attached."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, project_id: str, for_update: bool = False) -> Optional[Project]:
        """Retrieve project by id, including the client consent sets.

        Args:
            project_id: Unique project identifier
            for_update: Lock the project row until the transaction ends.
                Matching operations on the same project serialize on this lock
                where the database supports row locks.

        Returns:
            Project domain model if found, None otherwise

        Raises:
            PersistenceError: On any database failure
        """
        try:
            stmt = select(ProjectModel).where(ProjectModel.id == project_id)
            if for_update:
                stmt = stmt.with_for_update()
            project_model = self.session.execute(stmt).scalar_one_or_none()

            if project_model is None:
                return None

            ok_freelancers, nok_freelancers = self._consent_sets(project_id)
            return project_model.to_domain(ok_freelancers, nok_freelancers)

        except SQLAlchemyError as e:
            logger.error(f"Error retrieving project {project_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve project: {e}") from e

    def exists(self, project_id: str) -> bool:
        """Check whether a project exists."""
        try:
            stmt = select(ProjectModel.id).where(ProjectModel.id == project_id)
            return self.session.execute(stmt).first() is not None

        except SQLAlchemyError as e:
            logger.error(f"Error checking project {project_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to check project: {e}") from e

    def list_for_client(self, client_id: str) -> List[Project]:
        """Retrieve all projects owned by a client, newest first.

        Raises:
            PersistenceError: On any database failure
        """
        try:
            stmt = (
                select(ProjectModel)
                .where(ProjectModel.client_id == client_id)
                .order_by(ProjectModel.created_at.desc())
            )
            project_models = self.session.execute(stmt).scalars().all()

            return [
                project_model.to_domain(*self._consent_sets(project_model.id))
                for project_model in project_models
            ]

        except SQLAlchemyError as e:
            logger.error(f"Error listing projects for client {client_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list projects: {e}") from e

    def create(self, project: Project) -> Project:
        """Insert a new project.

        Args:
            project: Project domain model; id and created_at are filled when missing

        Returns:
            Persisted Project domain model

        Raises:
            DataIntegrityError: If the client does not exist or the id is taken
            PersistenceError: On any database failure
        """
        try:
            project = project.model_copy(
                update={
                    "id": project.id or new_id(),
                    "created_at": project.created_at or utc_now(),
                    "ok_freelancers": set(),
                    "nok_freelancers": set(),
                }
            )
            project_model = ProjectModel.from_domain(project)
            self.session.add(project_model)
            self.session.flush()
            return project_model.to_domain()

        except IntegrityError as e:
            logger.error(f"Integrity error creating project {project.id}: {e}", exc_info=True)
            raise DataIntegrityError(
                f"Failed to create project due to constraint violation: {e}"
            ) from e
        except SQLAlchemyError as e:
            logger.error(f"Error creating project {project.id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to create project: {e}") from e

    def _consent_sets(self, project_id: str):
        stmt = select(
            ProjectFreelancerConsentModel.freelancer_id, ProjectFreelancerConsentModel.decision
        ).where(ProjectFreelancerConsentModel.project_id == project_id)
        return split_decisions(self.session.execute(stmt).all())


class MatchRepository:
    """Repository for the match ledger.

    The ledger is append-only: there is no update or delete path.
    """

    def __init__(self, session: Session):
        self.session = session

    def get_by_pair(self, freelancer_id: str, project_id: str) -> Optional[Match]:
        """Retrieve the match for a (freelancer, project) pair.

        Returns:
            Match domain model if found, None otherwise

        Raises:
            PersistenceError: On any database failure
        """
        try:
            match_model = self._get_model_by_pair(freelancer_id, project_id)
            return match_model.to_domain() if match_model else None

        except SQLAlchemyError as e:
            logger.error(
                f"Error retrieving match for {freelancer_id}/{project_id}: {e}", exc_info=True
            )
            raise PersistenceError(f"Failed to retrieve match: {e}") from e

    def create_if_absent(
        self, freelancer_id: str, project_id: str, client_id: str
    ) -> Tuple[Match, bool]:
        """Insert the match for a pair unless one already exists.

        The insert runs inside a savepoint. When a concurrent transaction wins
        the race, the unique constraint rejects this insert, the savepoint is
        rolled back, and the winner's record is returned instead.

        Args:
            freelancer_id: Matched freelancer
            project_id: Matched project
            client_id: Owner of the project

        Returns:
            Tuple of (Match, created) where created is True only for the call
            that performed the insert

        Raises:
            DataIntegrityError: If the insert failed for a reason other than an
                existing match (e.g. a missing user or project)
            PersistenceError: If database error occurs
        """
        try:
            existing = self._get_model_by_pair(freelancer_id, project_id)
            if existing is not None:
                logger.debug(f"Match already recorded for {freelancer_id}/{project_id}")
                return existing.to_domain(), False

            match = Match(
                id=new_id(),
                freelancer_id=freelancer_id,
                project_id=project_id,
                client_id=client_id,
                created_at=utc_now(),
            )
            try:
                with self.session.begin_nested():
                    self.session.add(MatchModel.from_domain(match))
            except IntegrityError as e:
                existing = self._get_model_by_pair(freelancer_id, project_id)
                if existing is None:
                    logger.error(
                        f"Integrity error recording match for {freelancer_id}/{project_id}: {e}",
                        exc_info=True,
                    )
                    raise DataIntegrityError(f"Failed to record match: {e}") from e

                logger.debug(
                    f"Duplicate match for {freelancer_id}/{project_id} (expected in race conditions)"
                )
                return existing.to_domain(), False

            return match, True

        except DataIntegrityError:
            raise
        except SQLAlchemyError as e:
            logger.error(
                f"Error recording match for {freelancer_id}/{project_id}: {e}", exc_info=True
            )
            raise PersistenceError(f"Failed to record match: {e}") from e

    def count_for_pair(self, freelancer_id: str, project_id: str) -> int:
        """Count ledger rows for a pair (0 or 1 while the constraint holds)."""
        try:
            stmt = select(func.count()).select_from(MatchModel).where(
                MatchModel.freelancer_id == freelancer_id,
                MatchModel.project_id == project_id,
            )
            return self.session.execute(stmt).scalar_one()

        except SQLAlchemyError as e:
            logger.error(f"Error counting matches: {e}", exc_info=True)
            raise PersistenceError(f"Failed to count matches: {e}") from e

    def list_for_freelancer(self, freelancer_id: str) -> List[Match]:
        """Retrieve a freelancer's matches, newest first."""
        return self._list(MatchModel.freelancer_id == freelancer_id)

    def list_for_client(self, client_id: str) -> List[Match]:
        """Retrieve matches on a client's projects, newest first."""
        return self._list(MatchModel.client_id == client_id)

    def list_for_project(self, project_id: str) -> List[Match]:
        """Retrieve matches for one project, newest first."""
        return self._list(MatchModel.project_id == project_id)

    def list_for_user(self, user_id: str) -> List[Match]:
        """Retrieve matches where the user is either the freelancer or the client."""
        return self._list(or_(MatchModel.freelancer_id == user_id, MatchModel.client_id == user_id))

    def _list(self, condition) -> List[Match]:
        try:
            stmt = (
                select(MatchModel)
                .where(condition)
                .order_by(MatchModel.created_at.desc(), MatchModel.id.asc())
            )
            match_models = self.session.execute(stmt).scalars().all()

            return [match_model.to_domain() for match_model in match_models]

        except SQLAlchemyError as e:
            logger.error(f"Error listing matches: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list matches: {e}") from e

    def _get_model_by_pair(self, freelancer_id: str, project_id: str) -> Optional[MatchModel]:
        stmt = select(MatchModel).where(
            MatchModel.freelancer_id == freelancer_id,
            MatchModel.project_id == project_id,
        )
        return self.session.execute(stmt).scalar_one_or_none()
