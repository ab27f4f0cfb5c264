"""Database schema definition and ORM models.

This module defines SQLAlchemy ORM models for the database schema and provides
conversion methods between ORM models and domain models.

Consent sets are stored one row per (owner, target) pair with a ``decision``
column. A composite primary key makes the approved and disapproved sets
disjoint by construction, and switching a decision is a single-row update.
"""

import logging
from typing import Iterable, Set

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    Float,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

from app.domain.models import Match, Project, User
from app.utils.timestamps import format_for_storage, parse_from_storage

logger = logging.getLogger(__name__)

# Create base class for ORM models
Base = declarative_base()

MATCH_PAIR_CONSTRAINT = "uq_matches_freelancer_project"
DECISION_VALUES = ("ok", "nok")


class UserModel(Base):
    """ORM model for users table."""

    __tablename__ = "users"

    id = Column(String(32), primary_key=True, nullable=False)
    role = Column(String(20), nullable=False)

    # Profile
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True, unique=True)
    title = Column(String(255), nullable=True)
    website = Column(String(255), nullable=True)
    about_me = Column(Text, nullable=True)
    skills = Column(JSON, nullable=False, default=list)
    hourly_rate = Column(Float, nullable=True)
    company = Column(String(255), nullable=True)

    created_at = Column(String(50), nullable=False)

    __table_args__ = (
        CheckConstraint("role IN ('client', 'freelancer')", name="ck_users_role"),
        Index("idx_users_role", "role"),
    )

    def to_domain(
        self, ok_projects: Iterable[str] = (), nok_projects: Iterable[str] = ()
    ) -> User:
        """Convert ORM model to domain model.

        Args:
            ok_projects: Project ids from the approved consent rows
            nok_projects: Project ids from the declined consent rows

        Returns:
            User: Domain model instance
        """
        return User(
            id=self.id,
            role=self.role,
            name=self.name,
            email=self.email,
            title=self.title,
            website=self.website,
            about_me=self.about_me,
            skills=list(self.skills or []),
            hourly_rate=self.hourly_rate,
            company=self.company,
            ok_projects=set(ok_projects),
            nok_projects=set(nok_projects),
            created_at=parse_from_storage(self.created_at),
        )

    @classmethod
    def from_domain(cls, user: User) -> "UserModel":
        """Create ORM model from domain model.

        Consent sets are not copied; they live in ``user_project_consents``.
        """
        return cls(
            id=user.id,
            role=user.role.value,
            name=user.name,
            email=user.email,
            title=user.title,
            website=user.website,
            about_me=user.about_me,
            skills=list(user.skills),
            hourly_rate=user.hourly_rate,
            company=user.company,
            created_at=format_for_storage(user.created_at),
        )


class ProjectModel(Base):
    """ORM model for projects table."""

    __tablename__ = "projects"

    id = Column(String(32), primary_key=True, nullable=False)
    client_id = Column(String(32), ForeignKey("users.id"), nullable=False)

    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    skills = Column(JSON, nullable=False, default=list)
    budget = Column(Float, nullable=True)

    created_at = Column(String(50), nullable=False)

    __table_args__ = (Index("idx_projects_client", "client_id"),)

    def to_domain(
        self, ok_freelancers: Iterable[str] = (), nok_freelancers: Iterable[str] = ()
    ) -> Project:
        """Convert ORM model to domain model.

        Args:
            ok_freelancers: Freelancer ids from the approved consent rows
            nok_freelancers: Freelancer ids from the rejected consent rows

        Returns:
            Project: Domain model instance
        """
        return Project(
            id=self.id,
            client_id=self.client_id,
            title=self.title,
            description=self.description,
            skills=list(self.skills or []),
            budget=self.budget,
            ok_freelancers=set(ok_freelancers),
            nok_freelancers=set(nok_freelancers),
            created_at=parse_from_storage(self.created_at),
        )

    @classmethod
    def from_domain(cls, project: Project) -> "ProjectModel":
        """Create ORM model from domain model."""
        return cls(
            id=project.id,
            client_id=project.client_id,
            title=project.title,
            description=project.description,
            skills=list(project.skills),
            budget=project.budget,
            created_at=format_for_storage(project.created_at),
        )


class UserProjectConsentModel(Base):
    """ORM model for the freelancer side of the consent store.

    One row per (freelancer, project); ``decision`` is ``ok`` or ``nok``.
    """

    __tablename__ = "user_project_consents"

    user_id = Column(String(32), ForeignKey("users.id"), primary_key=True, nullable=False)
    project_id = Column(
        String(32), ForeignKey("projects.id"), primary_key=True, nullable=False
    )
    decision = Column(String(8), nullable=False)
    decided_at = Column(String(50), nullable=False)

    __table_args__ = (
        CheckConstraint("decision IN ('ok', 'nok')", name="ck_user_consents_decision"),
        Index("idx_user_consents_project", "project_id", "decision"),
    )


class ProjectFreelancerConsentModel(Base):
    """ORM model for the client side of the consent store.

    One row per (project, freelancer); ``decision`` is ``ok`` or ``nok``.
    """

    __tablename__ = "project_freelancer_consents"

    project_id = Column(
        String(32), ForeignKey("projects.id"), primary_key=True, nullable=False
    )
    freelancer_id = Column(
        String(32), ForeignKey("users.id"), primary_key=True, nullable=False
    )
    decision = Column(String(8), nullable=False)
    decided_at = Column(String(50), nullable=False)

    __table_args__ = (
        CheckConstraint("decision IN ('ok', 'nok')", name="ck_project_consents_decision"),
        Index("idx_project_consents_freelancer", "freelancer_id", "decision"),
    )


class MatchModel(Base):
    """ORM model for matches table (the match ledger).

    The unique constraint on (freelancer_id, project_id) is what guarantees a
    single match per pair under concurrent inserts.
    """

    __tablename__ = "matches"

    id = Column(String(32), primary_key=True, nullable=False)
    freelancer_id = Column(String(32), ForeignKey("users.id"), nullable=False)
    project_id = Column(String(32), ForeignKey("projects.id"), nullable=False)
    client_id = Column(String(32), ForeignKey("users.id"), nullable=False)
    created_at = Column(String(50), nullable=False)

    __table_args__ = (
        UniqueConstraint("freelancer_id", "project_id", name=MATCH_PAIR_CONSTRAINT),
        Index("idx_matches_client", "client_id"),
        Index("idx_matches_project", "project_id"),
    )

    def to_domain(self) -> Match:
        """Convert ORM model to domain model."""
        return Match(
            id=self.id,
            freelancer_id=self.freelancer_id,
            project_id=self.project_id,
            client_id=self.client_id,
            created_at=parse_from_storage(self.created_at),
        )

    @classmethod
    def from_domain(cls, match: Match) -> "MatchModel":
        """Create ORM model from domain model."""
        return cls(
            id=match.id,
            freelancer_id=match.freelancer_id,
            project_id=match.project_id,
            client_id=match.client_id,
            created_at=format_for_storage(match.created_at),
        )


def split_decisions(rows: Iterable[tuple]) -> tuple[Set[str], Set[str]]:
    """Split (target_id, decision) rows into approved and disapproved sets."""
    approved: Set[str] = set()
    disapproved: Set[str] = set()
    for target_id, decision in rows:
        if decision == "ok":
            approved.add(target_id)
        elif decision == "nok":
            disapproved.add(target_id)
    return approved, disapproved


def create_schema(engine: Engine, drop_existing: bool = False) -> None:
    """Create all tables and indexes if they don't exist (idempotent).

    Args:
        engine: SQLAlchemy engine instance
        drop_existing: Drop every table first (tests and demo scripts only)
    """
    logger.info("Creating database schema if not exists")

    try:
        if drop_existing:
            Base.metadata.drop_all(engine)

        Base.metadata.create_all(engine, checkfirst=True)

        from sqlalchemy import inspect
        inspector = inspect(engine)
        tables = inspector.get_table_names()
        logger.info(f"Database schema ready. Tables: {', '.join(tables)}")

    except Exception as e:
        logger.error(f"Failed to create database schema: {e}", exc_info=True)
        raise
