"""Core domain models for users, projects, and matches.

This module defines the data structures used throughout the application:
- User: client or freelancer, with the freelancer's project consent sets
- Project: a client's posting, with the client's freelancer consent sets
- Match: immutable record of mutual consent between a freelancer and a project
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional, Set

from pydantic import BaseModel, Field, field_validator, model_validator


class UserRole(str, Enum):
    """Marketplace side a user acts on."""

    CLIENT = "client"
    FREELANCER = "freelancer"


class Decision(str, Enum):
    """A recorded consent decision."""

    OK = "ok"
    NOK = "nok"


def _normalize_skills(v: Optional[List[str]]) -> List[str]:
    """Strip skills, drop empties and duplicates while preserving order."""
    if not v:
        return []
    seen = set()
    skills = []
    for skill in v:
        stripped = skill.strip()
        if stripped and stripped.lower() not in seen:
            seen.add(stripped.lower())
            skills.append(stripped)
    return skills


class User(BaseModel):
    """Marketplace user.

    Only freelancers carry meaningful consent sets. ``ok_projects`` and
    ``nok_projects`` are disjoint: a project id is in at most one of them.
    """

    id: str = Field(..., description="Unique user identifier")
    role: UserRole = Field(..., description="client or freelancer")
    name: str = Field(..., description="Display name")
    email: Optional[str] = Field(None, description="Contact email")
    title: Optional[str] = Field(None, description="Professional headline")
    website: Optional[str] = Field(None, description="Personal or company website")
    about_me: Optional[str] = Field(None, description="Free-form biography")
    skills: List[str] = Field(default_factory=list, description="Declared skills")
    hourly_rate: Optional[float] = Field(None, ge=0, description="Hourly rate")
    company: Optional[str] = Field(None, description="Company name (clients)")
    ok_projects: Set[str] = Field(
        default_factory=set, description="Projects the freelancer is interested in"
    )
    nok_projects: Set[str] = Field(
        default_factory=set, description="Projects the freelancer declined"
    )
    created_at: Optional[datetime] = Field(None, description="When the user was created (UTC)")

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        """Strip whitespace from the display name."""
        if not v or not v.strip():
            raise ValueError("Field cannot be empty or whitespace-only")
        return v.strip()

    @field_validator("skills")
    @classmethod
    def normalize_skills(cls, v: List[str]) -> List[str]:
        return _normalize_skills(v)

    @model_validator(mode="after")
    def check_consent_sets_disjoint(self):
        """Reject a project id present in both consent sets."""
        overlap = self.ok_projects & self.nok_projects
        if overlap:
            raise ValueError(
                f"Projects cannot be both approved and declined: {', '.join(sorted(overlap))}"
            )
        return self

    @property
    def is_freelancer(self) -> bool:
        return self.role == UserRole.FREELANCER

    @property
    def is_client(self) -> bool:
        return self.role == UserRole.CLIENT

    model_config = {"json_schema_extra": {"example": {
        "id": "5f0c2b1e9d3a4c7e8b6a1d2f3e4c5b6a",
        "role": "freelancer",
        "name": "Ada Lovelace",
        "title": "Backend engineer",
        "skills": ["python", "postgresql"],
        "hourly_rate": 80.0,
    }}}


class Project(BaseModel):
    """A client's project posting.

    ``ok_freelancers`` and ``nok_freelancers`` are disjoint.
    """

    id: str = Field(..., description="Unique project identifier")
    client_id: str = Field(..., description="Owning client user id")
    title: str = Field(..., description="Project title")
    description: Optional[str] = Field(None, description="Project description")
    skills: List[str] = Field(default_factory=list, description="Required skills")
    budget: Optional[float] = Field(None, ge=0, description="Hourly budget")
    ok_freelancers: Set[str] = Field(
        default_factory=set, description="Freelancers the client approved"
    )
    nok_freelancers: Set[str] = Field(
        default_factory=set, description="Freelancers the client rejected"
    )
    created_at: Optional[datetime] = Field(None, description="When the project was created (UTC)")

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        """Strip whitespace from the title."""
        if not v or not v.strip():
            raise ValueError("Field cannot be empty or whitespace-only")
        return v.strip()

    @field_validator("skills")
    @classmethod
    def normalize_skills(cls, v: List[str]) -> List[str]:
        return _normalize_skills(v)

    @model_validator(mode="after")
    def check_consent_sets_disjoint(self):
        """Reject a freelancer id present in both consent sets."""
        overlap = self.ok_freelancers & self.nok_freelancers
        if overlap:
            raise ValueError(
                f"Freelancers cannot be both approved and rejected: {', '.join(sorted(overlap))}"
            )
        return self


class Match(BaseModel):
    """Confirmed mutual consent between one freelancer and one project.

    ``(freelancer_id, project_id)`` is the natural key. Matches are never
    updated or deleted.
    """

    id: str = Field(..., description="Unique match identifier")
    freelancer_id: str = Field(..., description="Matched freelancer")
    project_id: str = Field(..., description="Matched project")
    client_id: str = Field(..., description="Owner of the project at match time")
    created_at: datetime = Field(..., description="When the match was recorded (UTC)")

    model_config = {"frozen": True}

    @property
    def pair(self) -> tuple:
        return (self.freelancer_id, self.project_id)
