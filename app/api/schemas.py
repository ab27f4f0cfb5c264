"""Request and response schemas for the HTTP API.

Response models are the field-visibility policy of the service: a user's
consent sets only leave the service on their own profile, and a project's
consent sets only for its owner.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from app.domain.models import Match, Project, User


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str


class ErrorResponse(BaseModel):
    """Error response."""
    error: str
    detail: Optional[str] = None
    request_id: Optional[str] = None
    retryable: bool = False


class UserCreateRequest(BaseModel):
    """Create user request. ``role`` is checked by the route."""
    role: str
    name: str = Field(min_length=1, max_length=255)
    email: Optional[str] = Field(default=None, max_length=255)
    title: Optional[str] = Field(default=None, max_length=255)
    website: Optional[str] = Field(default=None, max_length=255)
    about_me: Optional[str] = None
    skills: List[str] = Field(default_factory=list)
    hourly_rate: Optional[float] = Field(default=None, ge=0)
    company: Optional[str] = Field(default=None, max_length=255)


class ProfileUpdateRequest(BaseModel):
    """Update own profile. Unknown fields (role, consent sets) are ignored."""
    title: Optional[str] = Field(default=None, max_length=255)
    website: Optional[str] = Field(default=None, max_length=255)
    about_me: Optional[str] = None
    skills: Optional[List[str]] = None
    hourly_rate: Optional[float] = Field(default=None, ge=0)
    company: Optional[str] = Field(default=None, max_length=255)


class UserPublic(BaseModel):
    """Profile visible to any authenticated user."""
    id: str
    role: str
    name: str
    title: Optional[str] = None
    website: Optional[str] = None
    about_me: Optional[str] = None
    skills: List[str] = Field(default_factory=list)
    hourly_rate: Optional[float] = None
    company: Optional[str] = None

    @classmethod
    def from_domain(cls, user: User) -> "UserPublic":
        return cls(
            id=user.id,
            role=user.role.value,
            name=user.name,
            title=user.title,
            website=user.website,
            about_me=user.about_me,
            skills=user.skills,
            hourly_rate=user.hourly_rate,
            company=user.company,
        )


class UserPrivate(UserPublic):
    """Own profile, including contact data and consent sets."""
    email: Optional[str] = None
    ok_projects: List[str] = Field(default_factory=list)
    nok_projects: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, user: User) -> "UserPrivate":
        return cls(
            **UserPublic.from_domain(user).model_dump(),
            email=user.email,
            ok_projects=sorted(user.ok_projects),
            nok_projects=sorted(user.nok_projects),
            created_at=user.created_at,
        )


class ProjectCreateRequest(BaseModel):
    """Create project request."""
    title: str = Field(min_length=1)
    description: Optional[str] = None
    skills: List[str] = Field(default_factory=list)
    budget: Optional[float] = Field(default=None, ge=0)


class ProjectPublic(BaseModel):
    """Project as seen by anyone but its owner."""
    id: str
    client_id: str
    title: str
    description: Optional[str] = None
    skills: List[str] = Field(default_factory=list)
    budget: Optional[float] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, project: Project) -> "ProjectPublic":
        return cls(
            id=project.id,
            client_id=project.client_id,
            title=project.title,
            description=project.description,
            skills=project.skills,
            budget=project.budget,
            created_at=project.created_at,
        )


class ProjectOwnerView(ProjectPublic):
    """Project as seen by its owner, including the client's consent sets."""
    ok_freelancers: List[str] = Field(default_factory=list)
    nok_freelancers: List[str] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, project: Project) -> "ProjectOwnerView":
        return cls(
            **ProjectPublic.from_domain(project).model_dump(),
            ok_freelancers=sorted(project.ok_freelancers),
            nok_freelancers=sorted(project.nok_freelancers),
        )


class MatchResponse(BaseModel):
    """Single match."""
    id: str
    freelancer_id: str
    project_id: str
    client_id: str
    created_at: datetime

    @classmethod
    def from_domain(cls, match: Match) -> "MatchResponse":
        return cls(**match.model_dump())


class ConsentResponse(BaseModel):
    """Acknowledgement of a like or dislike."""
    status: str = "OK"
    side: str
    decision: str
    freelancer_id: str
    project_id: str
    state: str
    matched: bool
    match_created: bool
    match: Optional[MatchResponse] = None


class CandidateListResponse(BaseModel):
    """Ranked candidate freelancers for a project."""
    project_id: str
    candidates: List[UserPublic]
