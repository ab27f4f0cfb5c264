"""User endpoints: registration, profiles, and both sides' consent calls."""

from fastapi import APIRouter, Depends, Query, Request, status

from app.domain.models import User, UserRole
from app.logging import get_logger
from app.matching.exceptions import InvalidTargetError, NotFoundError
from app.matching.models import Side
from app.persistence import ProjectRepository, RecordNotFoundError, UserRepository, get_session

from ..auth import ensure_project_owner, get_current_user
from ..dependencies import matching_engine
from ..schemas import (
    ConsentResponse,
    ProfileUpdateRequest,
    UserCreateRequest,
    UserPrivate,
    UserPublic,
)
from ._consent import to_consent_response

logger = get_logger(__name__, component="api")

router = APIRouter(prefix="/users", tags=["users"])

CONSENT_METHODS = ["PUT", "POST"]


@router.post("", response_model=UserPrivate, status_code=status.HTTP_201_CREATED)
def create_user(body: UserCreateRequest) -> UserPrivate:
    """Register a client or a freelancer."""
    try:
        role = UserRole(body.role.strip().lower())
    except ValueError:
        raise InvalidTargetError("Invalid User Role", target_id=body.role)

    with get_session() as session:
        user = UserRepository(session).create(
            User(id="", role=role, **body.model_dump(exclude={"role"}))
        )

    logger.info(
        f"Registered {role.value} {user.id}",
        extra={"event": "api.user.created", "user_id": user.id, "role": role.value},
    )
    return UserPrivate.from_domain(user)


@router.get("/me", response_model=UserPrivate)
def get_me(user: User = Depends(get_current_user)) -> UserPrivate:
    return UserPrivate.from_domain(user)


@router.put("/me", response_model=UserPrivate)
def update_me(
    body: ProfileUpdateRequest, user: User = Depends(get_current_user)
) -> UserPrivate:
    """Update the caller's profile. Only explicitly sent fields change."""
    changes = body.model_dump(exclude_unset=True)
    with get_session() as session:
        try:
            updated = UserRepository(session).update_profile(user.id, changes)
        except RecordNotFoundError as e:
            raise NotFoundError("user", user.id) from e

    logger.info(
        f"Updated profile of {user.id}",
        extra={"event": "api.user.updated", "user_id": user.id, "fields": sorted(changes)},
    )
    return UserPrivate.from_domain(updated)


@router.api_route(
    "/me/okProjects/{project_id}", methods=CONSENT_METHODS, response_model=ConsentResponse
)
def like_project(
    project_id: str, request: Request, user: User = Depends(get_current_user)
) -> ConsentResponse:
    """Freelancer declares interest in a project."""
    with matching_engine(request) as engine:
        outcome = engine.like(Side.FREELANCER, user.id, user.id, project_id)
    return to_consent_response(outcome)


@router.api_route(
    "/me/nokProjects/{project_id}", methods=CONSENT_METHODS, response_model=ConsentResponse
)
def dislike_project(
    project_id: str, request: Request, user: User = Depends(get_current_user)
) -> ConsentResponse:
    """Freelancer declines a project."""
    with matching_engine(request) as engine:
        outcome = engine.dislike(Side.FREELANCER, user.id, user.id, project_id)
    return to_consent_response(outcome)


@router.api_route(
    "/freelancers/{freelancer_id}/ok", methods=CONSENT_METHODS, response_model=ConsentResponse
)
def like_freelancer(
    freelancer_id: str,
    request: Request,
    project_id: str = Query(..., alias="projectId"),
    user: User = Depends(get_current_user),
) -> ConsentResponse:
    """Client approves a freelancer for one of its projects."""
    _check_owner(user, project_id)
    with matching_engine(request) as engine:
        outcome = engine.like(Side.CLIENT, user.id, freelancer_id, project_id)
    return to_consent_response(outcome)


@router.api_route(
    "/freelancers/{freelancer_id}/nok", methods=CONSENT_METHODS, response_model=ConsentResponse
)
def dislike_freelancer(
    freelancer_id: str,
    request: Request,
    project_id: str = Query(..., alias="projectId"),
    user: User = Depends(get_current_user),
) -> ConsentResponse:
    """Client rejects a freelancer for one of its projects."""
    _check_owner(user, project_id)
    with matching_engine(request) as engine:
        outcome = engine.dislike(Side.CLIENT, user.id, freelancer_id, project_id)
    return to_consent_response(outcome)


@router.get("/{user_id}", response_model=UserPublic)
def get_user(user_id: str, caller: User = Depends(get_current_user)) -> UserPublic:
    """Public profile of any user. Consent sets are never exposed here."""
    if user_id == caller.id:
        return UserPublic.from_domain(caller)

    with get_session() as session:
        user = UserRepository(session).get(user_id)
    if user is None:
        raise NotFoundError("user", user_id)
    return UserPublic.from_domain(user)


def _check_owner(user: User, project_id: str) -> None:
    # Non-clients fall through to the engine, which rejects the role
    if not user.is_client:
        return
    with get_session() as session:
        project = ProjectRepository(session).get(project_id)
    if project is not None:
        ensure_project_owner(user, project)
