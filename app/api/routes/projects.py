"""Project endpoints: creation, listing, detail, and ranked candidates."""

from typing import List, Union

from fastapi import APIRouter, Depends, Query, Request, status

from app.domain.models import Project, User
from app.logging import get_logger
from app.matching.exceptions import NotFoundError, RoleMismatchError
from app.matching.models import Side
from app.persistence import ProjectRepository, get_session

from ..auth import ensure_project_owner, get_current_user
from ..dependencies import matching_engine
from ..schemas import (
    CandidateListResponse,
    ProjectCreateRequest,
    ProjectOwnerView,
    ProjectPublic,
    UserPublic,
)

logger = get_logger(__name__, component="api")

router = APIRouter(prefix="/projects", tags=["projects"])


def _require_client(user: User) -> None:
    if not user.is_client:
        raise RoleMismatchError(
            f"User {user.id} is not a client",
            user_id=user.id,
            expected_role=Side.CLIENT.value,
        )


@router.post("", response_model=ProjectOwnerView, status_code=status.HTTP_201_CREATED)
def create_project(
    body: ProjectCreateRequest, user: User = Depends(get_current_user)
) -> ProjectOwnerView:
    """Post a new project owned by the calling client."""
    _require_client(user)
    with get_session() as session:
        project = ProjectRepository(session).create(
            Project(id="", client_id=user.id, **body.model_dump())
        )

    logger.info(
        f"Client {user.id} posted project {project.id}",
        extra={"event": "api.project.created", "project_id": project.id, "client_id": user.id},
    )
    return ProjectOwnerView.from_domain(project)


@router.get("", response_model=List[ProjectOwnerView])
def list_projects(user: User = Depends(get_current_user)) -> List[ProjectOwnerView]:
    """The caller's own projects, newest first."""
    _require_client(user)
    with get_session() as session:
        projects = ProjectRepository(session).list_for_client(user.id)
    return [ProjectOwnerView.from_domain(project) for project in projects]


@router.get("/match", response_model=CandidateListResponse)
def match_candidates(
    request: Request,
    project_id: str = Query(..., alias="projectId"),
    user: User = Depends(get_current_user),
) -> CandidateListResponse:
    """Ranked freelancers for one of the caller's projects."""
    with matching_engine(request) as engine:
        project = engine.projects.get(project_id)
        if project is None:
            raise NotFoundError("project", project_id)
        ensure_project_owner(user, project)
        candidates = engine.candidates(project_id)

    return CandidateListResponse(
        project_id=project_id,
        candidates=[UserPublic.from_domain(candidate) for candidate in candidates],
    )


@router.get("/{project_id}", response_model=None)
def get_project(
    project_id: str, user: User = Depends(get_current_user)
) -> Union[ProjectOwnerView, ProjectPublic]:
    """Project detail. The owner also sees its consent sets."""
    with get_session() as session:
        project = ProjectRepository(session).get(project_id)
    if project is None:
        raise NotFoundError("project", project_id)

    if project.client_id == user.id:
        return ProjectOwnerView.from_domain(project)
    return ProjectPublic.from_domain(project)
