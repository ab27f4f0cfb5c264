"""Match listing endpoint."""

from typing import List

from fastapi import APIRouter, Depends, Request

from app.domain.models import User

from ..auth import get_current_user
from ..dependencies import matching_engine
from ..schemas import MatchResponse

router = APIRouter(prefix="/matches", tags=["matches"])


@router.get("", response_model=List[MatchResponse])
def list_matches(request: Request, user: User = Depends(get_current_user)) -> List[MatchResponse]:
    """Matches where the caller is the freelancer or the project owner."""
    with matching_engine(request) as engine:
        matches = engine.matches_for(user.id)
    return [MatchResponse.from_domain(match) for match in matches]
