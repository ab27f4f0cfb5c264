"""Shared mapping from an engine outcome to the consent response body."""

from app.matching.models import ConsentOutcome

from ..schemas import ConsentResponse, MatchResponse


def to_consent_response(outcome: ConsentOutcome) -> ConsentResponse:
    return ConsentResponse(
        side=outcome.side.value,
        decision=outcome.decision.value,
        freelancer_id=outcome.freelancer_id,
        project_id=outcome.project_id,
        state=outcome.state.value,
        matched=outcome.matched,
        match_created=outcome.match_created,
        match=MatchResponse.from_domain(outcome.match) if outcome.match else None,
    )
