"""Candidate ranking port.

A ranker turns a project and the freelancer pool into an ordered sequence of
freelancer ids. Rankers are external collaborators: the service only relies on
the contract below, and enforces the exclusion guarantees itself through
``filter_candidates``.
"""

from typing import Iterable, Iterator, Optional, Protocol, Sequence, runtime_checkable

from app.domain.models import Project, User


@runtime_checkable
class CandidateRanker(Protocol):
    """Ranks freelancer candidates for a project.

    Implementations return freelancer ids best-first. The sequence may be lazy
    and must be finite; duplicates and rejected ids are tolerated because the
    caller filters them out.
    """

    def rank(self, project: Project, freelancers: Sequence[User]) -> Iterable[str]:
        ...


def filter_candidates(
    ranked: Iterable[str], project: Project, limit: Optional[int] = None
) -> Iterator[str]:
    """Lazily deduplicate ranked ids and drop the project's rejected freelancers.

    Order is preserved. Consumption stops once ``limit`` ids were produced.

    Args:
        ranked: Ranker output, best-first
        project: Project whose ``nok_freelancers`` are excluded
        limit: Maximum number of ids to yield (None = unlimited)

    Yields:
        Candidate freelancer ids

    Example:
        >>> list(filter_candidates(["a", "b", "a", "c"], project_rejecting_b))
        ['a', 'c']
    """
    if limit is not None and limit <= 0:
        return

    seen = set()
    produced = 0
    for freelancer_id in ranked:
        if freelancer_id in seen or freelancer_id in project.nok_freelancers:
            continue
        seen.add(freelancer_id)
        yield freelancer_id
        produced += 1
        if limit is not None and produced >= limit:
            return
