"""Default skill-overlap ranker.

Scores every freelancer against a project:
1. Skill overlap: share of the project's skills the freelancer declares
2. Budget fit: bonus when the freelancer's hourly rate fits the project budget
3. Ties broken by the order of the input pool (oldest account first)
"""

import logging
import re
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Set

from app.config.models import RankingConfig
from app.domain.models import Project, User

logger = logging.getLogger(__name__)


def normalize_skill(skill: str) -> str:
    """Normalize a skill name for comparison.

    Example:
        >>> normalize_skill("  Node.JS ")
        'node.js'
        >>> normalize_skill("Machine   Learning")
        'machine learning'
    """
    normalized = skill.strip().lower()
    return re.sub(r"\s+", " ", normalized)


@dataclass
class CandidateScore:
    """Score of one freelancer for one project."""

    freelancer_id: str
    skill_overlap: float
    budget_fit: bool
    matched_skills: Set[str]
    position: int

    def total(self, budget_weight: float) -> float:
        return self.skill_overlap + (budget_weight if self.budget_fit else 0.0)


class SkillOverlapRanker:
    """Ranks freelancers by skill overlap with the project, then budget fit."""

    def __init__(self, ranking_config: Optional[RankingConfig] = None, logger_instance: logging.Logger = None):
        """Initialize SkillOverlapRanker.

        Args:
            ranking_config: Ranking settings (defaults when omitted)
            logger_instance: Optional logger instance (defaults to module logger)
        """
        self.config = ranking_config or RankingConfig()
        self.logger = logger_instance or logger

    def score(self, project: Project, freelancer: User, position: int = 0) -> CandidateScore:
        """Score a single freelancer for a project."""
        project_skills = {normalize_skill(s) for s in project.skills}
        freelancer_skills = {normalize_skill(s) for s in freelancer.skills}
        matched = project_skills & freelancer_skills

        overlap = len(matched) / len(project_skills) if project_skills else 0.0
        budget_fit = (
            project.budget is not None
            and freelancer.hourly_rate is not None
            and freelancer.hourly_rate <= project.budget
        )

        return CandidateScore(
            freelancer_id=freelancer.id,
            skill_overlap=overlap,
            budget_fit=budget_fit,
            matched_skills=matched,
            position=position,
        )

    def rank(self, project: Project, freelancers: Sequence[User]) -> Iterator[str]:
        """Yield freelancer ids best-first.

        Non-freelancers in the pool are ignored. With ``require_skill_overlap``
        set, freelancers sharing no skill with the project are dropped.
        """
        scores: List[CandidateScore] = []
        for position, freelancer in enumerate(freelancers):
            if not freelancer.is_freelancer:
                continue
            candidate = self.score(project, freelancer, position)
            if self.config.require_skill_overlap and not candidate.matched_skills:
                continue
            scores.append(candidate)

        weight = self.config.budget_weight
        scores.sort(key=lambda c: (-c.total(weight), c.position))

        self.logger.debug(
            f"Ranked {len(scores)} candidates for project {project.id}",
            extra={
                "project_id": project.id,
                "pool_size": len(freelancers),
                "ranked": len(scores),
            },
        )

        for candidate in scores:
            yield candidate.freelancer_id
