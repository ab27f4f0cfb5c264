"""Candidate ranking port and the default skill-overlap ranker."""

from .base import CandidateRanker, filter_candidates
from .skills import CandidateScore, SkillOverlapRanker, normalize_skill

__all__ = [
    "CandidateRanker",
    "filter_candidates",
    "SkillOverlapRanker",
    "CandidateScore",
    "normalize_skill",
]
