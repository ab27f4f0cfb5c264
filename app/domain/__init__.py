"""Domain models for the freelance matching service."""

from .models import Decision, Match, Project, User, UserRole

__all__ = ["User", "Project", "Match", "UserRole", "Decision"]
