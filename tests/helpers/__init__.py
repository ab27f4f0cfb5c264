"""Test helper utilities for Freelance Match tests."""

from .factories import make_project, make_user, seed_client, seed_freelancer, seed_project

__all__ = ["make_user", "make_project", "seed_client", "seed_freelancer", "seed_project"]
