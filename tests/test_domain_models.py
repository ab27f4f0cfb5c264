"""Unit tests for domain models."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from app.domain.models import Decision, Match, Project, User, UserRole


class TestUser:
    """Tests for User model."""

    def test_valid_freelancer(self):
        """Test creating a valid freelancer."""
        user = User(
            id="F7",
            role="freelancer",
            name="Grace Hopper",
            title="Compiler engineer",
            skills=["cobol", "python"],
            hourly_rate=95.0,
        )

        assert user.role == UserRole.FREELANCER
        assert user.is_freelancer
        assert not user.is_client
        assert user.ok_projects == set()
        assert user.nok_projects == set()

    def test_invalid_role_rejected(self):
        """Test that roles other than client and freelancer are rejected."""
        with pytest.raises(ValidationError):
            User(id="X1", role="admin", name="Root")

    def test_name_is_stripped(self):
        """Test that the display name is stripped of whitespace."""
        user = User(id="C1", role="client", name="  Acme  ")

        assert user.name == "Acme"

    def test_blank_name_rejected(self):
        """Test that a whitespace-only name is rejected."""
        with pytest.raises(ValidationError):
            User(id="C1", role="client", name="   ")

    def test_skills_normalized(self):
        """Test that skills are stripped and deduplicated case-insensitively."""
        user = User(
            id="F1",
            role="freelancer",
            name="Ada",
            skills=[" Python ", "python", "", "SQL", "sql "],
        )

        assert user.skills == ["Python", "SQL"]

    def test_negative_hourly_rate_rejected(self):
        """Test that hourly_rate must not be negative."""
        with pytest.raises(ValidationError):
            User(id="F1", role="freelancer", name="Ada", hourly_rate=-1)

    def test_consent_sets_must_be_disjoint(self):
        """Test that a project cannot be approved and declined at once."""
        with pytest.raises(ValidationError, match="both approved and declined"):
            User(
                id="F1",
                role="freelancer",
                name="Ada",
                ok_projects={"P1", "P2"},
                nok_projects={"P2"},
            )


class TestProject:
    """Tests for Project model."""

    def test_valid_project(self):
        """Test creating a valid project."""
        project = Project(
            id="P3",
            client_id="C1",
            title="  Data API  ",
            skills=["python"],
            budget=80,
            ok_freelancers={"F7"},
            nok_freelancers={"F8"},
        )

        assert project.title == "Data API"
        assert project.ok_freelancers == {"F7"}
        assert project.nok_freelancers == {"F8"}

    def test_blank_title_rejected(self):
        """Test that a whitespace-only title is rejected."""
        with pytest.raises(ValidationError):
            Project(id="P1", client_id="C1", title="  ")

    def test_consent_sets_must_be_disjoint(self):
        """Test that a freelancer cannot be approved and rejected at once."""
        with pytest.raises(ValidationError, match="both approved and rejected"):
            Project(
                id="P1",
                client_id="C1",
                title="API",
                ok_freelancers={"F1"},
                nok_freelancers={"F1"},
            )


class TestMatch:
    """Tests for Match model."""

    def test_match_is_immutable(self):
        """Test that a recorded match cannot be modified."""
        match = Match(
            id="m1",
            freelancer_id="F7",
            project_id="P3",
            client_id="C1",
            created_at=datetime(2025, 11, 4, 12, 0, tzinfo=timezone.utc),
        )

        with pytest.raises(ValidationError):
            match.project_id = "P4"

    def test_pair(self):
        """Test the natural key of a match."""
        match = Match(
            id="m1",
            freelancer_id="F7",
            project_id="P3",
            client_id="C1",
            created_at=datetime(2025, 11, 4, 12, 0, tzinfo=timezone.utc),
        )

        assert match.pair == ("F7", "P3")


class TestDecision:
    """Tests for Decision enum."""

    def test_values(self):
        assert Decision("ok") == Decision.OK
        assert Decision("nok") == Decision.NOK
