"""Unit tests for the matching engine."""

from unittest.mock import patch

import pytest

from app.config.models import RankingConfig
from app.domain.models import Decision
from app.matching import (
    MatchingEngine,
    NotFoundError,
    PairState,
    RoleMismatchError,
    Side,
    StorageFailureError,
    derive_pair_state,
)
from app.persistence import MatchRepository, PersistenceError, close_database, get_session, init_database
from tests.helpers import seed_client, seed_freelancer, seed_project


@pytest.fixture(autouse=True)
def database():
    """In-memory database with one client, three freelancers and one project."""
    init_database("sqlite:///:memory:")
    seed_client("C1")
    seed_client("C2")
    seed_freelancer("F1", skills=["python", "sql"], hourly_rate=50)
    seed_freelancer("F2", skills=["python"], hourly_rate=120)
    seed_freelancer("F3", skills=["cobol"])
    seed_project("P1", "C1", skills=["python", "sql"], budget=80)
    yield
    close_database()


def run(action, side, actor_id, freelancer_id, project_id, **engine_kwargs):
    """Run one engine call in its own transaction."""
    with get_session() as session:
        engine = MatchingEngine(session, **engine_kwargs)
        return getattr(engine, action)(side, actor_id, freelancer_id, project_id)


def match_count(freelancer_id="F1", project_id="P1"):
    with get_session() as session:
        return MatchRepository(session).count_for_pair(freelancer_id, project_id)


class TestDerivePairState:
    """Tests for derive_pair_state."""

    @pytest.mark.parametrize(
        "freelancer, client, has_match, expected",
        [
            (None, None, False, PairState.UNDECIDED),
            (Decision.OK, None, False, PairState.FREELANCER_INTERESTED),
            (None, Decision.OK, False, PairState.CLIENT_APPROVED),
            (Decision.OK, Decision.NOK, False, PairState.REJECTED),
            (Decision.NOK, Decision.OK, False, PairState.REJECTED),
            (Decision.NOK, Decision.NOK, True, PairState.MATCHED),
        ],
    )
    def test_states(self, freelancer, client, has_match, expected):
        assert derive_pair_state(freelancer, client, has_match) == expected


class TestLike:
    """Tests for like()."""

    def test_client_like_alone_creates_no_match(self):
        outcome = run("like", Side.CLIENT, "C1", "F1", "P1")

        assert outcome.state == PairState.CLIENT_APPROVED
        assert outcome.match is None
        assert not outcome.matched
        assert match_count() == 0

    def test_freelancer_like_alone_creates_no_match(self):
        outcome = run("like", Side.FREELANCER, "F1", "F1", "P1")

        assert outcome.state == PairState.FREELANCER_INTERESTED
        assert outcome.match is None

    def test_reciprocal_like_creates_match(self):
        """Test that the second approval creates exactly one match."""
        run("like", Side.CLIENT, "C1", "F1", "P1")
        outcome = run("like", Side.FREELANCER, "F1", "F1", "P1")

        assert outcome.state == PairState.MATCHED
        assert outcome.match_created is True
        assert outcome.match.freelancer_id == "F1"
        assert outcome.match.project_id == "P1"
        assert outcome.match.client_id == "C1"
        assert match_count() == 1

    def test_reciprocal_like_in_other_order(self):
        run("like", Side.FREELANCER, "F1", "F1", "P1")
        outcome = run("like", Side.CLIENT, "C1", "F1", "P1")

        assert outcome.match_created is True
        assert match_count() == 1

    def test_repeated_like_is_idempotent(self):
        """Test that repeating the completing like returns the same match."""
        run("like", Side.CLIENT, "C1", "F1", "P1")
        first = run("like", Side.FREELANCER, "F1", "F1", "P1")
        second = run("like", Side.FREELANCER, "F1", "F1", "P1")
        third = run("like", Side.CLIENT, "C1", "F1", "P1")

        assert second.match_created is False
        assert second.changed is False
        assert second.match.id == first.match.id
        assert third.match.id == first.match.id
        assert match_count() == 1

    def test_no_match_after_client_rejection(self):
        run("dislike", Side.CLIENT, "C1", "F1", "P1")
        outcome = run("like", Side.FREELANCER, "F1", "F1", "P1")

        assert outcome.state == PairState.REJECTED
        assert outcome.match is None
        assert match_count() == 0

    def test_like_after_dislike_can_match(self):
        """Test that a freelancer may change their mind before a match."""
        run("like", Side.CLIENT, "C1", "F1", "P1")
        run("dislike", Side.FREELANCER, "F1", "F1", "P1")
        outcome = run("like", Side.FREELANCER, "F1", "F1", "P1")

        assert outcome.match_created is True


class TestDislike:
    """Tests for dislike()."""

    def test_dislike_never_creates_match(self):
        run("like", Side.FREELANCER, "F1", "F1", "P1")
        outcome = run("dislike", Side.CLIENT, "C1", "F1", "P1")

        assert outcome.state == PairState.REJECTED
        assert outcome.match is None
        assert match_count() == 0

    def test_dislike_does_not_retract_match(self):
        """Test that a match survives a later dislike."""
        run("like", Side.CLIENT, "C1", "F1", "P1")
        matched = run("like", Side.FREELANCER, "F1", "F1", "P1")
        outcome = run("dislike", Side.CLIENT, "C1", "F1", "P1")

        assert outcome.state == PairState.MATCHED
        assert outcome.match.id == matched.match.id
        assert match_count() == 1

    @pytest.mark.parametrize(
        "side, actor_id",
        [(Side.CLIENT, "C1"), (Side.FREELANCER, "F1")],
    )
    def test_repeated_dislike_is_idempotent(self, side, actor_id):
        """Test that a second identical dislike records nothing new."""
        first = run("dislike", side, actor_id, "F1", "P1")
        second = run("dislike", side, actor_id, "F1", "P1")

        assert first.changed is True
        assert second.changed is False
        assert second.state == first.state == PairState.REJECTED
        assert second.match is None

        with get_session() as session:
            engine = MatchingEngine(session)
            project = engine.projects.get("P1")
            freelancer = engine.users.get("F1")
            state = engine.pair_state("F1", "P1")

        if side == Side.CLIENT:
            assert (project.ok_freelancers, project.nok_freelancers) == (set(), {"F1"})
            assert freelancer.nok_projects == set()
        else:
            assert (freelancer.ok_projects, freelancer.nok_projects) == (set(), {"P1"})
            assert project.nok_freelancers == set()
        assert state == PairState.REJECTED
        assert match_count() == 0

    def test_dislike_updates_project_sets(self):
        run("like", Side.CLIENT, "C1", "F2", "P1")
        run("dislike", Side.CLIENT, "C1", "F2", "P1")

        with get_session() as session:
            project = MatchingEngine(session).projects.get("P1")

        assert project.ok_freelancers == set()
        assert project.nok_freelancers == {"F2"}


class TestValidation:
    """Tests for argument and role validation."""

    def test_missing_project(self):
        with pytest.raises(NotFoundError):
            run("like", Side.CLIENT, "C1", "F1", "P404")

    def test_missing_freelancer(self):
        with pytest.raises(NotFoundError):
            run("like", Side.CLIENT, "C1", "F404", "P1")

    def test_missing_actor(self):
        with pytest.raises(NotFoundError):
            run("like", Side.FREELANCER, "F404", "F404", "P1")

    def test_client_passed_as_freelancer(self):
        with pytest.raises(RoleMismatchError):
            run("like", Side.CLIENT, "C1", "C2", "P1")

    def test_freelancer_calling_client_side(self):
        with pytest.raises(RoleMismatchError):
            run("like", Side.CLIENT, "F1", "F1", "P1")

    def test_client_calling_freelancer_side(self):
        with pytest.raises(RoleMismatchError):
            run("like", Side.FREELANCER, "C1", "F1", "P1")

    def test_freelancer_acting_for_another(self):
        with pytest.raises(RoleMismatchError):
            run("like", Side.FREELANCER, "F2", "F1", "P1")

    def test_failed_call_leaves_no_consent(self):
        with pytest.raises(RoleMismatchError):
            run("like", Side.CLIENT, "C1", "C2", "P1")

        with get_session() as session:
            assert MatchingEngine(session).pair_state("F1", "P1") == PairState.UNDECIDED

    def test_storage_failure_is_wrapped(self):
        """Test that persistence errors surface as retryable storage failures."""
        with patch(
            "app.persistence.repositories.UserRepository.get",
            side_effect=PersistenceError("disk I/O error"),
        ):
            with pytest.raises(StorageFailureError) as exc_info:
                run("like", Side.CLIENT, "C1", "F1", "P1")

        assert exc_info.value.retryable is True


class TestCandidates:
    """Tests for candidates()."""

    def test_ranked_by_skill_overlap(self):
        with get_session() as session:
            ids = [user.id for user in MatchingEngine(session).candidates("P1")]

        assert ids == ["F1", "F2", "F3"]

    def test_rejected_freelancers_excluded(self):
        run("dislike", Side.CLIENT, "C1", "F1", "P1")

        with get_session() as session:
            ids = [user.id for user in MatchingEngine(session).candidates("P1")]

        assert "F1" not in ids
        assert ids == ["F2", "F3"]

    def test_limit_applied(self):
        with get_session() as session:
            engine = MatchingEngine(session, ranking_config=RankingConfig(max_candidates=1))
            ids = [user.id for user in engine.candidates("P1")]

        assert ids == ["F1"]

    def test_custom_ranker_output_filtered(self):
        """Test that duplicates and rejected ids from any ranker are dropped."""
        run("dislike", Side.CLIENT, "C1", "F2", "P1")

        class NoisyRanker:
            def rank(self, project, freelancers):
                return ["F3", "F2", "F3", "ghost", "F1"]

        with get_session() as session:
            ids = [user.id for user in MatchingEngine(session, ranker=NoisyRanker()).candidates("P1")]

        assert ids == ["F3", "F1"]

    def test_missing_project(self):
        with get_session() as session:
            with pytest.raises(NotFoundError):
                MatchingEngine(session).candidates("P404")


class TestMatchesFor:
    """Tests for matches_for()."""

    def test_lists_matches_for_both_sides(self):
        run("like", Side.CLIENT, "C1", "F1", "P1")
        run("like", Side.FREELANCER, "F1", "F1", "P1")

        with get_session() as session:
            engine = MatchingEngine(session)
            assert [m.project_id for m in engine.matches_for("F1")] == ["P1"]
            assert [m.freelancer_id for m in engine.matches_for("C1")] == ["F1"]
            assert engine.matches_for("F2") == []

    def test_unknown_user(self):
        with get_session() as session:
            with pytest.raises(NotFoundError):
                MatchingEngine(session).matches_for("X1")
